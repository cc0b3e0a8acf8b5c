from __future__ import annotations

from lensbook.application.ports.service_catalog import ServiceCatalogPort
from lensbook.domain.entities.service import Service
from lensbook.infrastructure.catalog.service_catalog_data import SERVICE_CATALOG


class ServiceCatalogStore(ServiceCatalogPort):
    def __init__(self, catalog: dict[str, Service] | None = None) -> None:
        self._catalog = catalog if catalog is not None else SERVICE_CATALOG

    def get_service(self, service_id: str) -> Service | None:
        normalized_id = service_id.lower().strip()
        return self._catalog.get(normalized_id)

    def list_services(self, include_inactive: bool = False) -> list[Service]:
        services = [s for s in self._catalog.values() if include_inactive or s.is_active]
        return sorted(services, key=lambda s: s.name)
