from __future__ import annotations

from abc import ABC, abstractmethod

from lensbook.domain.entities.service import Service


class ServiceCatalogPort(ABC):
    @abstractmethod
    def get_service(self, service_id: str) -> Service | None:
        """Get service by identifier."""
        raise NotImplementedError

    @abstractmethod
    def list_services(self, include_inactive: bool = False) -> list[Service]:
        """List services, active ones only unless include_inactive."""
        raise NotImplementedError
