from __future__ import annotations

from decimal import Decimal

from lensbook.domain.entities.service import Service

SERVICE_CATALOG: dict[str, Service] = {
    "portrait_session": Service(
        id="portrait_session",
        name="Portrait Session",
        duration_minutes=60,
        max_participants=2,
        price=Decimal("120.00"),
        category="portrait",
        description="Studio or outdoor portrait shoot, 20 edited photos.",
    ),
    "family_session": Service(
        id="family_session",
        name="Family Session",
        duration_minutes=90,
        max_participants=8,
        price=Decimal("220.00"),
        category="family",
    ),
    "product_shoot": Service(
        id="product_shoot",
        name="Product Shoot",
        duration_minutes=120,
        max_participants=1,
        price=Decimal("300.00"),
        category="commercial",
    ),
    "headshot_express": Service(
        id="headshot_express",
        name="Express Headshot",
        duration_minutes=30,
        max_participants=1,
        price=Decimal("60.00"),
        category="portrait",
    ),
    "wedding_coverage": Service(
        id="wedding_coverage",
        name="Wedding Coverage",
        duration_minutes=480,
        max_participants=50,
        price=Decimal("1800.00"),
        category="event",
        description="Full-day ceremony and reception coverage.",
    ),
    "maternity_session": Service(
        id="maternity_session",
        name="Maternity Session",
        duration_minutes=60,
        max_participants=3,
        price=Decimal("150.00"),
        category="portrait",
        is_active=False,
    ),
}
