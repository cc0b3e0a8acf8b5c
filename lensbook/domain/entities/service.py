from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class Service:
    id: str
    name: str
    duration_minutes: int
    max_participants: int = 1
    price: Decimal = Decimal("0")
    is_active: bool = True
    category: str | None = None
    description: str | None = None
