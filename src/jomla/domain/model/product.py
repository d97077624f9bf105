"""Product aggregate.

Products live independently of offers, carts and orders. Administrators
edit them; they are never deleted, only toggled inactive.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from jomla.domain.exceptions import ValidationError
from jomla.domain.model.value_objects import Money, QuantityLimits


class ProductStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass
class Product:
    """A sellable unit in the catalog."""

    id: str
    name: str
    base_price: Money
    category: str = ""
    description: str = ""
    tags: frozenset[str] = frozenset()
    in_stock: bool = True
    limits: QuantityLimits = field(default_factory=QuantityLimits)
    status: ProductStatus = ProductStatus.ACTIVE
    image_url: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if not self.id:
            raise ValidationError("Product id is required")
        if not self.name or not self.name.strip():
            raise ValidationError("Product name is required")

    @property
    def is_available(self) -> bool:
        return self.status == ProductStatus.ACTIVE and self.in_stock

    def update_price(self, new_price: Money) -> None:
        """Change the base price.

        Existing carts keep their snapshot until checkout re-validates;
        existing orders are never affected.
        """
        if new_price.cents <= 0:
            raise ValidationError("Product price must be greater than zero")
        self.base_price = new_price
        self.touch()

    def set_status(self, status: ProductStatus) -> None:
        self.status = status
        self.touch()

    def touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)
