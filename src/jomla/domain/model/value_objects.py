"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
They encapsulate validation so invalid values can never exist.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from jomla.domain.exceptions import ValidationError


@dataclass(frozen=True, order=True)
class Money:
    """Monetary amount in integer minor currency units (cents).

    Integer cents keep every price, total and fee exact; only the tax
    computation goes through Decimal, and rounds back to cents.
    """

    cents: int

    def __post_init__(self) -> None:
        if isinstance(self.cents, bool) or not isinstance(self.cents, int):
            raise ValidationError(
                f"Money amount must be integer cents, got {type(self.cents).__name__}"
            )
        if self.cents < 0:
            raise ValidationError(
                f"Money amount cannot be negative, got {self.cents}"
            )

    # --- Arithmetic helpers ---------------------------------------------------

    def __add__(self, other: Money) -> Money:
        return Money(self.cents + other.cents)

    def __sub__(self, other: Money) -> Money:
        result = self.cents - other.cents
        if result < 0:
            raise ValidationError("Money subtraction would result in a negative amount")
        return Money(result)

    def __mul__(self, factor: int) -> Money:
        if isinstance(factor, bool) or not isinstance(factor, int):
            raise TypeError(f"Can only multiply Money by int, got {type(factor).__name__}")
        return Money(self.cents * factor)

    def percent_of(self, rate: Decimal) -> Money:
        """Return ``self * rate`` rounded half-up to whole cents."""
        amount = (Decimal(self.cents) * rate).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return Money(int(amount))

    # --- Display --------------------------------------------------------------

    def __str__(self) -> str:
        return f"${self.cents // 100}.{self.cents % 100:02d}"

    # --- Factory --------------------------------------------------------------

    @staticmethod
    def zero() -> Money:
        return Money(0)

    @staticmethod
    def of(amount: str | int) -> Money:
        """Parse a dollar string ("5.99") or take an int as cents."""
        if isinstance(amount, int):
            return Money(amount)
        try:
            dollars = Decimal(str(amount).strip().lstrip("$"))
        except ArithmeticError as exc:
            raise ValidationError(f"Invalid money amount: {amount!r}") from exc
        cents = dollars * 100
        if cents != cents.to_integral_value():
            raise ValidationError(f"Money amount has sub-cent precision: {amount!r}")
        return Money(int(cents))


@dataclass(frozen=True)
class Quantity:
    """A positive integer quantity.

    Enforces the invariant that you cannot order zero or negative items.
    """

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError(
                f"Quantity must be an integer, got {type(self.value).__name__}"
            )
        if self.value <= 0:
            raise ValidationError("Quantity must be positive")

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class QuantityLimits:
    """Inclusive ``[minimum, maximum]`` order quantity bounds."""

    minimum: int = 1
    maximum: int = 999

    def __post_init__(self) -> None:
        if self.minimum < 1:
            raise ValidationError("Minimum quantity must be at least 1")
        if self.maximum < self.minimum:
            raise ValidationError(
                f"Maximum quantity {self.maximum} is below minimum {self.minimum}"
            )

    def violated_bound(self, quantity: int) -> int | None:
        """Return the bound ``quantity`` falls outside of, or None."""
        if quantity < self.minimum:
            return self.minimum
        if quantity > self.maximum:
            return self.maximum
        return None
