"""Order pricing rules: delivery fee and sales tax.

All amounts are integer cents. Tax is the only fractional computation and
rounds half-up back to whole cents.
"""

from __future__ import annotations

from decimal import Decimal

from jomla.domain.model.order import FulfillmentMethod, OrderTotals
from jomla.domain.model.value_objects import Money

FREE_DELIVERY_THRESHOLD = Money(5000)
DELIVERY_FEE = Money(599)
TAX_RATE = Decimal("0.10")


def delivery_fee(subtotal: Money, method: FulfillmentMethod) -> Money:
    if method == FulfillmentMethod.PICKUP:
        return Money.zero()
    if subtotal >= FREE_DELIVERY_THRESHOLD:
        return Money.zero()
    return DELIVERY_FEE


def compute_totals(
    subtotal: Money,
    total_savings: Money,
    method: FulfillmentMethod,
) -> OrderTotals:
    """Price an order from the cart aggregates.

    ``tax = round(TAX_RATE * (subtotal + fee))`` and the order total is
    ``subtotal + fee + tax``.
    """
    fee = delivery_fee(subtotal, method)
    tax = (subtotal + fee).percent_of(TAX_RATE)
    return OrderTotals(
        subtotal=subtotal,
        total_savings=total_savings,
        delivery_fee=fee,
        tax=tax,
    )
