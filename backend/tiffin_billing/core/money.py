"""Money handling shared by every engine.

Amounts are ``Decimal`` values quantized to cents with round-half-up. ``money()``
is the only place rounding happens; engines call it at every aggregation
boundary (per draw, per invoice, per payment total) so multi-row credit draws
never drift by a cent.
"""

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# A balance at or below this is settled (invoice paid, credit used up)
SETTLED_EPSILON = Decimal("0.001")
# Payment conservation: total_allocated + excess_amount == amount within this
CONSERVATION_TOLERANCE = Decimal("0.01")


def money(value: Any) -> Decimal:
    """Convert ``value`` to a cent-rounded Decimal."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def money_sum(values: Iterable[Any]) -> Decimal:
    return money(sum((money(v) for v in values), ZERO))


def is_settled(balance: Any) -> bool:
    return money(balance) <= SETTLED_EPSILON


def clamp_balance(balance: Any) -> Decimal:
    """Never report a balance below zero; tiny negatives come from legacy data."""
    amount = money(balance)
    return amount if amount > ZERO else ZERO
