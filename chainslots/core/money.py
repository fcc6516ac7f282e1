"""
Amount handling. Balances and payouts are kept as exact Decimals
internally; rounding to 2 places happens only when rendering.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

from chainslots.core.exceptions import InvalidBetAmount

AmountLike = Union[int, float, str, Decimal]

ZERO = Decimal("0")
DISPLAY_PLACES = Decimal("0.01")


def to_amount(value: AmountLike) -> Decimal:
    """
    Coerce caller input to a finite Decimal.

    Floats go through str() so 0.1 becomes Decimal("0.1") rather than
    its binary expansion.
    """
    if isinstance(value, bool):
        raise InvalidBetAmount(f"Invalid amount: {value!r}")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float, str)):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise InvalidBetAmount(f"Invalid amount: {value!r}") from None
    else:
        raise InvalidBetAmount(f"Invalid amount: {value!r}")

    if not amount.is_finite():
        raise InvalidBetAmount(f"Invalid amount: {value!r}")
    return amount


def to_positive_amount(value: AmountLike) -> Decimal:
    amount = to_amount(value)
    if amount <= ZERO:
        raise InvalidBetAmount(f"Amount must be positive, got {value!r}")
    return amount


def display(amount: Decimal) -> float:
    """Round to cents for JSON/UI output."""
    return float(amount.quantize(DISPLAY_PLACES, rounding=ROUND_HALF_UP))
