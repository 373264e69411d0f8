"""Monetary amounts.

Amounts are persisted as integer cents and handled in Python as
``Decimal`` values with exactly two fractional digits. Sums of such values
are exact, so aggregation never drifts; rounding only happens in
``format_money``.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Annotated, Iterable

from pydantic import PlainSerializer

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: str(v.quantize(CENT)), return_type=str, when_used="json"),
]


def from_cents(cents: int) -> Decimal:
    return Decimal(int(cents)).scaleb(-2)


def to_cents(amount: Decimal) -> int:
    """Convert an amount to integer cents.

    Raises ``ValueError`` when the amount carries sub-cent precision, since
    silently rounding on write would break the exactness of later sums.
    """
    try:
        scaled = Decimal(amount) * 100
    except InvalidOperation as exc:
        raise ValueError("Invalid amount") from exc
    if scaled != scaled.to_integral_value():
        raise ValueError("Amount must not have more than two decimal places")
    return int(scaled)


def total(amounts: Iterable[Decimal]) -> Decimal:
    result = ZERO
    for amount in amounts:
        result += amount
    return result


def format_money(amount: Decimal, symbol: str = "$") -> str:
    rounded = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{symbol}{abs(rounded):,.2f}"
