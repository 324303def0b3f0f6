"""
Shared schema types
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Annotated, Any

from pydantic import PlainSerializer

CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Convert a stored/typed number to Decimal without float drift"""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_money(value: Any) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


# Full precision internally, two decimals once serialized to JSON
Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: float(round_money(v)), return_type=float, when_used="json"),
]
Percent = Money
