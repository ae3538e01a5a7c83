"""Decimal helpers shared by the lease calculations."""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Union

from dateutil.relativedelta import relativedelta

Number = Union[Decimal, int, float, str]

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")
TWELVE = Decimal("12")

CENT = Decimal("0.01")
RATE_QUANTUM = Decimal("0.0001")


def to_decimal(value: Number) -> Decimal:
    # floats go through str() so 0.1 stays 0.1
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def round_rate(value: Decimal) -> Decimal:
    return value.quantize(RATE_QUANTUM, rounding=ROUND_HALF_UP)


def total(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start to end, ignoring the day of month."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def add_months(start: date, months: int) -> date:
    return start + relativedelta(months=months)


__all__ = [
    "Number",
    "ZERO",
    "ONE",
    "HUNDRED",
    "TWELVE",
    "CENT",
    "to_decimal",
    "round_money",
    "round_rate",
    "total",
    "months_between",
    "add_months",
]
