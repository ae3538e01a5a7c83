from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List

from lease_engine.core.money import ZERO, add_months, months_between
from lease_engine.models import LeaseContractInput, PaymentTiming


@dataclass
class ScheduleRow:
    """Internal: one month at full precision, before boundary rounding."""

    period: int
    date: dt.date
    beginning_liability: Decimal
    interest_expense: Decimal
    payment: Decimal
    principal_payment: Decimal
    ending_liability: Decimal
    beginning_asset: Decimal
    amortization: Decimal
    ending_asset: Decimal


def _variable_payments_by_period(contract: LeaseContractInput) -> Dict[int, Decimal]:
    """Map period index -> variable amount paid at the start of that period."""
    by_period: Dict[int, Decimal] = {}
    for payment in contract.variable_payments:
        offset = months_between(contract.lease_start_date, payment.date)
        if 0 <= offset < contract.lease_term_months:
            by_period[offset + 1] = by_period.get(offset + 1, ZERO) + payment.amount
    return by_period


def generate_amortization_schedule(
    contract: LeaseContractInput,
    lease_liability: Decimal,
    right_of_use_asset: Decimal,
    monthly_rate: Decimal,
) -> List[ScheduleRow]:
    """
    Roll the liability and the ROU asset forward one month at a time.

    Order of operations (per period):
      1) Settle the amounts due at the START of the period: the base payment
         under START timing, the initial payment (period 1) and any variable
         payment falling in that month.
      2) Accrue interest on what is left: (beginning - advance) x monthly rate.
      3) Settle the base payment under END timing.

    This is the same timing used to discount the liability, so the balance
    after the last period is the undiscounted guaranteed residual value
    (zero when there is none).

    The ROU asset is depreciated straight-line over the lease term; the last
    period takes whatever is left so the asset closes at exactly zero.
    """
    term = contract.lease_term_months
    if term < 1:
        raise ValueError("lease_term_months must be at least 1")

    variable_by_period = _variable_payments_by_period(contract)
    paid_in_advance = contract.payment_timing == PaymentTiming.START
    depreciation = right_of_use_asset / term

    liability = lease_liability
    asset = right_of_use_asset
    rows: List[ScheduleRow] = []

    for period in range(1, term + 1):
        advance = variable_by_period.get(period, ZERO)
        if period == 1:
            advance += contract.initial_payment
        arrears = ZERO
        if paid_in_advance:
            advance += contract.monthly_payment
        else:
            arrears = contract.monthly_payment

        beginning_liability = liability
        interest = (beginning_liability - advance) * monthly_rate
        payment = advance + arrears
        principal = payment - interest
        liability = beginning_liability - principal

        beginning_asset = asset
        amortization = beginning_asset if period == term else depreciation
        asset = beginning_asset - amortization

        rows.append(
            ScheduleRow(
                period=period,
                date=add_months(contract.lease_start_date, period - 1),
                beginning_liability=beginning_liability,
                interest_expense=interest,
                payment=payment,
                principal_payment=principal,
                ending_liability=liability,
                beginning_asset=beginning_asset,
                amortization=amortization,
                ending_asset=asset,
            )
        )

    return rows


__all__ = ["ScheduleRow", "generate_amortization_schedule"]
