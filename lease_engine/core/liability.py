"""Present value of lease payments and the initial right-of-use asset.

All figures are Decimals at full precision; rounding is left to the caller.

Conventions:
  - The annual rate is an effective annual percentage; it is converted to the
    equivalent monthly effective rate before discounting.
  - END timing discounts the n monthly payments as an ordinary annuity;
    START timing as an annuity due (ordinary x (1 + r)).
  - The initial payment is made at commencement and never discounted.
  - The guaranteed residual value is discounted over the whole term.
  - A variable payment m calendar months after the start is discounted by
    (1 + r)^-m, and only counts when 0 <= m < term.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable

from lease_engine.core.money import HUNDRED, ONE, TWELVE, ZERO, months_between, to_decimal
from lease_engine.models import LeaseContractInput, PaymentTiming, VariablePayment


def monthly_rate_from_annual(annual_rate_pct: Decimal) -> Decimal:
    """(1 + annual/100)^(1/12) - 1, exactly zero for a zero rate."""
    annual = to_decimal(annual_rate_pct)
    if annual == ZERO:
        return ZERO
    return (ONE + annual / HUNDRED) ** (ONE / TWELVE) - ONE


def annual_rate_from_monthly(monthly_rate: Decimal) -> Decimal:
    """Inverse of monthly_rate_from_annual, in percent."""
    if monthly_rate == ZERO:
        return ZERO
    return ((ONE + monthly_rate) ** 12 - ONE) * HUNDRED


def annuity_present_value(payment: Decimal, monthly_rate: Decimal, periods: int) -> Decimal:
    if monthly_rate == ZERO:
        return payment * periods
    return payment * (ONE - (ONE + monthly_rate) ** -periods) / monthly_rate


def annuity_due_present_value(payment: Decimal, monthly_rate: Decimal, periods: int) -> Decimal:
    ordinary = annuity_present_value(payment, monthly_rate, periods)
    if monthly_rate == ZERO:
        return ordinary
    return ordinary * (ONE + monthly_rate)


def residual_present_value(residual_value: Decimal, monthly_rate: Decimal, periods: int) -> Decimal:
    if residual_value == ZERO or monthly_rate == ZERO:
        return residual_value
    return residual_value * (ONE + monthly_rate) ** -periods


def variable_payments_present_value(
    payments: Iterable[VariablePayment],
    lease_start: date,
    monthly_rate: Decimal,
    periods: int,
) -> Decimal:
    present_value = ZERO
    for payment in payments:
        offset = months_between(lease_start, payment.date)
        if offset < 0 or offset >= periods:
            continue
        present_value += payment.amount * (ONE + monthly_rate) ** -offset
    return present_value


def base_payments_present_value(contract: LeaseContractInput, monthly_rate: Decimal) -> Decimal:
    if contract.payment_timing == PaymentTiming.START:
        return annuity_due_present_value(contract.monthly_payment, monthly_rate, contract.lease_term_months)
    return annuity_present_value(contract.monthly_payment, monthly_rate, contract.lease_term_months)


def initial_lease_liability(contract: LeaseContractInput, annual_rate_pct: Decimal) -> Decimal:
    """PV(base payments) + initial payment + PV(residual) + PV(variable payments)."""
    if contract.lease_term_months < 1:
        raise ValueError("lease_term_months must be at least 1")

    monthly_rate = monthly_rate_from_annual(annual_rate_pct)
    term = contract.lease_term_months

    return (
        base_payments_present_value(contract, monthly_rate)
        + contract.initial_payment
        + residual_present_value(contract.guaranteed_residual_value, monthly_rate, term)
        + variable_payments_present_value(contract.variable_payments, contract.lease_start_date, monthly_rate, term)
    )


def initial_right_of_use_asset(lease_liability: Decimal, contract: LeaseContractInput) -> Decimal:
    return lease_liability + contract.initial_direct_costs - contract.lease_incentives


__all__ = [
    "monthly_rate_from_annual",
    "annual_rate_from_monthly",
    "annuity_present_value",
    "annuity_due_present_value",
    "residual_present_value",
    "variable_payments_present_value",
    "base_payments_present_value",
    "initial_lease_liability",
    "initial_right_of_use_asset",
]
