"""
Remeasurement of a lease after a modification (IFRS 16.39-46).

The carrying amounts are rolled forward on the original schedule up to the
effective date. The remaining payments, under the modified terms, are then
discounted from the effective date and the difference is booked against the
right-of-use asset. When that difference is larger than the asset, the asset
stops at zero and the rest goes to profit or loss.
"""

from __future__ import annotations

import datetime as dt
import logging
from decimal import Decimal
from typing import Optional, Tuple

from lease_engine.config import Settings
from lease_engine.core.engine import annual_rate_for, calculate_lease_result
from lease_engine.core.liability import initial_lease_liability, initial_right_of_use_asset, monthly_rate_from_annual
from lease_engine.core.money import ZERO, add_months, round_money, round_rate
from lease_engine.core.schedule import generate_amortization_schedule
from lease_engine.domain.modification import apply_modification, periods_elapsed, validate_modification
from lease_engine.domain.validation import (
    RATE_MAX,
    RATE_MIN,
    ValidationIssue,
    ValidationResult,
    validate_contract,
)
from lease_engine.models import LeaseContractInput, LeaseModification, MarketRateData, ModificationType
from lease_engine.schemas.modification import MeasurementSnapshot, ModificationImpact, ModificationResult

logger = logging.getLogger(__name__)


def carrying_amounts(contract: LeaseContractInput, annual_rate_pct: Decimal, elapsed: int) -> Tuple[Decimal, Decimal]:
    """Liability and ROU asset at the start of month `elapsed + 1`, full precision."""
    liability = initial_lease_liability(contract, annual_rate_pct)
    rou_asset = initial_right_of_use_asset(liability, contract)
    if elapsed == 0:
        return liability, rou_asset
    rows = generate_amortization_schedule(contract, liability, rou_asset, monthly_rate_from_annual(annual_rate_pct))
    row = rows[elapsed]
    return row.beginning_liability, row.beginning_asset


def remaining_contract(
    contract: LeaseContractInput,
    modified: LeaseContractInput,
    elapsed: int,
    annual_rate_pct: Decimal,
) -> LeaseContractInput:
    """
    The modified lease seen from the effective date: a fresh contract over
    the months still to run. Costs and incentives of the original
    commencement are already in the carrying ROU asset, so they are dropped.
    """
    start = add_months(contract.lease_start_date, elapsed)
    return modified.model_copy(
        update={
            "lease_start_date": start,
            "lease_end_date": add_months(contract.lease_start_date, modified.lease_term_months),
            "lease_term_months": modified.lease_term_months - elapsed,
            "initial_payment": contract.initial_payment if elapsed == 0 else ZERO,
            "initial_direct_costs": ZERO,
            "lease_incentives": ZERO,
            "discount_rate_annual": annual_rate_pct,
            "variable_payments": [p for p in modified.variable_payments if p.date >= start.replace(day=1)],
        }
    )


def _snapshot(
    liability: Decimal,
    rou_asset: Decimal,
    remaining_months: int,
    monthly_payment: Decimal,
    annual_rate_pct: Decimal,
) -> MeasurementSnapshot:
    return MeasurementSnapshot(
        lease_liability=round_money(liability),
        right_of_use_asset=round_money(rou_asset),
        remaining_term_months=remaining_months,
        monthly_payment=round_money(monthly_payment),
        discount_rate_annual=round_rate(annual_rate_pct),
    )


def validate_remeasurement(
    contract: LeaseContractInput,
    modification: LeaseModification,
    revised_rate: Optional[Decimal] = None,
) -> ValidationResult:
    """Contract checks and modification checks in one report."""
    result = validate_contract(contract)
    result.errors.extend(validate_modification(contract, modification).errors)
    if revised_rate is not None and (revised_rate < RATE_MIN or revised_rate > RATE_MAX):
        result.errors.append(
            ValidationIssue("RATE_OUT_OF_RANGE", "revised_rate must be between 0% and 100%", "revised_rate")
        )
    return result


def terminate_lease(
    contract: LeaseContractInput,
    termination_date: dt.date,
    termination_fee: Decimal = ZERO,
    market: Optional[MarketRateData] = None,
    settings: Optional[Settings] = None,
) -> ModificationResult:
    """
    Derecognise the lease at `termination_date`.

    gain_or_loss = carrying liability - carrying ROU asset - termination fee
    """
    elapsed = periods_elapsed(contract, termination_date)
    if elapsed < 0 or elapsed >= contract.lease_term_months:
        raise ValueError("termination_date must fall within the lease term")

    annual_rate, _, _ = annual_rate_for(contract, market, settings)
    liability, rou_asset = carrying_amounts(contract, annual_rate, elapsed)
    gain_or_loss = liability - rou_asset - termination_fee

    logger.info(
        "Contract %s terminated after %d months: gain/loss %s",
        contract.contract_id,
        elapsed,
        round_money(gain_or_loss),
    )
    return ModificationResult(
        contract_id=contract.contract_id,
        modification_type=ModificationType.TERMINATION,
        effective_date=termination_date,
        periods_elapsed=elapsed,
        before=_snapshot(
            liability,
            rou_asset,
            contract.lease_term_months - elapsed,
            contract.monthly_payment,
            annual_rate,
        ),
        after=_snapshot(ZERO, ZERO, 0, ZERO, annual_rate),
        impact=ModificationImpact(
            liability_change=round_money(-liability),
            asset_change=round_money(-rou_asset),
            payment_change=round_money(-contract.monthly_payment),
            rate_change=Decimal("0.0000"),
            term_change=elapsed - contract.lease_term_months,
            gain_or_loss=round_money(gain_or_loss),
            net_impact=round_money(-liability - rou_asset - termination_fee),
        ),
        calculation=None,
    )


def remeasure_lease(
    contract: LeaseContractInput,
    modification: LeaseModification,
    revised_rate: Optional[Decimal] = None,
    market: Optional[MarketRateData] = None,
    settings: Optional[Settings] = None,
) -> ModificationResult:
    """
    Remeasure `contract` under `modification` from its effective date.

    `revised_rate` is the annual rate (percent) at the effective date; when
    omitted the modified contract rate is kept. A contract without a rate is
    first pinned to its resolved rate. Raises ContractValidationError when
    the contract or the modification is invalid.
    """
    validate_remeasurement(contract, modification, revised_rate).raise_for_errors()

    if modification.modification_type == ModificationType.TERMINATION:
        return terminate_lease(contract, modification.effective_date, modification.modification_fee, market, settings)

    annual_rate, rate_source, _ = annual_rate_for(contract, market, settings)
    current = contract.model_copy(update={"discount_rate_annual": annual_rate})
    elapsed = periods_elapsed(current, modification.effective_date)
    liability_before, rou_before = carrying_amounts(current, annual_rate, elapsed)

    modified = apply_modification(current, modification)
    rate_after = revised_rate if revised_rate is not None else modified.discount_rate_annual
    remaining = remaining_contract(current, modified, elapsed, rate_after)

    liability_after = initial_lease_liability(remaining, rate_after)
    adjustment = liability_after - liability_before
    rou_after = (
        rou_before
        + adjustment
        + modification.modification_fee
        + modification.additional_costs
        - modification.incentives_received
    )
    gain_or_loss = ZERO
    if rou_after < ZERO:
        gain_or_loss = -rou_after
        rou_after = ZERO

    calculation = calculate_lease_result(remaining, rate_after, rate_source, right_of_use_asset=rou_after)

    logger.info(
        "Contract %s remeasured for %s after %d months: liability %s -> %s",
        contract.contract_id,
        modification.modification_type.value,
        elapsed,
        round_money(liability_before),
        calculation.lease_liability_initial,
    )
    return ModificationResult(
        contract_id=contract.contract_id,
        modification_type=modification.modification_type,
        effective_date=modification.effective_date,
        periods_elapsed=elapsed,
        before=_snapshot(
            liability_before,
            rou_before,
            current.lease_term_months - elapsed,
            current.monthly_payment,
            annual_rate,
        ),
        after=_snapshot(
            liability_after,
            rou_after,
            remaining.lease_term_months,
            remaining.monthly_payment,
            rate_after,
        ),
        impact=ModificationImpact(
            liability_change=round_money(adjustment),
            asset_change=round_money(rou_after - rou_before),
            payment_change=round_money(remaining.monthly_payment - current.monthly_payment),
            rate_change=round_rate(rate_after - annual_rate),
            term_change=modified.lease_term_months - current.lease_term_months,
            gain_or_loss=round_money(gain_or_loss),
            net_impact=round_money(
                adjustment
                + modification.modification_fee
                + modification.additional_costs
                - modification.incentives_received
            ),
        ),
        calculation=calculation,
    )


__all__ = [
    "carrying_amounts",
    "remaining_contract",
    "validate_remeasurement",
    "terminate_lease",
    "remeasure_lease",
]
