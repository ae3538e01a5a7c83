from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from lease_engine.config import Settings
from lease_engine.core.discount_rate import resolve_discount_rate
from lease_engine.core.exception_classifier import classify_exceptions
from lease_engine.core.liability import (
    annual_rate_from_monthly,
    initial_lease_liability,
    initial_right_of_use_asset,
    monthly_rate_from_annual,
)
from lease_engine.core.money import HUNDRED, round_money, round_rate, total
from lease_engine.core.schedule import ScheduleRow, generate_amortization_schedule
from lease_engine.domain.validation import validate_contract
from lease_engine.models import LeaseContractInput, MarketRateData
from lease_engine.schemas.calculation import (
    AmortizationPeriod,
    CalculationResult,
    LeaseCalculationOutcome,
    OutcomeStatus,
    RateSource,
    ValidationReport,
)
from lease_engine.schemas.discount_rate import DiscountRateResult
from lease_engine.schemas.exceptions import AccountingTreatment

logger = logging.getLogger(__name__)


def _rounded_period(row: ScheduleRow) -> AmortizationPeriod:
    return AmortizationPeriod(
        period=row.period,
        date=row.date,
        beginning_liability=round_money(row.beginning_liability),
        interest_expense=round_money(row.interest_expense),
        payment=round_money(row.payment),
        principal_payment=round_money(row.principal_payment),
        ending_liability=round_money(row.ending_liability),
        beginning_asset=round_money(row.beginning_asset),
        amortization=round_money(row.amortization),
        ending_asset=round_money(row.ending_asset),
    )


def annual_rate_for(
    contract: LeaseContractInput,
    market: Optional[MarketRateData] = None,
    settings: Optional[Settings] = None,
) -> Tuple[Decimal, RateSource, Optional[DiscountRateResult]]:
    """The contract's own rate when it has one, otherwise a resolved rate."""
    if contract.discount_rate_annual is not None:
        return contract.discount_rate_annual, RateSource.CONTRACT, None
    discount_rate = resolve_discount_rate(contract, market, settings)
    return discount_rate.calculated_rate, RateSource.RESOLVED, discount_rate


def calculate_lease_result(
    contract: LeaseContractInput,
    annual_rate_pct: Decimal,
    rate_source: RateSource = RateSource.CONTRACT,
    right_of_use_asset: Optional[Decimal] = None,
) -> CalculationResult:
    """
    Liability, ROU asset and schedule at a known annual rate (percent).

    `right_of_use_asset` replaces the initial-measurement ROU asset; a
    remeasured lease passes its adjusted carrying amount here.
    """
    monthly_rate = monthly_rate_from_annual(annual_rate_pct)
    liability = initial_lease_liability(contract, annual_rate_pct)
    if right_of_use_asset is None:
        rou_asset = initial_right_of_use_asset(liability, contract)
    else:
        rou_asset = right_of_use_asset
    rows: List[ScheduleRow] = generate_amortization_schedule(contract, liability, rou_asset, monthly_rate)

    return CalculationResult(
        lease_liability_initial=round_money(liability),
        right_of_use_asset_initial=round_money(rou_asset),
        amortization_schedule=[_rounded_period(row) for row in rows],
        total_interest_expense=round_money(total(row.interest_expense for row in rows)),
        total_principal_payments=round_money(total(row.principal_payment for row in rows)),
        total_lease_payments=round_money(total(row.payment for row in rows)),
        residual_value_outstanding=round_money(rows[-1].ending_liability),
        discount_rate_annual=round_rate(annual_rate_pct),
        effective_interest_rate_annual=round_rate(annual_rate_from_monthly(monthly_rate)),
        effective_interest_rate_monthly=round_rate(monthly_rate * HUNDRED),
        rate_source=rate_source,
    )


def calculate_lease(
    contract: LeaseContractInput,
    market: Optional[MarketRateData] = None,
    elect_exemptions: bool = True,
    settings: Optional[Settings] = None,
) -> LeaseCalculationOutcome:
    """
    Full IFRS 16 pipeline for one contract.

    validation -> exemption check -> discount rate -> liability -> ROU asset
    -> schedule. An invalid contract stops after validation; a contract that
    qualifies for an exemption (and elects it) stops after the exemption
    check with the simplified policy.
    """
    validation = validate_contract(contract)
    report = ValidationReport.from_result(validation)
    if not validation.is_valid:
        logger.info(
            "Contract %s failed validation: %s",
            contract.contract_id,
            ", ".join(issue.code for issue in validation.errors),
        )
        return LeaseCalculationOutcome(status=OutcomeStatus.INVALID, validation=report)

    analysis = classify_exceptions(contract)
    if elect_exemptions and analysis.accounting_treatment == AccountingTreatment.SIMPLIFIED:
        logger.info("Contract %s takes the %s exemption", contract.contract_id, analysis.exception_type.value)
        return LeaseCalculationOutcome(
            status=OutcomeStatus.SIMPLIFIED,
            validation=report,
            exception_analysis=analysis,
        )

    annual_rate, rate_source, discount_rate = annual_rate_for(contract, market, settings)

    calculation = calculate_lease_result(contract, annual_rate, rate_source)
    logger.info(
        "Contract %s: liability %s, ROU asset %s over %d periods at %s%%",
        contract.contract_id,
        calculation.lease_liability_initial,
        calculation.right_of_use_asset_initial,
        len(calculation.amortization_schedule),
        calculation.discount_rate_annual,
    )
    return LeaseCalculationOutcome(
        status=OutcomeStatus.FULL,
        validation=report,
        exception_analysis=analysis,
        discount_rate=discount_rate,
        calculation=calculation,
    )


__all__ = ["annual_rate_for", "calculate_lease", "calculate_lease_result"]
