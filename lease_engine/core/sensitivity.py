"""
One-parameter sensitivity of the lease liability and fixed stress scenarios.

Every figure is a full recalculation through calculate_lease_result; nothing
is approximated from derivatives.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from lease_engine.config import Settings
from lease_engine.core.engine import annual_rate_for, calculate_lease_result
from lease_engine.core.money import HUNDRED, ONE, ZERO, add_months, round_money, round_rate, total
from lease_engine.models import LeaseContractInput, MarketRateData
from lease_engine.schemas.calculation import CalculationResult
from lease_engine.schemas.sensitivity import (
    ScenarioType,
    SensitivityAnalysis,
    SensitivityParameter,
    SensitivityResult,
    SensitivityVariation,
    Severity,
    StressScenario,
)

logger = logging.getLogger(__name__)

# percentage points
RATE_VARIATIONS: Tuple[Decimal, ...] = tuple(Decimal(v) for v in ("-2", "-1", "-0.5", "0.5", "1", "2"))
# percent of the monthly payment
PAYMENT_VARIATIONS: Tuple[Decimal, ...] = tuple(Decimal(v) for v in ("-20", "-10", "-5", "5", "10", "20"))
# months
TERM_VARIATIONS: Tuple[int, ...] = (-12, -6, -3, 3, 6, 12)

HIGH_RISK_IMPACT = Decimal("10000")
MEDIUM_RISK_IMPACT = Decimal("5000")


@dataclass(frozen=True)
class _Shock:
    rate_change: Decimal = ZERO
    payment_change_pct: Decimal = ZERO
    term_change_months: int = 0


@dataclass(frozen=True)
class _ScenarioDef:
    scenario_type: ScenarioType
    description: str
    probability: Decimal
    severity: Severity
    shock: _Shock


STRESS_SCENARIOS: Tuple[_ScenarioDef, ...] = (
    _ScenarioDef(
        ScenarioType.INTEREST_RATE_SHOCK,
        "Discount rate up 3 percentage points",
        Decimal("15"),
        Severity.HIGH,
        _Shock(rate_change=Decimal("3")),
    ),
    _ScenarioDef(
        ScenarioType.PAYMENT_REDUCTION,
        "Monthly payment down 20%",
        Decimal("10"),
        Severity.MEDIUM,
        _Shock(payment_change_pct=Decimal("-20")),
    ),
    _ScenarioDef(
        ScenarioType.EARLY_TERMINATION,
        "Lease ends 12 months early",
        Decimal("5"),
        Severity.HIGH,
        _Shock(term_change_months=-12),
    ),
    _ScenarioDef(
        ScenarioType.MARKET_CRASH,
        "Discount rate up 5 percentage points",
        Decimal("3"),
        Severity.EXTREME,
        _Shock(rate_change=Decimal("5")),
    ),
)


def shocked_contract(
    contract: LeaseContractInput,
    annual_rate_pct: Decimal,
    shock: _Shock,
) -> Tuple[LeaseContractInput, Decimal]:
    """The contract and rate after `shock`. The rate stops at 0 and the term at one month."""
    rate = max(ZERO, annual_rate_pct + shock.rate_change)
    term = max(1, contract.lease_term_months + shock.term_change_months)
    shocked = contract.model_copy(
        update={
            "monthly_payment": contract.monthly_payment * (ONE + shock.payment_change_pct / HUNDRED),
            "lease_term_months": term,
            "lease_end_date": add_months(contract.lease_start_date, term),
            "discount_rate_annual": rate,
        }
    )
    return shocked, rate


def _recalculate(contract: LeaseContractInput, annual_rate_pct: Decimal, shock: _Shock) -> CalculationResult:
    shocked, rate = shocked_contract(contract, annual_rate_pct, shock)
    return calculate_lease_result(shocked, rate)


def _variation(
    base: CalculationResult,
    varied: CalculationResult,
    variation: Decimal,
    new_value: Decimal,
) -> SensitivityVariation:
    change = varied.lease_liability_initial - base.lease_liability_initial
    if base.lease_liability_initial == ZERO:
        impact = ZERO
    else:
        impact = change / base.lease_liability_initial * HUNDRED
    return SensitivityVariation(
        variation=variation,
        new_value=new_value,
        lease_liability=varied.lease_liability_initial,
        lease_liability_change=change,
        right_of_use_asset_change=varied.right_of_use_asset_initial - base.right_of_use_asset_initial,
        total_payment_change=varied.total_lease_payments - base.total_lease_payments,
        impact_percentage=round_rate(impact),
    )


def _base_rate(
    contract: LeaseContractInput,
    annual_rate: Optional[Decimal],
    market: Optional[MarketRateData],
    settings: Optional[Settings],
) -> Decimal:
    if annual_rate is not None:
        return annual_rate
    rate, _, _ = annual_rate_for(contract, market, settings)
    return rate


def rate_sensitivity(
    contract: LeaseContractInput,
    annual_rate: Optional[Decimal] = None,
    variations: Sequence[Decimal] = RATE_VARIATIONS,
    market: Optional[MarketRateData] = None,
    settings: Optional[Settings] = None,
) -> SensitivityResult:
    """Liability response to the annual discount rate moving by each of `variations` (pp)."""
    rate = _base_rate(contract, annual_rate, market, settings)
    base = calculate_lease_result(contract, rate)
    rows = []
    for change in variations:
        varied = _recalculate(contract, rate, _Shock(rate_change=change))
        rows.append(_variation(base, varied, change, round_rate(max(ZERO, rate + change))))
    return SensitivityResult(
        parameter=SensitivityParameter.DISCOUNT_RATE,
        unit="percentage_points",
        base_value=round_rate(rate),
        variations=rows,
    )


def payment_sensitivity(
    contract: LeaseContractInput,
    annual_rate: Optional[Decimal] = None,
    variations: Sequence[Decimal] = PAYMENT_VARIATIONS,
    market: Optional[MarketRateData] = None,
    settings: Optional[Settings] = None,
) -> SensitivityResult:
    rate = _base_rate(contract, annual_rate, market, settings)
    base = calculate_lease_result(contract, rate)
    rows = []
    for change in variations:
        varied = _recalculate(contract, rate, _Shock(payment_change_pct=change))
        new_payment = contract.monthly_payment * (ONE + change / HUNDRED)
        rows.append(_variation(base, varied, change, round_money(new_payment)))
    return SensitivityResult(
        parameter=SensitivityParameter.MONTHLY_PAYMENT,
        unit="percent",
        base_value=round_money(contract.monthly_payment),
        variations=rows,
    )


def term_sensitivity(
    contract: LeaseContractInput,
    annual_rate: Optional[Decimal] = None,
    variations: Sequence[int] = TERM_VARIATIONS,
    market: Optional[MarketRateData] = None,
    settings: Optional[Settings] = None,
) -> SensitivityResult:
    rate = _base_rate(contract, annual_rate, market, settings)
    base = calculate_lease_result(contract, rate)
    rows = []
    for change in variations:
        varied = _recalculate(contract, rate, _Shock(term_change_months=change))
        new_term = max(1, contract.lease_term_months + change)
        rows.append(_variation(base, varied, Decimal(change), Decimal(new_term)))
    return SensitivityResult(
        parameter=SensitivityParameter.LEASE_TERM,
        unit="months",
        base_value=Decimal(contract.lease_term_months),
        variations=rows,
    )


def stress_scenarios(contract: LeaseContractInput, annual_rate: Decimal) -> List[StressScenario]:
    base = calculate_lease_result(contract, annual_rate)
    scenarios = []
    for defn in STRESS_SCENARIOS:
        varied = _recalculate(contract, annual_rate, defn.shock)
        liability_change = varied.lease_liability_initial - base.lease_liability_initial
        asset_change = varied.right_of_use_asset_initial - base.right_of_use_asset_initial
        financial_impact = liability_change + asset_change
        scenarios.append(
            StressScenario(
                scenario_type=defn.scenario_type,
                description=defn.description,
                probability=defn.probability,
                severity=defn.severity,
                discount_rate_change=defn.shock.rate_change,
                payment_change_percent=defn.shock.payment_change_pct,
                term_change_months=defn.shock.term_change_months,
                lease_liability_change=liability_change,
                right_of_use_asset_change=asset_change,
                total_financial_impact=financial_impact,
                probability_weighted_impact=round_money(financial_impact * defn.probability / HUNDRED),
            )
        )
    return scenarios


def overall_risk(total_weighted_impact: Decimal) -> Severity:
    magnitude = abs(total_weighted_impact)
    if magnitude > HIGH_RISK_IMPACT:
        return Severity.HIGH
    if magnitude > MEDIUM_RISK_IMPACT:
        return Severity.MEDIUM
    return Severity.LOW


def analyze_sensitivity(
    contract: LeaseContractInput,
    market: Optional[MarketRateData] = None,
    settings: Optional[Settings] = None,
) -> SensitivityAnalysis:
    """Rate, payment and term sensitivities plus the stress scenarios for one contract."""
    rate, rate_source, _ = annual_rate_for(contract, market, settings)
    base = calculate_lease_result(contract, rate, rate_source)

    sensitivities = [
        rate_sensitivity(contract, rate),
        payment_sensitivity(contract, rate),
        term_sensitivity(contract, rate),
    ]
    # first listed wins a tie
    most_sensitive = max(sensitivities, key=lambda s: s.max_abs_impact)
    scenarios = stress_scenarios(contract, rate)
    weighted = total(s.probability_weighted_impact for s in scenarios)

    logger.info(
        "Contract %s sensitivity: most sensitive to %s, weighted stress impact %s",
        contract.contract_id,
        most_sensitive.parameter.value,
        weighted,
    )
    return SensitivityAnalysis(
        contract_id=contract.contract_id,
        discount_rate_annual=base.discount_rate_annual,
        rate_source=rate_source,
        base_lease_liability=base.lease_liability_initial,
        base_right_of_use_asset=base.right_of_use_asset_initial,
        base_total_payments=base.total_lease_payments,
        sensitivities=sensitivities,
        stress_scenarios=scenarios,
        most_sensitive_parameter=most_sensitive.parameter,
        total_probability_weighted_impact=weighted,
        overall_risk=overall_risk(weighted),
    )


__all__ = [
    "RATE_VARIATIONS",
    "PAYMENT_VARIATIONS",
    "TERM_VARIATIONS",
    "STRESS_SCENARIOS",
    "shocked_contract",
    "rate_sensitivity",
    "payment_sensitivity",
    "term_sensitivity",
    "stress_scenarios",
    "overall_risk",
    "analyze_sensitivity",
]
