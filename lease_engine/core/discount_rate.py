"""Discount rate derivation (IFRS 16.26).

Three methods, tried in order of preference:

  1) incremental borrowing rate: base rate + risk adjustments looked up from
     the contract's term, asset type and currency;
  2) implicit rate: the monthly rate at which the payment annuity is worth
     the asset's fair value, solved with Newton-Raphson;
  3) market composite: base rate + credit spread + asset type multiplier +
     term adjustment. Always available, so it is the fallback.

The first of (1) and (2) with high or medium confidence wins; otherwise (3)
is returned. A method that cannot run is skipped, never raised.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, List, Optional

from lease_engine.config import Settings, get_settings
from lease_engine.core.liability import annuity_present_value
from lease_engine.core.money import HUNDRED, ONE, TWELVE, ZERO, total
from lease_engine.models import AssetType, LeaseContractInput, MarketRateData
from lease_engine.schemas.discount_rate import (
    AttemptOutcome,
    Confidence,
    DiscountRateResult,
    MethodAttempt,
    RateMethod,
    RateValidation,
    ResolvedMarketData,
    RiskAdjustment,
    SolverDiagnostics,
)

logger = logging.getLogger(__name__)

ASSET_RISK: Dict[AssetType, Decimal] = {
    AssetType.REAL_ESTATE: Decimal("0.2"),  # stable value
    AssetType.EQUIPMENT: Decimal("0.5"),
    AssetType.VEHICLE: Decimal("0.8"),
    AssetType.MACHINERY: Decimal("0.6"),
    AssetType.TECHNOLOGY: Decimal("1.2"),  # obsolescence
    AssetType.OTHER: Decimal("0.7"),
}

SOLVER_INITIAL_GUESS = Decimal("0.01")  # 1% a month
SOLVER_RATE_TOLERANCE = Decimal("0.0001")
SOLVER_PV_TOLERANCE = Decimal("0.005")
SOLVER_MAX_ITERATIONS = 100

HIGH_CONFIDENCE_MAX = Decimal("25")
MEDIUM_CONFIDENCE_MAX = Decimal("50")
HIGH_RISK_SPREAD = Decimal("5")


# ---------------------------------------------------------------------------
# Risk lookups
# ---------------------------------------------------------------------------


def credit_risk_adjustment(term_months: int) -> Decimal:
    if term_months <= 12:
        return Decimal("0.5")
    if term_months <= 36:
        return Decimal("1.0")
    return Decimal("1.5")


def asset_risk_adjustment(asset_type: AssetType) -> Decimal:
    return ASSET_RISK.get(asset_type, ASSET_RISK[AssetType.OTHER])


def term_risk_adjustment(term_months: int) -> Decimal:
    if term_months <= 12:
        return Decimal("0.0")
    if term_months <= 24:
        return Decimal("0.2")
    if term_months <= 36:
        return Decimal("0.4")
    if term_months <= 60:
        return Decimal("0.6")
    return Decimal("0.8")


def risk_adjustments(contract: LeaseContractInput, settings: Optional[Settings] = None) -> List[RiskAdjustment]:
    settings = settings or get_settings()
    term = contract.lease_term_months
    adjustments = [
        RiskAdjustment(
            factor="credit_risk",
            adjustment=credit_risk_adjustment(term),
            justification=f"Lessee credit risk for a {term}-month commitment",
        ),
        RiskAdjustment(
            factor="asset_risk",
            adjustment=asset_risk_adjustment(contract.asset_type),
            justification=f"Collateral quality of a {contract.asset_type.value} asset",
        ),
        RiskAdjustment(
            factor="term_risk",
            adjustment=term_risk_adjustment(term),
            justification=f"Term premium for {term} months",
        ),
    ]
    if contract.currency_code != settings.home_currency:
        adjustments.append(
            RiskAdjustment(
                factor="currency_risk",
                adjustment=settings.currency_risk_adjustment,
                justification=f"Exposure to {contract.currency_code} against {settings.home_currency}",
            )
        )
    return adjustments


def resolve_market_data(
    contract: LeaseContractInput,
    market: Optional[MarketRateData] = None,
    settings: Optional[Settings] = None,
) -> ResolvedMarketData:
    """Fill each missing market input with its default. An explicit 0 is kept."""
    settings = settings or get_settings()
    market = market or MarketRateData()

    def pick(value: Optional[Decimal], default: Decimal) -> Decimal:
        return default if value is None else value

    return ResolvedMarketData(
        base_rate=pick(market.base_rate, settings.default_base_rate),
        credit_spread=pick(market.credit_spread, settings.default_credit_spread),
        asset_type_multiplier=pick(market.asset_type_multiplier, asset_risk_adjustment(contract.asset_type)),
        term_adjustment=pick(market.term_adjustment, term_risk_adjustment(contract.lease_term_months)),
    )


# ---------------------------------------------------------------------------
# Rate checks
# ---------------------------------------------------------------------------


def assess_confidence(rate: Decimal) -> Confidence:
    if ZERO <= rate <= HIGH_CONFIDENCE_MAX:
        return Confidence.HIGH
    if HIGH_CONFIDENCE_MAX < rate <= MEDIUM_CONFIDENCE_MAX:
        return Confidence.MEDIUM
    return Confidence.LOW


def validate_rate(rate: Decimal, base_rate: Decimal) -> RateValidation:
    high_risk = rate > base_rate + HIGH_RISK_SPREAD
    return RateValidation(
        is_reasonable=ZERO <= rate <= HUNDRED,
        comparison_with_market=abs(rate - base_rate),
        high_risk=high_risk,
        risk_assessment="high risk" if high_risk else "moderate risk",
    )


# ---------------------------------------------------------------------------
# Implicit rate solver
# ---------------------------------------------------------------------------


def annuity_present_value_derivative(payment: Decimal, monthly_rate: Decimal, periods: int) -> Decimal:
    """d(PV)/dr of the ordinary annuity; 0 at r = 0."""
    if monthly_rate == ZERO:
        return ZERO
    present_value = annuity_present_value(payment, monthly_rate, periods)
    return (payment * periods * (ONE + monthly_rate) ** (-periods - 1) - present_value) / monthly_rate


def solve_implicit_monthly_rate(
    fair_value: Decimal,
    payment: Decimal,
    periods: int,
    initial_guess: Decimal = SOLVER_INITIAL_GUESS,
    tolerance: Decimal = SOLVER_RATE_TOLERANCE,
    max_iterations: int = SOLVER_MAX_ITERATIONS,
) -> SolverDiagnostics:
    """
    Newton-Raphson for r in annuity_present_value(payment, r, periods) = fair_value.

    Converged means the last step moved the rate by less than `tolerance`
    and the annuity is within half a cent of the fair value. A Newton step
    that would land at or below -100% is replaced by a move halfway towards
    -100%, so a fair value above the undiscounted payments still converges to
    its (negative) rate. A zero derivative or hitting the iteration cap stops
    the search with converged=False; it never raises.
    """
    rate = initial_guess
    iterations = 0

    while iterations < max_iterations:
        iterations += 1
        present_value = annuity_present_value(payment, rate, periods)
        derivative = annuity_present_value_derivative(payment, rate, periods)
        if derivative == ZERO:
            break

        next_rate = rate - (present_value - fair_value) / derivative
        if next_rate <= -ONE:
            # overshoot past -100%: move halfway towards it instead
            next_rate = (rate - ONE) / 2

        step = abs(next_rate - rate)
        rate = next_rate
        if step < tolerance:
            residual = abs(annuity_present_value(payment, rate, periods) - fair_value)
            if residual <= SOLVER_PV_TOLERANCE:
                logger.debug("Implicit rate solver converged in %d iterations: %s a month", iterations, rate)
                return SolverDiagnostics(converged=True, iterations=iterations, monthly_rate=rate)

    logger.warning(
        "Implicit rate solver did not converge after %d iterations (fair value %s, payment %s, %d periods)",
        iterations,
        fair_value,
        payment,
        periods,
    )
    return SolverDiagnostics(converged=False, iterations=iterations, monthly_rate=rate)


# ---------------------------------------------------------------------------
# Methods
# ---------------------------------------------------------------------------


def incremental_borrowing_rate(
    contract: LeaseContractInput,
    market_data: ResolvedMarketData,
    settings: Optional[Settings] = None,
) -> DiscountRateResult:
    adjustments = risk_adjustments(contract, settings)
    total_adjustment = total(adj.adjustment for adj in adjustments)
    rate = market_data.base_rate + total_adjustment

    return DiscountRateResult(
        calculated_rate=rate,
        method=RateMethod.INCREMENTAL_BORROWING,
        confidence=assess_confidence(rate),
        base_rate=market_data.base_rate,
        risk_adjustments=adjustments,
        justification=(
            f"Incremental borrowing rate: base rate {market_data.base_rate}% plus "
            f"{total_adjustment} points of contract-specific risk adjustments (IFRS 16.26)"
        ),
        market_data=market_data,
        validation=validate_rate(rate, market_data.base_rate),
    )


def implicit_rate(contract: LeaseContractInput, market_data: ResolvedMarketData) -> Optional[DiscountRateResult]:
    """Rate implicit in the lease, or None when the asset fair value is unknown."""
    fair_value = contract.asset_fair_value
    if fair_value is None or fair_value <= ZERO:
        return None

    solved = solve_implicit_monthly_rate(fair_value, contract.monthly_payment, contract.lease_term_months)
    rate = solved.monthly_rate * TWELVE * HUNDRED
    confidence = assess_confidence(rate) if solved.converged else Confidence.LOW

    return DiscountRateResult(
        calculated_rate=rate,
        method=RateMethod.IMPLICIT,
        confidence=confidence,
        base_rate=market_data.base_rate,
        justification=(
            f"Rate implicit in the lease: equates {contract.lease_term_months} payments of "
            f"{contract.monthly_payment} with the asset fair value of {fair_value}"
        ),
        market_data=market_data,
        validation=validate_rate(rate, market_data.base_rate),
        solver=solved,
    )


def market_based_rate(market_data: ResolvedMarketData) -> DiscountRateResult:
    rate = (
        market_data.base_rate
        + market_data.credit_spread
        + market_data.asset_type_multiplier
        + market_data.term_adjustment
    )
    return DiscountRateResult(
        calculated_rate=rate,
        method=RateMethod.MARKET_BASED,
        confidence=assess_confidence(rate),
        base_rate=market_data.base_rate,
        risk_adjustments=[
            RiskAdjustment(factor="credit_spread", adjustment=market_data.credit_spread, justification="Credit spread"),
            RiskAdjustment(
                factor="asset_type",
                adjustment=market_data.asset_type_multiplier,
                justification="Asset type adjustment",
            ),
            RiskAdjustment(factor="term", adjustment=market_data.term_adjustment, justification="Lease term adjustment"),
        ],
        justification="Market reference rate plus credit spread, asset type and term adjustments",
        market_data=market_data,
        validation=validate_rate(rate, market_data.base_rate),
    )


def resolve_discount_rate(
    contract: LeaseContractInput,
    market: Optional[MarketRateData] = None,
    settings: Optional[Settings] = None,
) -> DiscountRateResult:
    settings = settings or get_settings()
    market_data = resolve_market_data(contract, market, settings)
    attempts: List[MethodAttempt] = []

    candidates = (
        (RateMethod.INCREMENTAL_BORROWING, lambda: incremental_borrowing_rate(contract, market_data, settings)),
        (RateMethod.IMPLICIT, lambda: implicit_rate(contract, market_data)),
    )
    for method, compute in candidates:
        result = compute()
        if result is None:
            logger.debug("Discount rate method %s skipped: inputs unavailable", method.value)
            attempts.append(
                MethodAttempt(method=method, outcome=AttemptOutcome.SKIPPED, reason="asset fair value not provided")
            )
            continue

        if result.confidence in (Confidence.HIGH, Confidence.MEDIUM):
            attempts.append(
                MethodAttempt(
                    method=method,
                    outcome=AttemptOutcome.ACCEPTED,
                    calculated_rate=result.calculated_rate,
                    confidence=result.confidence,
                )
            )
            logger.info("Discount rate %s%% via %s (%s)", result.calculated_rate, method.value, result.confidence.value)
            return result.model_copy(update={"attempts": attempts})

        logger.debug("Discount rate method %s rejected: %s%% has low confidence", method.value, result.calculated_rate)
        attempts.append(
            MethodAttempt(
                method=method,
                outcome=AttemptOutcome.REJECTED,
                calculated_rate=result.calculated_rate,
                confidence=result.confidence,
                reason="low confidence",
            )
        )

    fallback = market_based_rate(market_data)
    attempts.append(
        MethodAttempt(
            method=RateMethod.MARKET_BASED,
            outcome=AttemptOutcome.ACCEPTED,
            calculated_rate=fallback.calculated_rate,
            confidence=fallback.confidence,
            reason="fallback",
        )
    )
    logger.info("Discount rate %s%% via market fallback", fallback.calculated_rate)
    return fallback.model_copy(update={"attempts": attempts})


__all__ = [
    "ASSET_RISK",
    "credit_risk_adjustment",
    "asset_risk_adjustment",
    "term_risk_adjustment",
    "risk_adjustments",
    "resolve_market_data",
    "assess_confidence",
    "validate_rate",
    "annuity_present_value_derivative",
    "solve_implicit_monthly_rate",
    "incremental_borrowing_rate",
    "implicit_rate",
    "market_based_rate",
    "resolve_discount_rate",
]
