"""Short-term and low-value lease exemptions (IFRS 16.5-8)."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from lease_engine.config import Settings, get_settings
from lease_engine.core.money import HUNDRED, ZERO, months_between, total
from lease_engine.models import AssetType, LeaseContractInput
from lease_engine.schemas.exceptions import (
    AccountingTreatment,
    ExceptionAnalysis,
    ExceptionCriteriaReview,
    ExceptionSummary,
    ExceptionType,
    ExpenseRecognition,
    LowValueCriteria,
    ShortTermCriteria,
    SimplifiedAccounting,
)

logger = logging.getLogger(__name__)

SHORT_TERM_MAX_MONTHS = 12
RENEWAL_PROBABILITY_THRESHOLD = Decimal("50")

LOW_VALUE_THRESHOLDS: Dict[str, Decimal] = {
    "BRL": Decimal("5000"),
    "USD": Decimal("1000"),
    "EUR": Decimal("1000"),
    "GBP": Decimal("1000"),
    "JPY": Decimal("100000"),
    "CAD": Decimal("1000"),
    "AUD": Decimal("1000"),
    "CHF": Decimal("1000"),
}
DEFAULT_LOW_VALUE_THRESHOLD = Decimal("1000")

BUILDING_ASSET_TYPES = frozenset({AssetType.REAL_ESTATE})


def low_value_threshold(currency_code: str) -> Decimal:
    return LOW_VALUE_THRESHOLDS.get(currency_code, DEFAULT_LOW_VALUE_THRESHOLD)


def has_exercisable_purchase_option(contract: LeaseContractInput) -> bool:
    return any(option.exercisable for option in contract.contract_options.purchase_options)


def mean_renewal_probability(contract: LeaseContractInput) -> Decimal:
    """Average over renewal options; an option without a probability counts as 0."""
    options = contract.contract_options.renewal_options
    if not options:
        return ZERO
    probabilities = [option.probability_percentage or ZERO for option in options]
    return total(probabilities) / len(probabilities)


def analyze_short_term(contract: LeaseContractInput) -> ShortTermCriteria:
    term = contract.lease_term_months
    is_short_term = term <= SHORT_TERM_MAX_MONTHS
    purchase_option = has_exercisable_purchase_option(contract)
    renewal_probability = mean_renewal_probability(contract)

    return ShortTermCriteria(
        lease_term_months=term,
        is_short_term=is_short_term,
        has_purchase_option=purchase_option,
        renewal_probability=renewal_probability,
        meets_criteria=is_short_term and not purchase_option and renewal_probability < RENEWAL_PROBABILITY_THRESHOLD,
    )


def analyze_low_value(contract: LeaseContractInput) -> LowValueCriteria:
    threshold = low_value_threshold(contract.currency_code)
    fair_value = contract.asset_fair_value
    # without a fair value there is nothing to compare against the threshold
    is_low_value = fair_value is not None and fair_value <= threshold

    return LowValueCriteria(
        asset_fair_value=fair_value,
        currency_code=contract.currency_code,
        low_value_threshold=threshold,
        is_low_value=is_low_value,
        asset_type=contract.asset_type,
        meets_criteria=(
            is_low_value
            and contract.asset_type not in BUILDING_ASSET_TYPES
            and not contract.asset_dependent_on_other_assets
        ),
    )


def exception_type_for(short_term: bool, low_value: bool) -> ExceptionType:
    if short_term and low_value:
        return ExceptionType.BOTH
    if short_term:
        return ExceptionType.SHORT_TERM
    if low_value:
        return ExceptionType.LOW_VALUE
    return ExceptionType.NONE


def total_undiscounted_payments(contract: LeaseContractInput) -> Decimal:
    """Base payments, initial payment and in-term variable payments."""
    term = contract.lease_term_months
    variable = total(
        payment.amount
        for payment in contract.variable_payments
        if 0 <= months_between(contract.lease_start_date, payment.date) < term
    )
    return contract.monthly_payment * term + contract.initial_payment + variable


def simplified_accounting(contract: LeaseContractInput, exception_type: ExceptionType) -> SimplifiedAccounting:
    term = max(contract.lease_term_months, 1)
    periodic_expense = total_undiscounted_payments(contract) / term

    if exception_type == ExceptionType.SHORT_TERM:
        return SimplifiedAccounting(
            expense_recognition=ExpenseRecognition.STRAIGHT_LINE,
            measurement_basis="Lease payments expensed on a straight-line basis over the lease term",
            disclosure_requirements=[
                "Identification of short-term leases",
                "Expense relating to short-term leases",
                "Expense recognition policy",
            ],
            periodic_expense=periodic_expense,
        )
    if exception_type == ExceptionType.LOW_VALUE:
        return SimplifiedAccounting(
            expense_recognition=ExpenseRecognition.SYSTEMATIC_BASIS,
            measurement_basis="Lease payments expensed on a systematic basis over the lease term",
            disclosure_requirements=[
                "Identification of low-value asset leases",
                "Expense relating to leases of low-value assets",
                "Criteria used for the low-value classification",
            ],
            periodic_expense=periodic_expense,
        )
    if exception_type == ExceptionType.BOTH:
        return SimplifiedAccounting(
            expense_recognition=ExpenseRecognition.STRAIGHT_LINE,
            measurement_basis="Lease payments expensed on a straight-line basis (both exemptions apply)",
            disclosure_requirements=[
                "Identification of short-term and low-value leases",
                "Expense relating to exempt leases",
                "Consolidated expense recognition policy",
            ],
            periodic_expense=periodic_expense,
        )
    return SimplifiedAccounting(
        expense_recognition=ExpenseRecognition.STRAIGHT_LINE,
        measurement_basis="Full IFRS 16 measurement of lease liability and right-of-use asset",
        disclosure_requirements=[],
        periodic_expense=periodic_expense,
    )


def _justification(
    exception_type: ExceptionType,
    short_term: ShortTermCriteria,
    low_value: LowValueCriteria,
) -> str:
    if exception_type == ExceptionType.NONE:
        return "Contract does not qualify for the IFRS 16.5-8 exemptions; full IFRS 16 applies."

    reasons: List[str] = []
    if short_term.meets_criteria:
        reasons.append(
            f"Short-term lease: {short_term.lease_term_months} months <= {SHORT_TERM_MAX_MONTHS}, "
            f"no purchase option, renewal probability {short_term.renewal_probability}%"
        )
    if low_value.meets_criteria:
        reasons.append(
            f"Low-value asset: fair value {low_value.asset_fair_value} {low_value.currency_code} "
            f"<= threshold {low_value.low_value_threshold} {low_value.currency_code}, "
            f"asset type {low_value.asset_type.value}"
        )
    return "; ".join(reasons)


def classify_exceptions(contract: LeaseContractInput) -> ExceptionAnalysis:
    short_term = analyze_short_term(contract)
    low_value = analyze_low_value(contract)
    exception_type = exception_type_for(short_term.meets_criteria, low_value.meets_criteria)
    treatment = AccountingTreatment.FULL if exception_type == ExceptionType.NONE else AccountingTreatment.SIMPLIFIED

    logger.debug("Contract %s exemption: %s", contract.contract_id, exception_type.value)
    return ExceptionAnalysis(
        contract_id=contract.contract_id,
        exception_type=exception_type,
        short_term_criteria=short_term,
        low_value_criteria=low_value,
        accounting_treatment=treatment,
        simplified_accounting=simplified_accounting(contract, exception_type),
        justification=_justification(exception_type, short_term, low_value),
        review_required=exception_type != ExceptionType.NONE,
    )


def validate_exception_criteria(contract: LeaseContractInput) -> ExceptionCriteriaReview:
    """Audit findings explaining why a near-miss contract does not qualify."""
    short_term = analyze_short_term(contract)
    low_value = analyze_low_value(contract)
    errors: List[str] = []
    recommendations: List[str] = []

    if short_term.is_short_term and short_term.has_purchase_option:
        errors.append("A short-term lease with a purchase option cannot use the short-term exemption")
        recommendations.append("Remove the purchase option or apply full IFRS 16")

    if short_term.is_short_term and short_term.renewal_probability >= RENEWAL_PROBABILITY_THRESHOLD:
        errors.append("A renewal probability of 50% or more prevents the short-term exemption")
        recommendations.append("Review the renewal probability or apply full IFRS 16")

    if low_value.is_low_value and low_value.asset_type in BUILDING_ASSET_TYPES:
        errors.append("Real estate does not qualify for the low-value exemption")
        recommendations.append("Apply full IFRS 16 to real estate leases")

    if low_value.asset_fair_value is not None and low_value.asset_fair_value > low_value.low_value_threshold * 2:
        recommendations.append("Asset value is well above the low-value threshold; review the classification")

    return ExceptionCriteriaReview(
        is_valid=not errors,
        validation_errors=errors,
        recommendations=recommendations,
    )


def summarize_exceptions(
    contracts: Iterable[LeaseContractInput],
    currency_code: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> ExceptionSummary:
    """Portfolio view; contract value is monthly payment x term."""
    contracts = list(contracts)
    short_term_count = low_value_count = exception_count = 0
    exception_value = ZERO
    portfolio_value = ZERO

    for contract in contracts:
        analysis = classify_exceptions(contract)
        value = contract.monthly_payment * contract.lease_term_months
        portfolio_value += value

        if analysis.short_term_criteria.meets_criteria:
            short_term_count += 1
        if analysis.low_value_criteria.meets_criteria:
            low_value_count += 1
        if analysis.exception_type != ExceptionType.NONE:
            exception_count += 1
            exception_value += value

    if currency_code is None:
        currency_code = contracts[0].currency_code if contracts else (settings or get_settings()).home_currency

    return ExceptionSummary(
        total_contracts=len(contracts),
        short_term_contracts=short_term_count,
        low_value_contracts=low_value_count,
        exception_contracts=exception_count,
        total_exception_value=exception_value,
        currency_code=currency_code,
        percentage_of_total=exception_value / portfolio_value * HUNDRED if portfolio_value > ZERO else ZERO,
    )


__all__ = [
    "LOW_VALUE_THRESHOLDS",
    "DEFAULT_LOW_VALUE_THRESHOLD",
    "low_value_threshold",
    "has_exercisable_purchase_option",
    "mean_renewal_probability",
    "analyze_short_term",
    "analyze_low_value",
    "exception_type_for",
    "total_undiscounted_payments",
    "simplified_accounting",
    "classify_exceptions",
    "validate_exception_criteria",
    "summarize_exceptions",
]
