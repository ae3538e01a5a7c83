from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Dict, Optional, Tuple

from lease_engine.core.money import HUNDRED, ONE, ZERO, add_months, months_between
from lease_engine.domain.validation import RATE_MAX, RATE_MIN, ValidationIssue, ValidationResult
from lease_engine.models import LeaseContractInput, LeaseModification, ModificationType

# fields of which at least one must be set, per modification type
REQUIRED_FIELDS: Dict[ModificationType, Tuple[str, ...]] = {
    ModificationType.TERM_EXTENSION: ("new_term_months", "term_change_months"),
    ModificationType.TERM_REDUCTION: ("new_term_months", "term_change_months"),
    ModificationType.PAYMENT_CHANGE: (
        "new_monthly_payment",
        "payment_change_amount",
        "payment_change_percentage",
    ),
    ModificationType.RATE_CHANGE: ("new_discount_rate_annual", "rate_change_amount", "rate_change_percentage"),
    ModificationType.ASSET_CHANGE: ("new_asset_fair_value", "asset_change_amount"),
    ModificationType.RENEWAL: ("renewal_term_months",),
}

_TERM_TYPES = (ModificationType.TERM_EXTENSION, ModificationType.TERM_REDUCTION)


def periods_elapsed(contract: LeaseContractInput, effective_date: dt.date) -> int:
    """Whole months of the lease already run when `effective_date` arrives."""
    return months_between(contract.lease_start_date, effective_date)


def modified_term_months(contract: LeaseContractInput, modification: LeaseModification) -> int:
    term = contract.lease_term_months
    kind = modification.modification_type
    if kind in _TERM_TYPES:
        if modification.new_term_months is not None:
            return modification.new_term_months
        if modification.term_change_months is not None:
            return term + modification.term_change_months
    if kind == ModificationType.RENEWAL and modification.renewal_term_months is not None:
        return term + modification.renewal_term_months
    return term


def modified_monthly_payment(contract: LeaseContractInput, modification: LeaseModification) -> Decimal:
    payment = contract.monthly_payment
    kind = modification.modification_type
    if kind == ModificationType.PAYMENT_CHANGE:
        if modification.new_monthly_payment is not None:
            return modification.new_monthly_payment
        if modification.payment_change_amount is not None:
            return payment + modification.payment_change_amount
        if modification.payment_change_percentage is not None:
            return payment * (ONE + modification.payment_change_percentage / HUNDRED)
    if kind == ModificationType.RENEWAL and modification.renewal_monthly_payment is not None:
        return modification.renewal_monthly_payment
    return payment


def modified_discount_rate(contract: LeaseContractInput, modification: LeaseModification) -> Optional[Decimal]:
    """New annual rate; None when the contract has no rate to adjust relatively."""
    rate = contract.discount_rate_annual
    kind = modification.modification_type
    if kind == ModificationType.RATE_CHANGE:
        if modification.new_discount_rate_annual is not None:
            return modification.new_discount_rate_annual
        if rate is None:
            return None
        if modification.rate_change_amount is not None:
            return rate + modification.rate_change_amount
        if modification.rate_change_percentage is not None:
            return rate * (ONE + modification.rate_change_percentage / HUNDRED)
    if kind == ModificationType.RENEWAL and modification.renewal_discount_rate is not None:
        return modification.renewal_discount_rate
    return rate


def modified_asset_fair_value(contract: LeaseContractInput, modification: LeaseModification) -> Optional[Decimal]:
    fair_value = contract.asset_fair_value
    if modification.modification_type == ModificationType.ASSET_CHANGE:
        if modification.new_asset_fair_value is not None:
            return modification.new_asset_fair_value
        if modification.asset_change_amount is not None:
            return (fair_value or ZERO) + modification.asset_change_amount
    return fair_value


def apply_modification(contract: LeaseContractInput, modification: LeaseModification) -> LeaseContractInput:
    """
    Contract terms after the modification, still measured from the original
    commencement date. A termination leaves the terms untouched.
    """
    if modification.modification_type == ModificationType.TERMINATION:
        return contract

    term = modified_term_months(contract, modification)
    update = {
        "lease_term_months": term,
        "monthly_payment": modified_monthly_payment(contract, modification),
        "discount_rate_annual": modified_discount_rate(contract, modification),
        "asset_fair_value": modified_asset_fair_value(contract, modification),
    }
    if term != contract.lease_term_months:
        update["lease_end_date"] = add_months(contract.lease_start_date, term)
    return contract.model_copy(update=update)


def validate_modification(contract: LeaseContractInput, modification: LeaseModification) -> ValidationResult:
    """Check a modification against the contract it changes. Collects everything, never raises."""
    result = ValidationResult()
    errors = result.errors
    kind = modification.modification_type

    if not modification.description.strip():
        errors.append(ValidationIssue("DESCRIPTION_MISSING", "a modification needs a description", "description"))

    if modification.effective_date < modification.modification_date:
        errors.append(
            ValidationIssue(
                "EFFECTIVE_BEFORE_MODIFICATION",
                "effective_date cannot be earlier than modification_date",
                "effective_date",
            )
        )

    elapsed = periods_elapsed(contract, modification.effective_date)
    if elapsed < 0 or elapsed >= contract.lease_term_months:
        errors.append(
            ValidationIssue(
                "EFFECTIVE_DATE_OUTSIDE_TERM",
                "effective_date must fall within the current lease term",
                "effective_date",
            )
        )

    for name in ("modification_fee", "additional_costs", "incentives_received"):
        if getattr(modification, name) < ZERO:
            errors.append(ValidationIssue("AMOUNT_NEGATIVE", f"{name} cannot be negative", name))

    required = REQUIRED_FIELDS.get(kind, ())
    if required and all(getattr(modification, name) is None for name in required):
        errors.append(
            ValidationIssue(
                "MODIFICATION_INCOMPLETE",
                f"{kind.value} needs one of: {', '.join(required)}",
                required[0],
            )
        )
        return result

    if kind == ModificationType.TERMINATION:
        return result

    if modified_term_months(contract, modification) <= max(elapsed, 0):
        errors.append(
            ValidationIssue(
                "TERM_ENDS_BEFORE_EFFECTIVE_DATE",
                "the modified lease term must run past the effective date",
                "new_term_months",
            )
        )

    if modified_monthly_payment(contract, modification) <= ZERO:
        errors.append(
            ValidationIssue(
                "PAYMENT_NOT_POSITIVE",
                "the modified monthly payment must be greater than zero",
                "new_monthly_payment",
            )
        )

    rate = modified_discount_rate(contract, modification)
    if rate is not None and (rate < RATE_MIN or rate > RATE_MAX):
        errors.append(
            ValidationIssue(
                "RATE_OUT_OF_RANGE",
                "the modified discount rate must be between 0% and 100%",
                "new_discount_rate_annual",
            )
        )

    return result


__all__ = [
    "REQUIRED_FIELDS",
    "periods_elapsed",
    "modified_term_months",
    "modified_monthly_payment",
    "modified_discount_rate",
    "modified_asset_fair_value",
    "apply_modification",
    "validate_modification",
]
