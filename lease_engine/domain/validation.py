from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional

from lease_engine.core.money import ZERO, months_between
from lease_engine.models import LeaseContractInput

TERM_MIN_MONTHS = 1
TERM_MAX_MONTHS = 600  # 50 years
RATE_MIN = Decimal("0")
RATE_MAX = Decimal("100")
RATE_TYPICAL_MIN = Decimal("1")
RATE_TYPICAL_MAX = Decimal("25")

_CURRENCY_RE = re.compile(r"[A-Z]{3}")


class ContractValidationError(ValueError):
    def __init__(self, errors: List["ValidationIssue"]):
        super().__init__("; ".join(issue.message for issue in errors))
        self.errors = errors


@dataclass(frozen=True)
class ValidationIssue:
    code: str
    message: str
    field: Optional[str] = None


@dataclass
class ValidationResult:
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        if self.errors:
            raise ContractValidationError(self.errors)

    def to_dict(self) -> Dict[str, object]:
        return {
            "is_valid": self.is_valid,
            "errors": [asdict(issue) for issue in self.errors],
            "warnings": [asdict(issue) for issue in self.warnings],
        }


def _check_amounts(contract: LeaseContractInput) -> List[ValidationIssue]:
    errors: List[ValidationIssue] = []
    amounts = {
        "initial_payment": contract.initial_payment,
        "initial_direct_costs": contract.initial_direct_costs,
        "lease_incentives": contract.lease_incentives,
        "guaranteed_residual_value": contract.guaranteed_residual_value,
    }
    if contract.asset_fair_value is not None:
        amounts["asset_fair_value"] = contract.asset_fair_value

    for name, amount in amounts.items():
        if amount < ZERO:
            errors.append(ValidationIssue("AMOUNT_NEGATIVE", f"{name} cannot be negative", name))

    for index, payment in enumerate(contract.variable_payments):
        if payment.amount < ZERO:
            errors.append(
                ValidationIssue(
                    "AMOUNT_NEGATIVE",
                    f"variable payment on {payment.date.isoformat()} cannot be negative",
                    f"variable_payments[{index}].amount",
                )
            )
    return errors


def validate_contract(contract: LeaseContractInput) -> ValidationResult:
    """
    Check a contract for computable, internally consistent values.

    Every rule is evaluated; nothing stops at the first failure and nothing
    raises. Warnings flag values that are allowed but probably unintended.
    """
    result = ValidationResult()
    errors = result.errors
    warnings = result.warnings

    if contract.monthly_payment <= ZERO:
        errors.append(
            ValidationIssue("PAYMENT_NOT_POSITIVE", "monthly_payment must be greater than zero", "monthly_payment")
        )

    rate = contract.discount_rate_annual
    if rate is not None:
        if rate < RATE_MIN or rate > RATE_MAX:
            errors.append(
                ValidationIssue(
                    "RATE_OUT_OF_RANGE",
                    "discount_rate_annual must be between 0% and 100%",
                    "discount_rate_annual",
                )
            )
        elif rate < RATE_TYPICAL_MIN or rate > RATE_TYPICAL_MAX:
            warnings.append(
                ValidationIssue(
                    "RATE_ATYPICAL",
                    f"discount rate {rate}% is outside the typical {RATE_TYPICAL_MIN}-{RATE_TYPICAL_MAX}% band",
                    "discount_rate_annual",
                )
            )

    term = contract.lease_term_months
    if term < TERM_MIN_MONTHS:
        errors.append(ValidationIssue("TERM_TOO_SHORT", "lease_term_months must be at least 1", "lease_term_months"))
    elif term > TERM_MAX_MONTHS:
        errors.append(
            ValidationIssue("TERM_TOO_LONG", f"lease_term_months cannot exceed {TERM_MAX_MONTHS}", "lease_term_months")
        )

    if contract.lease_end_date <= contract.lease_start_date:
        errors.append(
            ValidationIssue(
                "END_NOT_AFTER_START", "lease_end_date must be after lease_start_date", "lease_end_date"
            )
        )
    else:
        calendar_months = months_between(contract.lease_start_date, contract.lease_end_date)
        # an end date on the last day of the final month counts one month short
        if term >= TERM_MIN_MONTHS and calendar_months not in (term, term - 1):
            warnings.append(
                ValidationIssue(
                    "TERM_DATE_MISMATCH",
                    f"lease_term_months is {term} but the dates span {calendar_months} months",
                    "lease_term_months",
                )
            )

    if not _CURRENCY_RE.fullmatch(contract.currency_code or ""):
        errors.append(
            ValidationIssue(
                "CURRENCY_INVALID", "currency_code must be a 3-letter ISO code such as BRL", "currency_code"
            )
        )

    errors.extend(_check_amounts(contract))

    for index, option in enumerate(contract.contract_options.renewal_options):
        probability = option.probability_percentage
        if probability is not None and (probability < 0 or probability > 100):
            errors.append(
                ValidationIssue(
                    "PROBABILITY_OUT_OF_RANGE",
                    "renewal probability must be between 0 and 100",
                    f"contract_options.renewal_options[{index}].probability_percentage",
                )
            )

    if term >= TERM_MIN_MONTHS:
        for index, payment in enumerate(contract.variable_payments):
            offset = months_between(contract.lease_start_date, payment.date)
            if offset < 0 or offset >= term:
                warnings.append(
                    ValidationIssue(
                        "VARIABLE_PAYMENT_OUTSIDE_TERM",
                        f"variable payment on {payment.date.isoformat()} falls outside the lease term and is ignored",
                        f"variable_payments[{index}].date",
                    )
                )

    return result


__all__ = [
    "ContractValidationError",
    "ValidationIssue",
    "ValidationResult",
    "validate_contract",
]
