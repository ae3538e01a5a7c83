"""Data contracts for lease liability, ROU asset and schedule results."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from lease_engine.domain.validation import ValidationResult
from lease_engine.schemas.discount_rate import DiscountRateResult
from lease_engine.schemas.exceptions import ExceptionAnalysis


class RateSource(str, Enum):
    CONTRACT = "contract"
    RESOLVED = "resolved"


class OutcomeStatus(str, Enum):
    INVALID = "invalid"
    SIMPLIFIED = "simplified"
    FULL = "full"


class AmortizationPeriod(BaseModel):
    """Single month of the liability and ROU asset roll-forward."""

    period: int = Field(..., ge=1)
    date: dt.date
    beginning_liability: Decimal
    interest_expense: Decimal
    payment: Decimal
    principal_payment: Decimal
    ending_liability: Decimal
    beginning_asset: Decimal
    amortization: Decimal
    ending_asset: Decimal


class CalculationResult(BaseModel):
    """Initial measurement plus the full schedule, rounded to cents."""

    lease_liability_initial: Decimal
    right_of_use_asset_initial: Decimal
    amortization_schedule: List[AmortizationPeriod]

    total_interest_expense: Decimal
    total_principal_payments: Decimal
    total_lease_payments: Decimal = Field(..., description="Sum of payments settled by the schedule.")
    residual_value_outstanding: Decimal = Field(
        ..., description="Guaranteed residual value still owed after the last period."
    )

    discount_rate_annual: Decimal = Field(..., description="Annual rate (percent) the schedule was built on.")
    effective_interest_rate_annual: Decimal
    effective_interest_rate_monthly: Decimal
    rate_source: RateSource


class ValidationIssueModel(BaseModel):
    code: str
    message: str
    field: Optional[str] = None


class ValidationReport(BaseModel):
    is_valid: bool
    errors: List[ValidationIssueModel] = Field(default_factory=list)
    warnings: List[ValidationIssueModel] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: ValidationResult) -> "ValidationReport":
        return cls.model_validate(result.to_dict())


class LeaseCalculationOutcome(BaseModel):
    status: OutcomeStatus
    validation: ValidationReport
    exception_analysis: Optional[ExceptionAnalysis] = None
    discount_rate: Optional[DiscountRateResult] = None
    calculation: Optional[CalculationResult] = None


__all__ = [
    "RateSource",
    "OutcomeStatus",
    "AmortizationPeriod",
    "CalculationResult",
    "ValidationIssueModel",
    "ValidationReport",
    "LeaseCalculationOutcome",
]
