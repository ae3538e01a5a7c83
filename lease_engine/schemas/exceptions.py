"""Data contracts for the short-term and low-value exemption analysis."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from lease_engine.models import AssetType


class ExceptionType(str, Enum):
    NONE = "none"
    SHORT_TERM = "short_term"
    LOW_VALUE = "low_value"
    BOTH = "both"


class AccountingTreatment(str, Enum):
    SIMPLIFIED = "simplified"
    FULL = "full"


class ExpenseRecognition(str, Enum):
    STRAIGHT_LINE = "straight_line"
    SYSTEMATIC_BASIS = "systematic_basis"


class ShortTermCriteria(BaseModel):
    lease_term_months: int
    is_short_term: bool
    has_purchase_option: bool
    renewal_probability: Decimal = Field(..., description="Mean renewal probability, 0-100.")
    meets_criteria: bool


class LowValueCriteria(BaseModel):
    asset_fair_value: Optional[Decimal]
    currency_code: str
    low_value_threshold: Decimal
    is_low_value: bool
    asset_type: AssetType
    meets_criteria: bool


class SimplifiedAccounting(BaseModel):
    expense_recognition: ExpenseRecognition
    measurement_basis: str
    disclosure_requirements: List[str] = Field(default_factory=list)
    periodic_expense: Decimal = Field(
        ..., description="Undiscounted lease payments spread evenly over the term."
    )


class ExceptionAnalysis(BaseModel):
    contract_id: Optional[str] = None
    exception_type: ExceptionType
    short_term_criteria: ShortTermCriteria
    low_value_criteria: LowValueCriteria
    accounting_treatment: AccountingTreatment
    simplified_accounting: SimplifiedAccounting
    justification: str
    review_required: bool


class ExceptionCriteriaReview(BaseModel):
    is_valid: bool
    validation_errors: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class ExceptionSummary(BaseModel):
    total_contracts: int
    short_term_contracts: int
    low_value_contracts: int
    exception_contracts: int
    total_exception_value: Decimal
    currency_code: str
    percentage_of_total: Decimal


__all__ = [
    "ExceptionType",
    "AccountingTreatment",
    "ExpenseRecognition",
    "ShortTermCriteria",
    "LowValueCriteria",
    "SimplifiedAccounting",
    "ExceptionAnalysis",
    "ExceptionCriteriaReview",
    "ExceptionSummary",
]
