"""Data contracts for discount rate resolution."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class RateMethod(str, Enum):
    INCREMENTAL_BORROWING = "incremental_borrowing_rate"
    IMPLICIT = "implicit_rate"
    MARKET_BASED = "market_rate"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AttemptOutcome(str, Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"  # ran, but confidence was low
    SKIPPED = "skipped"  # inputs unavailable


class RiskAdjustment(BaseModel):
    factor: str
    adjustment: Decimal = Field(..., description="Percentage points added to the base rate.")
    justification: str


class ResolvedMarketData(BaseModel):
    """Market inputs after defaults have been filled in."""

    base_rate: Decimal
    credit_spread: Decimal
    asset_type_multiplier: Decimal
    term_adjustment: Decimal


class RateValidation(BaseModel):
    is_reasonable: bool = Field(..., description="Rate lies within [0, 100].")
    comparison_with_market: Decimal = Field(..., description="Absolute distance from the base rate.")
    high_risk: bool = Field(..., description="Rate exceeds base rate + 5.")
    risk_assessment: str


class SolverDiagnostics(BaseModel):
    converged: bool
    iterations: int = Field(..., ge=0)
    monthly_rate: Decimal


class MethodAttempt(BaseModel):
    method: RateMethod
    outcome: AttemptOutcome
    calculated_rate: Optional[Decimal] = None
    confidence: Optional[Confidence] = None
    reason: str = ""


class DiscountRateResult(BaseModel):
    """Annual discount rate (percent) and how it was derived."""

    calculated_rate: Decimal
    method: RateMethod
    confidence: Confidence
    base_rate: Decimal
    risk_adjustments: List[RiskAdjustment] = Field(default_factory=list)
    justification: str
    market_data: ResolvedMarketData
    validation: RateValidation
    solver: Optional[SolverDiagnostics] = None
    attempts: List[MethodAttempt] = Field(default_factory=list)


__all__ = [
    "RateMethod",
    "Confidence",
    "AttemptOutcome",
    "RiskAdjustment",
    "ResolvedMarketData",
    "RateValidation",
    "SolverDiagnostics",
    "MethodAttempt",
    "DiscountRateResult",
]
