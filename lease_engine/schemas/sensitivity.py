"""Data contracts for sensitivity analysis and stress scenarios."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from lease_engine.schemas.calculation import RateSource


class SensitivityParameter(str, Enum):
    DISCOUNT_RATE = "discount_rate_annual"
    MONTHLY_PAYMENT = "monthly_payment"
    LEASE_TERM = "lease_term_months"


class ScenarioType(str, Enum):
    INTEREST_RATE_SHOCK = "interest_rate_shock"
    PAYMENT_REDUCTION = "payment_reduction"
    EARLY_TERMINATION = "early_termination"
    MARKET_CRASH = "market_crash"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EXTREME = "extreme"


class SensitivityVariation(BaseModel):
    variation: Decimal = Field(..., description="Change applied, in the parameter's unit.")
    new_value: Decimal
    lease_liability: Decimal
    lease_liability_change: Decimal
    right_of_use_asset_change: Decimal
    total_payment_change: Decimal
    impact_percentage: Decimal = Field(..., description="Liability change as a percent of the base liability.")


class SensitivityResult(BaseModel):
    parameter: SensitivityParameter
    unit: str
    base_value: Decimal
    variations: List[SensitivityVariation] = Field(default_factory=list)

    @property
    def max_abs_impact(self) -> Decimal:
        return max((abs(v.impact_percentage) for v in self.variations), default=Decimal("0"))


class StressScenario(BaseModel):
    scenario_type: ScenarioType
    description: str
    probability: Decimal = Field(..., description="Percent, 0-100.")
    severity: Severity
    discount_rate_change: Decimal = Decimal("0")
    payment_change_percent: Decimal = Decimal("0")
    term_change_months: int = 0
    lease_liability_change: Decimal
    right_of_use_asset_change: Decimal
    total_financial_impact: Decimal
    probability_weighted_impact: Decimal


class SensitivityAnalysis(BaseModel):
    contract_id: Optional[str] = None
    discount_rate_annual: Decimal
    rate_source: RateSource
    base_lease_liability: Decimal
    base_right_of_use_asset: Decimal
    base_total_payments: Decimal
    sensitivities: List[SensitivityResult]
    stress_scenarios: List[StressScenario]
    most_sensitive_parameter: SensitivityParameter
    total_probability_weighted_impact: Decimal
    overall_risk: Severity


__all__ = [
    "SensitivityParameter",
    "ScenarioType",
    "Severity",
    "SensitivityVariation",
    "SensitivityResult",
    "StressScenario",
    "SensitivityAnalysis",
]
