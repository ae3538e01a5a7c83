"""Data contracts for lease modification remeasurement (IFRS 16.39-46)."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from lease_engine.models import ModificationType
from lease_engine.schemas.calculation import CalculationResult


class MeasurementSnapshot(BaseModel):
    """Carrying amounts and terms on one side of the effective date."""

    lease_liability: Decimal
    right_of_use_asset: Decimal
    remaining_term_months: int
    monthly_payment: Decimal
    discount_rate_annual: Decimal


class ModificationImpact(BaseModel):
    liability_change: Decimal
    asset_change: Decimal
    payment_change: Decimal
    rate_change: Decimal
    term_change: int = Field(..., description="Change in remaining months.")
    gain_or_loss: Decimal = Field(
        ...,
        description="Recognised in profit or loss; positive is a gain.",
    )
    net_impact: Decimal


class ModificationResult(BaseModel):
    contract_id: Optional[str] = None
    modification_type: ModificationType
    effective_date: dt.date
    periods_elapsed: int = Field(..., ge=0)
    before: MeasurementSnapshot
    after: MeasurementSnapshot
    impact: ModificationImpact
    calculation: Optional[CalculationResult] = Field(
        None,
        description="Remeasured schedule from the effective date; None after a termination.",
    )


__all__ = ["MeasurementSnapshot", "ModificationImpact", "ModificationResult"]
