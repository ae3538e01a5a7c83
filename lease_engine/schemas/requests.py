"""Request bodies accepted by the HTTP API."""

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from lease_engine.models import LeaseContractInput, LeaseModification, MarketRateData


class DiscountRateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    contract: LeaseContractInput
    market: Optional[MarketRateData] = None


class CalculationRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    contract: LeaseContractInput
    market: Optional[MarketRateData] = None
    elect_exemptions: bool = Field(
        True,
        description="Apply the short-term / low-value simplification when the contract qualifies.",
    )


class ExceptionSummaryRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    contracts: List[LeaseContractInput] = Field(default_factory=list)


class ModificationRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    contract: LeaseContractInput
    modification: LeaseModification
    revised_rate: Optional[Decimal] = Field(
        None,
        description="Annual rate in percent at the effective date. Omit to keep the contract rate.",
    )
    market: Optional[MarketRateData] = None


class SensitivityRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    contract: LeaseContractInput
    market: Optional[MarketRateData] = None


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
