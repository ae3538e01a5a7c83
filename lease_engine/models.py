from __future__ import annotations

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PaymentTiming(str, Enum):
    START = "start"  # annuity due
    END = "end"  # ordinary annuity


class AssetType(str, Enum):
    REAL_ESTATE = "real_estate"
    EQUIPMENT = "equipment"
    VEHICLE = "vehicle"
    MACHINERY = "machinery"
    TECHNOLOGY = "technology"
    OTHER = "other"


class VariablePayment(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    date: dt.date
    amount: Decimal
    description: Optional[str] = None


class PurchaseOption(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    price: Decimal = Decimal("0")
    exercisable: bool = False


class RenewalOption(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    term_months: int = 12
    monthly_payment: Decimal = Decimal("0")
    probability_percentage: Optional[Decimal] = None


class ContractOptions(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    purchase_options: List[PurchaseOption] = Field(default_factory=list)
    renewal_options: List[RenewalOption] = Field(default_factory=list)


class LeaseContractInput(BaseModel):
    """
    One lessee contract as supplied by the caller.

    Only the shape is enforced here. Business rules (positive payment, rate
    range, date order...) are checked by domain.validation so that every
    violation can be reported at once.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    contract_id: Optional[str] = None

    lease_start_date: dt.date
    lease_end_date: dt.date
    lease_term_months: int

    monthly_payment: Decimal
    payment_timing: PaymentTiming = PaymentTiming.END
    discount_rate_annual: Optional[Decimal] = Field(
        default=None,
        description="Annual rate in percent. None means derive it.",
    )

    initial_payment: Decimal = Decimal("0")
    initial_direct_costs: Decimal = Decimal("0")
    lease_incentives: Decimal = Decimal("0")
    guaranteed_residual_value: Decimal = Decimal("0")
    variable_payments: List[VariablePayment] = Field(default_factory=list)

    asset_fair_value: Optional[Decimal] = None
    asset_type: AssetType = AssetType.OTHER
    asset_dependent_on_other_assets: bool = False
    currency_code: str = "BRL"

    contract_options: ContractOptions = Field(default_factory=ContractOptions)

    @field_validator("payment_timing", mode="before")
    @classmethod
    def accept_beginning_alias(cls, value):
        if isinstance(value, str) and value.lower() == "beginning":
            return PaymentTiming.START
        return value


class MarketRateData(BaseModel):
    """Optional market inputs for the discount rate. None means use the default."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    base_rate: Optional[Decimal] = None
    credit_spread: Optional[Decimal] = None
    asset_type_multiplier: Optional[Decimal] = None
    term_adjustment: Optional[Decimal] = None


class ModificationType(str, Enum):
    TERM_EXTENSION = "term_extension"
    TERM_REDUCTION = "term_reduction"
    PAYMENT_CHANGE = "payment_change"
    RATE_CHANGE = "rate_change"
    ASSET_CHANGE = "asset_change"
    RENEWAL = "renewal"
    TERMINATION = "termination"


class LeaseModification(BaseModel):
    """
    A change to an existing lease, effective from `effective_date`.

    Each type reads its own group of fields; the first one set wins:
      term_extension / term_reduction: new_term_months, then term_change_months (signed)
      payment_change: new_monthly_payment, payment_change_amount, payment_change_percentage
      rate_change: new_discount_rate_annual, rate_change_amount, rate_change_percentage
      asset_change: new_asset_fair_value, asset_change_amount
      renewal: renewal_term_months (required), renewal_monthly_payment, renewal_discount_rate
      termination: effective_date is the termination date, modification_fee the penalty
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    modification_type: ModificationType
    modification_date: dt.date
    effective_date: dt.date
    description: str = ""

    new_term_months: Optional[int] = None
    term_change_months: Optional[int] = None

    new_monthly_payment: Optional[Decimal] = None
    payment_change_amount: Optional[Decimal] = None
    payment_change_percentage: Optional[Decimal] = None

    new_discount_rate_annual: Optional[Decimal] = None
    rate_change_amount: Optional[Decimal] = None
    rate_change_percentage: Optional[Decimal] = None

    new_asset_fair_value: Optional[Decimal] = None
    asset_change_amount: Optional[Decimal] = None

    renewal_term_months: Optional[int] = None
    renewal_monthly_payment: Optional[Decimal] = None
    renewal_discount_rate: Optional[Decimal] = None

    modification_fee: Decimal = Decimal("0")
    additional_costs: Decimal = Decimal("0")
    incentives_received: Decimal = Decimal("0")


__all__ = [
    "PaymentTiming",
    "AssetType",
    "VariablePayment",
    "PurchaseOption",
    "RenewalOption",
    "ContractOptions",
    "LeaseContractInput",
    "MarketRateData",
    "ModificationType",
    "LeaseModification",
]
