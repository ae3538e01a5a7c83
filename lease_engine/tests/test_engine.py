from __future__ import annotations

from datetime import date
from decimal import Decimal

from lease_engine.config import Settings
from lease_engine.core.engine import calculate_lease, calculate_lease_result
from lease_engine.models import MarketRateData
from lease_engine.schemas.calculation import OutcomeStatus, RateSource
from lease_engine.schemas.discount_rate import RateMethod
from lease_engine.schemas.exceptions import ExceptionType


def test_reference_lease_end_to_end(make_contract):
    outcome = calculate_lease(make_contract())

    assert outcome.status == OutcomeStatus.FULL
    assert outcome.discount_rate is None
    result = outcome.calculation
    assert result.rate_source == RateSource.CONTRACT
    assert abs(result.lease_liability_initial - Decimal("31824.69")) <= Decimal("1.0")
    assert result.right_of_use_asset_initial == result.lease_liability_initial
    assert len(result.amortization_schedule) == 36
    assert result.total_lease_payments == Decimal("36000.00")
    assert result.amortization_schedule[-1].ending_liability == Decimal("0.00")
    assert result.amortization_schedule[-1].ending_asset == Decimal("0.00")


def test_results_are_rounded_to_cents(make_contract):
    result = calculate_lease_result(make_contract(), Decimal("8.5"))

    assert result.lease_liability_initial.as_tuple().exponent == -2
    for period in result.amortization_schedule:
        assert period.interest_expense.as_tuple().exponent == -2
        assert period.ending_liability.as_tuple().exponent == -2
    assert result.discount_rate_annual == Decimal("8.5000")
    assert result.effective_interest_rate_annual == Decimal("8.5000")
    assert result.effective_interest_rate_monthly == Decimal("0.6821")


def test_totals_reconcile(make_contract):
    contract = make_contract(
        guaranteed_residual_value=Decimal("10000"),
        initial_payment=Decimal("2500"),
        payment_timing="start",
    )
    result = calculate_lease_result(contract, Decimal("8.5"))

    assert abs(
        result.total_interest_expense + result.total_principal_payments - result.total_lease_payments
    ) <= Decimal("0.01")
    assert abs(result.residual_value_outstanding - Decimal("10000")) <= Decimal("0.01")
    assert abs(
        result.lease_liability_initial - result.total_principal_payments - result.residual_value_outstanding
    ) <= Decimal("0.02")


def test_invalid_contract_stops_at_validation(make_contract):
    outcome = calculate_lease(make_contract(monthly_payment=Decimal("0"), lease_term_months=0))

    assert outcome.status == OutcomeStatus.INVALID
    assert outcome.validation.is_valid is False
    assert outcome.calculation is None
    assert outcome.exception_analysis is None


def test_exempt_contract_gets_simplified_policy(make_contract):
    outcome = calculate_lease(make_contract(lease_term_months=12, lease_end_date=date(2025, 1, 1)))

    assert outcome.status == OutcomeStatus.SIMPLIFIED
    assert outcome.exception_analysis.exception_type == ExceptionType.SHORT_TERM
    assert outcome.calculation is None


def test_exemption_can_be_declined(make_contract):
    outcome = calculate_lease(
        make_contract(lease_term_months=12, lease_end_date=date(2025, 1, 1)),
        elect_exemptions=False,
    )

    assert outcome.status == OutcomeStatus.FULL
    assert outcome.exception_analysis.exception_type == ExceptionType.SHORT_TERM
    assert len(outcome.calculation.amortization_schedule) == 12


def test_missing_rate_is_resolved(make_contract):
    settings = Settings(home_currency="BRL", default_base_rate=Decimal("10.5"))

    outcome = calculate_lease(make_contract(discount_rate_annual=None), settings=settings)

    assert outcome.status == OutcomeStatus.FULL
    assert outcome.discount_rate.method == RateMethod.INCREMENTAL_BORROWING
    assert outcome.calculation.rate_source == RateSource.RESOLVED
    assert outcome.calculation.discount_rate_annual == Decimal("12.4000")


def test_market_data_drives_resolved_rate(make_contract):
    settings = Settings(home_currency="BRL")
    market = MarketRateData(base_rate=Decimal("5"))

    outcome = calculate_lease(make_contract(discount_rate_annual=None), market, settings=settings)

    assert outcome.calculation.discount_rate_annual == Decimal("6.9000")


def test_warnings_do_not_block_calculation(make_contract):
    outcome = calculate_lease(make_contract(discount_rate_annual=Decimal("0")))

    assert outcome.status == OutcomeStatus.FULL
    assert [w.code for w in outcome.validation.warnings] == ["RATE_ATYPICAL"]
    assert outcome.calculation.lease_liability_initial == Decimal("36000.00")
    assert outcome.calculation.total_interest_expense == Decimal("0.00")
