from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from lease_engine.domain.validation import ContractValidationError, validate_contract


def codes(issues):
    return {issue.code for issue in issues}


def test_reference_contract_is_valid(make_contract):
    result = validate_contract(make_contract())

    assert result.is_valid is True
    assert result.errors == []
    assert result.warnings == []


def test_all_errors_are_collected(make_contract):
    contract = make_contract(
        monthly_payment=Decimal("0"),
        discount_rate_annual=Decimal("150"),
        lease_term_months=0,
        lease_end_date=date(2023, 1, 1),
        currency_code="usd",
    )

    result = validate_contract(contract)

    assert result.is_valid is False
    assert codes(result.errors) == {
        "PAYMENT_NOT_POSITIVE",
        "RATE_OUT_OF_RANGE",
        "TERM_TOO_SHORT",
        "END_NOT_AFTER_START",
        "CURRENCY_INVALID",
    }


def test_validation_never_raises_until_asked(make_contract):
    result = validate_contract(make_contract(monthly_payment=Decimal("-10")))

    with pytest.raises(ContractValidationError) as excinfo:
        result.raise_for_errors()

    assert [issue.code for issue in excinfo.value.errors] == ["PAYMENT_NOT_POSITIVE"]
    assert isinstance(excinfo.value, ValueError)


def test_term_upper_bound(make_contract):
    result = validate_contract(make_contract(lease_term_months=601, lease_end_date=date(2074, 2, 1)))

    assert codes(result.errors) == {"TERM_TOO_LONG"}


def test_missing_rate_is_allowed(make_contract):
    assert validate_contract(make_contract(discount_rate_annual=None)).is_valid is True


@pytest.mark.parametrize("rate", ["0", "0.5", "30", "100"])
def test_rate_bounds_are_inclusive_but_atypical_rates_warn(make_contract, rate):
    result = validate_contract(make_contract(discount_rate_annual=Decimal(rate)))

    assert result.is_valid is True
    assert codes(result.warnings) == {"RATE_ATYPICAL"}


def test_negative_rate_is_rejected(make_contract):
    result = validate_contract(make_contract(discount_rate_annual=Decimal("-1")))

    assert codes(result.errors) == {"RATE_OUT_OF_RANGE"}


def test_negative_amounts_are_rejected(make_contract):
    contract = make_contract(
        initial_direct_costs=Decimal("-1"),
        guaranteed_residual_value=Decimal("-5"),
        variable_payments=[{"date": date(2024, 5, 1), "amount": Decimal("-100")}],
    )

    result = validate_contract(contract)

    assert [issue.field for issue in result.errors] == [
        "initial_direct_costs",
        "guaranteed_residual_value",
        "variable_payments[0].amount",
    ]
    assert codes(result.errors) == {"AMOUNT_NEGATIVE"}


def test_renewal_probability_range(make_contract):
    contract = make_contract(
        contract_options={"renewal_options": [{"probability_percentage": Decimal("120")}]},
    )

    result = validate_contract(contract)

    assert codes(result.errors) == {"PROBABILITY_OUT_OF_RANGE"}
    assert result.errors[0].field == "contract_options.renewal_options[0].probability_percentage"


def test_term_and_dates_disagreeing_is_a_warning(make_contract):
    result = validate_contract(make_contract(lease_term_months=24))

    assert result.is_valid is True
    assert codes(result.warnings) == {"TERM_DATE_MISMATCH"}


def test_end_date_on_last_day_of_final_month_is_consistent(make_contract):
    contract = make_contract(lease_end_date=date(2026, 12, 31))

    assert validate_contract(contract).warnings == []


def test_variable_payment_outside_term_is_a_warning(make_contract):
    contract = make_contract(
        variable_payments=[
            {"date": date(2023, 12, 1), "amount": Decimal("100")},
            {"date": date(2026, 12, 1), "amount": Decimal("100")},
            {"date": date(2027, 1, 1), "amount": Decimal("100")},
        ],
    )

    result = validate_contract(contract)

    assert result.is_valid is True
    assert [issue.field for issue in result.warnings] == [
        "variable_payments[0].date",
        "variable_payments[2].date",
    ]


def test_result_serializes_to_plain_dict(make_contract):
    payload = validate_contract(make_contract(currency_code="BR")).to_dict()

    assert payload["is_valid"] is False
    assert payload["errors"][0]["code"] == "CURRENCY_INVALID"
    assert payload["errors"][0]["field"] == "currency_code"
    assert payload["warnings"] == []


@pytest.mark.parametrize("currency", ["BRL\n", " BRL", "BRLX", "BR1"])
def test_currency_must_be_exactly_three_letters(make_contract, currency):
    result = validate_contract(make_contract(currency_code=currency))

    assert "CURRENCY_INVALID" in codes(result.errors)
