from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from lease_engine.core.liability import (
    initial_lease_liability,
    initial_right_of_use_asset,
    monthly_rate_from_annual,
)
from lease_engine.core.money import total
from lease_engine.core.schedule import generate_amortization_schedule

CENT = Decimal("0.01")


def build_schedule(contract):
    rate = contract.discount_rate_annual
    liability = initial_lease_liability(contract, rate)
    rou_asset = initial_right_of_use_asset(liability, contract)
    return generate_amortization_schedule(contract, liability, rou_asset, monthly_rate_from_annual(rate))


SCENARIOS = {
    "arrears": {},
    "advance": {"payment_timing": "start"},
    "residual": {"guaranteed_residual_value": Decimal("10000")},
    "initial_payment": {"initial_payment": Decimal("5000")},
    "variable": {
        "variable_payments": [
            {"date": date(2024, 1, 1), "amount": Decimal("300")},
            {"date": date(2025, 6, 1), "amount": Decimal("1200")},
        ]
    },
    "zero_rate": {"discount_rate_annual": Decimal("0"), "guaranteed_residual_value": Decimal("2500")},
    "costs_and_incentives": {
        "initial_direct_costs": Decimal("2000"),
        "lease_incentives": Decimal("500"),
        "payment_timing": "start",
    },
}


@pytest.mark.parametrize("overrides", SCENARIOS.values(), ids=list(SCENARIOS))
def test_interest_plus_principal_equals_payments(make_contract, overrides):
    rows = build_schedule(make_contract(**overrides))

    interest = total(row.interest_expense for row in rows)
    principal = total(row.principal_payment for row in rows)
    payments = total(row.payment for row in rows)

    assert abs(interest + principal - payments) <= CENT
    for row in rows:
        assert abs(row.interest_expense + row.principal_payment - row.payment) <= CENT


@pytest.mark.parametrize("overrides", SCENARIOS.values(), ids=list(SCENARIOS))
def test_liability_closes_at_guaranteed_residual_value(make_contract, overrides):
    contract = make_contract(**overrides)
    rows = build_schedule(contract)

    assert len(rows) == contract.lease_term_months
    assert abs(rows[-1].ending_liability - contract.guaranteed_residual_value) <= CENT


@pytest.mark.parametrize("overrides", SCENARIOS.values(), ids=list(SCENARIOS))
def test_right_of_use_asset_is_fully_depreciated(make_contract, overrides):
    contract = make_contract(**overrides)
    rows = build_schedule(contract)

    assert rows[-1].ending_asset == Decimal("0")
    assert abs(total(row.amortization for row in rows) - rows[0].beginning_asset) <= CENT
    assert all(row.ending_asset >= 0 for row in rows)


@pytest.mark.parametrize("overrides", [{}, {"payment_timing": "start"}], ids=["arrears", "advance"])
def test_balance_is_non_increasing_without_residual(make_contract, overrides):
    rows = build_schedule(make_contract(**overrides))

    for row in rows:
        assert row.ending_liability <= row.beginning_liability


def test_rows_chain_period_to_period(make_contract):
    rows = build_schedule(make_contract(guaranteed_residual_value=Decimal("10000")))

    for previous, current in zip(rows, rows[1:]):
        assert current.beginning_liability == previous.ending_liability
        assert current.beginning_asset == previous.ending_asset


def test_first_period_interest_in_arrears(make_contract):
    """Interest accrues on the full opening balance when paying in arrears."""
    rows = build_schedule(make_contract())

    first = rows[0]
    assert first.period == 1
    assert first.payment == Decimal("1000")
    assert abs(first.interest_expense - Decimal("217.09")) <= Decimal("0.05")


def test_payment_in_advance_reduces_interest_base(make_contract):
    contract = make_contract(payment_timing="start")
    rows = build_schedule(contract)

    first = rows[0]
    monthly_rate = monthly_rate_from_annual(contract.discount_rate_annual)
    assert first.interest_expense == (first.beginning_liability - Decimal("1000")) * monthly_rate
    # the last advance payment leaves nothing to accrue on
    assert abs(rows[-1].interest_expense) <= CENT


def test_initial_and_variable_payments_land_in_their_periods(make_contract):
    contract = make_contract(
        initial_payment=Decimal("5000"),
        variable_payments=[
            {"date": date(2024, 4, 20), "amount": Decimal("750")},
            {"date": date(2030, 1, 1), "amount": Decimal("9999")},
        ],
    )
    rows = build_schedule(contract)

    assert rows[0].payment == Decimal("6000")
    assert rows[3].payment == Decimal("1750")
    assert total(row.payment for row in rows) == Decimal("36000") + Decimal("5000") + Decimal("750")


def test_schedule_dates_step_by_calendar_month(make_contract):
    contract = make_contract(lease_start_date=date(2024, 1, 31), lease_end_date=date(2027, 1, 31))
    rows = build_schedule(contract)

    assert rows[0].date == date(2024, 1, 31)
    assert rows[1].date == date(2024, 2, 29)
    assert rows[12].date == date(2025, 1, 31)


def test_single_period_schedule(make_contract):
    contract = make_contract(lease_term_months=1, lease_end_date=date(2024, 2, 1))
    rows = build_schedule(contract)

    assert len(rows) == 1
    assert abs(rows[0].ending_liability) <= CENT
    assert rows[0].amortization == rows[0].beginning_asset
    assert rows[0].ending_asset == Decimal("0")


def test_straight_line_depreciation(make_contract):
    rows = build_schedule(make_contract(initial_direct_costs=Decimal("1200")))

    expected = rows[0].beginning_asset / 36
    assert all(row.amortization == expected for row in rows[:-1])


def test_schedule_rejects_impossible_term(make_contract):
    contract = make_contract(lease_term_months=0)

    with pytest.raises(ValueError):
        generate_amortization_schedule(contract, Decimal("1000"), Decimal("1000"), Decimal("0.01"))
