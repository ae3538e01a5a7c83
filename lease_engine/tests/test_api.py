from __future__ import annotations

from decimal import Decimal
from math import isclose
from typing import Any, Dict

from lease_engine import __version__


def contract_payload(**overrides: Any) -> Dict[str, Any]:
    payload = {
        "contract_id": "API-1",
        "lease_start_date": "2024-01-01",
        "lease_end_date": "2027-01-01",
        "lease_term_months": 36,
        "monthly_payment": 1000,
        "payment_timing": "end",
        "discount_rate_annual": 8.5,
        "asset_type": "equipment",
        "currency_code": "BRL",
    }
    payload.update(overrides)
    return payload


def test_health(client) -> None:
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok", "service": "lease-engine", "version": __version__}


def test_calculate_returns_schedule(client) -> None:
    resp = client.post("/api/leases/calculate", json={"contract": contract_payload()})
    assert resp.status_code == 200

    body = resp.get_json()
    assert body["status"] == "full"
    calculation = body["calculation"]
    assert isclose(float(calculation["lease_liability_initial"]), 31824.69, abs_tol=1.0)
    assert calculation["rate_source"] == "contract"
    assert len(calculation["amortization_schedule"]) == 36

    first = calculation["amortization_schedule"][0]
    assert first["period"] == 1
    assert first["date"] == "2024-01-01"
    assert isclose(float(first["interest_expense"]), 217.09, abs_tol=0.05)


def test_money_is_serialized_as_exact_strings(client) -> None:
    resp = client.post("/api/leases/calculate", json={"contract": contract_payload()})
    calculation = resp.get_json()["calculation"]

    assert isinstance(calculation["total_lease_payments"], str)
    assert Decimal(calculation["total_lease_payments"]) == Decimal("36000.00")


def test_calculate_rejects_invalid_contract(client) -> None:
    resp = client.post(
        "/api/leases/calculate",
        json={"contract": contract_payload(monthly_payment=0, currency_code="brl")},
    )
    assert resp.status_code == 422

    body = resp.get_json()
    assert body["status"] == "invalid"
    assert body["calculation"] is None
    assert {error["code"] for error in body["validation"]["errors"]} == {
        "PAYMENT_NOT_POSITIVE",
        "CURRENCY_INVALID",
    }


def test_calculate_short_term_lease(client) -> None:
    payload = contract_payload(lease_term_months=12, lease_end_date="2025-01-01")
    resp = client.post("/api/leases/calculate", json={"contract": payload})
    assert resp.status_code == 200

    body = resp.get_json()
    assert body["status"] == "simplified"
    assert body["exception_analysis"]["exception_type"] == "short_term"


def test_malformed_body_is_bad_request(client) -> None:
    resp = client.post(
        "/api/leases/calculate",
        json={"contract": contract_payload(lease_start_date="not-a-date", unknown_field=1)},
    )
    assert resp.status_code == 400

    locations = [tuple(item["loc"]) for item in resp.get_json()["detail"]]
    assert ("contract", "lease_start_date") in locations
    assert ("contract", "unknown_field") in locations


def test_validate_endpoint_reports_warnings(client) -> None:
    resp = client.post("/api/leases/validate", json=contract_payload(lease_term_months=24))
    assert resp.status_code == 200

    body = resp.get_json()
    assert body["is_valid"] is True
    assert [warning["code"] for warning in body["warnings"]] == ["TERM_DATE_MISMATCH"]


def test_discount_rate_endpoint(client) -> None:
    payload = {
        "contract": contract_payload(discount_rate_annual=None),
        "market": {"base_rate": 10.5, "credit_spread": 2.0},
    }
    resp = client.post("/api/leases/discount-rate", json=payload)
    assert resp.status_code == 200

    body = resp.get_json()
    assert body["method"] == "incremental_borrowing_rate"
    assert body["confidence"] == "high"
    assert Decimal(body["calculated_rate"]) == Decimal("12.4")
    assert body["attempts"][0]["outcome"] == "accepted"


def test_exceptions_endpoint(client) -> None:
    resp = client.post("/api/leases/exceptions", json=contract_payload(asset_fair_value=800))
    assert resp.status_code == 200

    body = resp.get_json()
    assert body["exception_type"] == "low_value"
    assert body["accounting_treatment"] == "simplified"


def test_exceptions_summary_endpoint(client) -> None:
    contracts = [
        contract_payload(contract_id="a", asset_fair_value=800),
        contract_payload(contract_id="b"),
    ]
    resp = client.post("/api/leases/exceptions/summary", json={"contracts": contracts})
    assert resp.status_code == 200

    body = resp.get_json()
    assert body["total_contracts"] == 2
    assert body["exception_contracts"] == 1
    assert Decimal(body["percentage_of_total"]) == Decimal("50")


def test_cors_headers_for_allowed_origin(client) -> None:
    resp = client.get("/api/health", headers={"Origin": "http://localhost:5173"})
    assert resp.headers.get("Access-Control-Allow-Origin") == "http://localhost:5173"


def test_modification_remeasures_from_the_effective_date(client) -> None:
    body = {
        "contract": contract_payload(),
        "modification": {
            "modification_type": "term_extension",
            "modification_date": "2025-01-01",
            "effective_date": "2025-01-01",
            "description": "Extension to 48 months",
            "new_term_months": 48,
        },
    }

    resp = client.post("/api/leases/modifications", json=body)
    assert resp.status_code == 200

    result = resp.get_json()
    assert result["periods_elapsed"] == 12
    assert result["after"]["remaining_term_months"] == 36
    assert isclose(float(result["after"]["lease_liability"]), 31824.69, abs_tol=0.01)
    assert len(result["calculation"]["amortization_schedule"]) == 36


def test_invalid_modification_is_unprocessable(client) -> None:
    body = {
        "contract": contract_payload(),
        "modification": {
            "modification_type": "payment_change",
            "modification_date": "2025-01-01",
            "effective_date": "2025-01-01",
            "description": "No amount given",
        },
    }

    resp = client.post("/api/leases/modifications", json=body)
    assert resp.status_code == 422
    assert [error["code"] for error in resp.get_json()["errors"]] == ["MODIFICATION_INCOMPLETE"]


def test_sensitivity_analysis(client) -> None:
    resp = client.post("/api/leases/sensitivity", json={"contract": contract_payload()})
    assert resp.status_code == 200

    analysis = resp.get_json()
    assert [s["parameter"] for s in analysis["sensitivities"]] == [
        "discount_rate_annual",
        "monthly_payment",
        "lease_term_months",
    ]
    assert len(analysis["stress_scenarios"]) == 4
    assert analysis["overall_risk"] == "low"


def test_sensitivity_rejects_invalid_contract(client) -> None:
    resp = client.post("/api/leases/sensitivity", json={"contract": contract_payload(monthly_payment=0)})
    assert resp.status_code == 422
    assert resp.get_json()["is_valid"] is False
