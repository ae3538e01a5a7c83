from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Callable, Dict

import pytest
from flask.testing import FlaskClient

from lease_engine.app import create_app
from lease_engine.models import LeaseContractInput


def base_contract_fields() -> Dict[str, Any]:
    """36-month equipment lease, 1,000/month in arrears at 8.5%."""
    return {
        "contract_id": "C-001",
        "lease_start_date": date(2024, 1, 1),
        "lease_end_date": date(2027, 1, 1),
        "lease_term_months": 36,
        "monthly_payment": Decimal("1000"),
        "payment_timing": "end",
        "discount_rate_annual": Decimal("8.5"),
        "asset_type": "equipment",
        "currency_code": "BRL",
    }


@pytest.fixture()
def make_contract() -> Callable[..., LeaseContractInput]:
    def _make(**overrides: Any) -> LeaseContractInput:
        fields = base_contract_fields()
        fields.update(overrides)
        return LeaseContractInput.model_validate(fields)

    return _make


@pytest.fixture()
def client() -> FlaskClient:
    app = create_app()
    app.config.update(TESTING=True)
    with app.test_client() as test_client:
        yield test_client
