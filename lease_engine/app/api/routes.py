"""HTTP routes for the Flask API."""

from http import HTTPStatus
from typing import Any, Dict

from flask import Blueprint, jsonify, request
from pydantic import BaseModel, ValidationError

from lease_engine import __version__
from lease_engine.config import get_settings
from lease_engine.core.discount_rate import resolve_discount_rate
from lease_engine.core.engine import calculate_lease
from lease_engine.core.exception_classifier import classify_exceptions, summarize_exceptions
from lease_engine.core.modification import remeasure_lease, validate_remeasurement
from lease_engine.core.sensitivity import analyze_sensitivity
from lease_engine.domain.validation import validate_contract
from lease_engine.models import LeaseContractInput
from lease_engine.schemas.calculation import OutcomeStatus, ValidationReport
from lease_engine.schemas.requests import (
    CalculationRequest,
    DiscountRateRequest,
    ExceptionSummaryRequest,
    HealthResponse,
    ModificationRequest,
    SensitivityRequest,
)

api_bp = Blueprint("api", __name__)


def _payload() -> Dict[str, Any]:
    return request.get_json(force=True, silent=False)


def _respond(model: BaseModel, status: HTTPStatus = HTTPStatus.OK):
    # decimals are emitted as strings so no precision is lost in transit
    return jsonify(model.model_dump(mode="json")), status


@api_bp.errorhandler(ValidationError)
def _handle_validation_error(exc: ValidationError):
    """Convert Pydantic validation errors into JSON responses."""
    return jsonify({"detail": exc.errors(include_url=False, include_context=False)}), HTTPStatus.BAD_REQUEST


@api_bp.get("/health")
def health() -> Any:
    """Health-check endpoint."""
    return _respond(HealthResponse(status="ok", service=get_settings().app_name, version=__version__))


@api_bp.post("/leases/validate")
def validate() -> Any:
    contract = LeaseContractInput.model_validate(_payload())
    return _respond(ValidationReport.from_result(validate_contract(contract)))


@api_bp.post("/leases/discount-rate")
def discount_rate() -> Any:
    payload = DiscountRateRequest.model_validate(_payload())
    return _respond(resolve_discount_rate(payload.contract, payload.market))


@api_bp.post("/leases/exceptions")
def exceptions() -> Any:
    contract = LeaseContractInput.model_validate(_payload())
    return _respond(classify_exceptions(contract))


@api_bp.post("/leases/exceptions/summary")
def exceptions_summary() -> Any:
    payload = ExceptionSummaryRequest.model_validate(_payload())
    return _respond(summarize_exceptions(payload.contracts))


@api_bp.post("/leases/calculate")
def calculate() -> Any:
    payload = CalculationRequest.model_validate(_payload())
    outcome = calculate_lease(payload.contract, payload.market, payload.elect_exemptions)
    status = HTTPStatus.UNPROCESSABLE_ENTITY if outcome.status == OutcomeStatus.INVALID else HTTPStatus.OK
    return _respond(outcome, status)


@api_bp.post("/leases/modifications")
def modifications() -> Any:
    payload = ModificationRequest.model_validate(_payload())
    validation = validate_remeasurement(payload.contract, payload.modification, payload.revised_rate)
    if not validation.is_valid:
        return _respond(ValidationReport.from_result(validation), HTTPStatus.UNPROCESSABLE_ENTITY)
    result = remeasure_lease(payload.contract, payload.modification, payload.revised_rate, payload.market)
    return _respond(result)


@api_bp.post("/leases/sensitivity")
def sensitivity() -> Any:
    payload = SensitivityRequest.model_validate(_payload())
    validation = validate_contract(payload.contract)
    if not validation.is_valid:
        return _respond(ValidationReport.from_result(validation), HTTPStatus.UNPROCESSABLE_ENTITY)
    return _respond(analyze_sensitivity(payload.contract, payload.market))
