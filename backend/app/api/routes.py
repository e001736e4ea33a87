"""HTTP routes for the Flask API."""

import logging
import sqlite3
import time
from datetime import date
from functools import wraps
from http import HTTPStatus
from typing import Any, Callable, Dict, Optional

from flask import Blueprint, current_app, g, jsonify, request
from pydantic import ValidationError

from backend import storage
from backend.core.epf_timeline import compute_epf_timeline, validate_accounts
from backend.domain.epf import EpfValidationError
from backend.schemas.epf import (
    EpfAccountCreate,
    EpfAccountRecord,
    EpfAccountUpdate,
    EpfTimelineResponse,
)

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)

USER_HEADER = "X-User-Id"


@api_bp.before_request
def _start_timer() -> None:
    g.request_started = time.perf_counter()


@api_bp.after_request
def _log_request(response):
    """One line per request: method, path, status, user and duration."""
    started = g.get("request_started")
    duration_ms = (time.perf_counter() - started) * 1000 if started is not None else 0.0
    logger.info(
        "%s %s %s %s (%.1fms)",
        request.method,
        request.full_path.rstrip("?"),
        response.status_code,
        g.get("user_id") or "anonymous",
        duration_ms,
    )
    return response


@api_bp.errorhandler(ValidationError)
def _handle_validation_error(exc: ValidationError):
    """Convert Pydantic validation errors into JSON responses."""
    return (
        jsonify({"detail": exc.errors(include_url=False, include_context=False)}),
        HTTPStatus.UNPROCESSABLE_ENTITY,
    )


@api_bp.errorhandler(EpfValidationError)
def _handle_epf_validation_error(exc: EpfValidationError):
    return jsonify({"success": False, "error": exc.errors}), HTTPStatus.BAD_REQUEST


@api_bp.errorhandler(sqlite3.Error)
def _handle_storage_error(exc: sqlite3.Error):
    logger.exception("EPF store error: %s", exc)
    return (
        jsonify({"success": False, "message": "Internal server error"}),
        HTTPStatus.INTERNAL_SERVER_ERROR,
    )


def require_user(view: Callable[..., Any]) -> Callable[..., Any]:
    """Reject requests that arrive without the upstream-authenticated user id."""

    @wraps(view)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        user_id = request.headers.get(USER_HEADER, "").strip()
        if not user_id:
            return (
                jsonify({"success": False, "message": "Authentication required"}),
                HTTPStatus.UNAUTHORIZED,
            )
        g.user_id = user_id
        return view(*args, **kwargs)

    return wrapper


def _db_path() -> str:
    return current_app.config["EPF_DATABASE"]


def _not_found():
    return jsonify({"success": False, "message": "EPF account not found"}), HTTPStatus.NOT_FOUND


def _check_fits_stored_accounts(candidate: EpfAccountCreate, replaces: Optional[int] = None) -> None:
    """Reject an account whose dates overlap the caller's other stored accounts."""
    accounts = []
    for row in storage.fetch_epf_accounts(_db_path(), g.user_id):
        if row["id"] == replaces:
            accounts.append(candidate.to_domain())
        else:
            accounts.append(EpfAccountRecord.from_row(row).to_domain())
    if replaces is None:
        accounts.append(candidate.to_domain())
    validate_accounts(accounts, today=date.today())


@api_bp.get("/ping")
def ping() -> Any:
    """Health-check endpoint."""
    return jsonify({"message": "pong"})


@api_bp.post("/epf/addInfo")
@require_user
def add_epf_account() -> Any:
    raw_payload: Dict[str, Any] = request.get_json(force=True, silent=False)
    payload = EpfAccountCreate.model_validate(raw_payload)
    _check_fits_stored_accounts(payload)
    account_id = storage.insert_epf_account(_db_path(), g.user_id, payload.model_dump())
    logger.info("Created EPF account %s for %s", account_id, g.user_id)
    return (
        jsonify({"success": True, "message": "EPF account created", "id": account_id}),
        HTTPStatus.CREATED,
    )


@api_bp.get("/epf/getInfo")
@require_user
def get_epf_accounts() -> Any:
    rows = storage.fetch_epf_accounts(_db_path(), g.user_id)
    records = [EpfAccountRecord.from_row(row).model_dump(mode="json") for row in rows]
    return jsonify({"success": True, "data": records})


@api_bp.get("/epf/timeline")
@require_user
def get_epf_timeline() -> Any:
    """Contribution and credited-interest timeline for the caller's accounts."""
    as_of = request.args.get("asOf")
    if as_of:
        try:
            today = date.fromisoformat(as_of)
        except ValueError:
            return (
                jsonify({"success": False, "message": f"Invalid asOf date: {as_of}"}),
                HTTPStatus.BAD_REQUEST,
            )
    else:
        today = date.today()

    rows = storage.fetch_epf_accounts(_db_path(), g.user_id)
    accounts = [EpfAccountRecord.from_row(row).to_domain() for row in rows]
    summary = compute_epf_timeline(
        accounts,
        today=today,
        annual_rate=current_app.config["EPF_ANNUAL_RATE"],
    )
    response = EpfTimelineResponse.from_summary(summary, current_app.config["EPF_DATE_FORMAT"])
    return jsonify({"success": True, "data": response.model_dump()})


@api_bp.put("/epf/<int:account_id>")
@require_user
def update_epf_account(account_id: int) -> Any:
    existing = storage.fetch_epf_account(_db_path(), g.user_id, account_id)
    if existing is None:
        return _not_found()

    raw_payload: Dict[str, Any] = request.get_json(force=True, silent=False)
    changes = EpfAccountUpdate.model_validate(raw_payload).model_dump(exclude_unset=True)

    current = EpfAccountRecord.from_row(existing).model_dump(
        include={"organizationName", "epfAmount", "creditDay", "startDate", "endDate"}
    )
    merged = EpfAccountCreate.model_validate({**current, **changes})
    _check_fits_stored_accounts(merged, replaces=account_id)

    updated = storage.update_epf_account(
        _db_path(),
        g.user_id,
        account_id,
        merged.model_dump(include=set(changes)),
    )
    row = storage.fetch_epf_account(_db_path(), g.user_id, account_id) if updated else None
    if row is None:
        return _not_found()
    record = EpfAccountRecord.from_row(row)
    return jsonify({"success": True, "data": record.model_dump(mode="json")})


@api_bp.delete("/epf/<int:account_id>")
@require_user
def delete_epf_account(account_id: int) -> Any:
    if not storage.delete_epf_account(_db_path(), g.user_id, account_id):
        return _not_found()
    logger.info("Deleted EPF account %s for %s", account_id, g.user_id)
    return jsonify({"success": True, "message": "EPF account deleted"})
