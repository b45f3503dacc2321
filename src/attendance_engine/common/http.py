from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

from flask import Flask, jsonify, request

from ..core.exceptions import (
    AuthorizationError,
    ConfigurationError,
    ConflictError,
    DomainError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from .datetime_utils import parse_iso_date

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (NotFoundError, 404),
    (AuthorizationError, 403),
    (ConflictError, 409),
    (InvalidStateError, 409),
    (ValidationError, 400),
    (ConfigurationError, 400),
)


def status_for(exc: DomainError) -> int:
    for cls, code in _STATUS_BY_ERROR:
        if isinstance(exc, cls):
            return code
    return 400


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def _domain_error(exc: DomainError):
        code = status_for(exc)
        logger.info("%s %s -> %d: %s", request.method, request.path, code, exc)
        return jsonify({"success": False, "message": str(exc)}), code


def parse_date(value: Optional[str], field: str = "date") -> date:
    if not value:
        raise ValidationError(f"{field} is required (YYYY-MM-DD)")
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"Invalid {field} (YYYY-MM-DD)")


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("JSON object body is required")
    return data


def require_field(data: dict[str, Any], key: str) -> Any:
    value = data.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{key} is required")
    return value
