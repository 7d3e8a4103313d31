from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional

from flask import Flask, jsonify

from ..core.exceptions import ConflictError, DomainError, InfrastructureError, NotFoundError, ValidationError
from .datetime_utils import parse_iso_datetime

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (InfrastructureError, 500),
)


def status_for(error: DomainError) -> int:
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(error, cls):
            return status
    return 400


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        status = status_for(e)
        if status >= 500:
            logger.exception("Request failed: %s", e)
        return jsonify({"success": False, "message": str(e)}), status


def to_json(value: Any) -> Any:
    """Convert enums and dates so ``jsonify`` can emit them."""

    if isinstance(value, Enum):
        return value.value
    # date, datetime and time
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


def int_arg(args: Mapping[str, Any], name: str, default: Optional[int] = None) -> Optional[int]:
    raw = args.get(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} tidak valid")


def datetime_arg(args: Mapping[str, Any], name: str) -> Optional[datetime]:
    raw = args.get(name)
    if raw in (None, ""):
        return None
    try:
        return parse_iso_datetime(str(raw))
    except ValueError:
        raise ValidationError(f"{name} tidak valid")
