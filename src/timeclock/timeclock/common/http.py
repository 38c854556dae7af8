from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime, time
from enum import Enum
from functools import wraps
from typing import Any, Mapping, Optional

from flask import Flask, jsonify, request, session

from ..attendance.model import GeoPayload
from ..core.enums import Role
from ..core.exceptions import (
    AlreadyOnBreakError,
    AlreadyOpenError,
    AuthorizationError,
    ComplianceIncompleteError,
    DomainError,
    NotFoundError,
    NotificationUnavailableError,
    OpenBreakPresentError,
    ValidationError,
)
from ..rota.scope import Scope
from ..users.model import Principal
from .datetime_utils import parse_iso_date, parse_iso_datetime
from .validators import optional_float

logger = logging.getLogger(__name__)


def to_json(value: Any) -> Any:
    """Turn dataclasses, enums and date/time values into JSON-ready data."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_json(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_json(v) for v in value]
    return value


def _session_scopes(raw: Any) -> tuple[Scope, ...]:
    scopes = []
    for item in raw or ():
        if isinstance(item, Mapping):
            scopes.append(Scope(str(item.get("location", "")), str(item.get("department", ""))))
        else:
            location, department = item
            scopes.append(Scope(str(location), str(department)))
    return tuple(scopes)


def current_principal() -> Optional[Principal]:
    if "user_id" not in session:
        return None
    return Principal(
        worker_id=int(session["user_id"]),
        role=Role(session.get("role", Role.EMPLOYEE.value)),
        scopes=_session_scopes(session.get("scopes")),
    )


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        principal = current_principal()
        if principal is None:
            return jsonify({"error": "Authentication required"}), 401
        return view(principal, *args, **kwargs)

    return wrapper


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def requested_scope(source: Mapping[str, Any]) -> Optional[Scope]:
    location = str(source.get("location") or "").strip()
    department = str(source.get("department") or "").strip()
    if not location and not department:
        return None
    return Scope(location, department)


def parse_date_field(source: Mapping[str, Any], key: str, *, required: bool = True) -> Optional[date]:
    raw = source.get(key)
    if not raw:
        if required:
            raise ValidationError(f"{key} is required")
        return None
    try:
        return parse_iso_date(str(raw))
    except ValueError:
        raise ValidationError(f"{key} must be YYYY-MM-DD")


def parse_datetime_field(source: Mapping[str, Any], key: str) -> Optional[datetime]:
    raw = source.get(key)
    if not raw:
        return None
    try:
        return parse_iso_datetime(str(raw))
    except ValueError:
        raise ValidationError(f"{key} must be an ISO-8601 timestamp")


def parse_geo(source: Mapping[str, Any]) -> Optional[GeoPayload]:
    """Read a geo fix from ``source``. ``None`` when no field is present."""
    latitude = optional_float(source.get("latitude", source.get("lat")), "latitude")
    longitude = optional_float(source.get("longitude", source.get("lon")), "longitude")
    accuracy = optional_float(source.get("accuracy"), "accuracy")
    device_id = source.get("device_id") or None
    timestamp = parse_datetime_field(source, "timestamp")
    if latitude is None and longitude is None and accuracy is None and device_id is None:
        return None
    return GeoPayload(
        latitude=latitude,
        longitude=longitude,
        accuracy=accuracy,
        device_id=str(device_id) if device_id is not None else None,
        timestamp=timestamp,
    )


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(ex: DomainError):
        if isinstance(ex, NotFoundError):
            return jsonify({"error": str(ex)}), 404
        if isinstance(ex, AuthorizationError):
            return jsonify({"error": str(ex)}), 403
        if isinstance(ex, ComplianceIncompleteError):
            return jsonify({"error": str(ex), "missing": [str(m) for m in ex.missing]}), 400
        if isinstance(ex, (AlreadyOpenError, AlreadyOnBreakError, OpenBreakPresentError)):
            return jsonify({"error": str(ex)}), 409
        if isinstance(ex, NotificationUnavailableError):
            logger.warning("Notification failure: %s", ex)
            return jsonify({"error": str(ex)}), 502
        return jsonify({"error": str(ex)}), 400
