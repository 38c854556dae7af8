from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_hhmm
from ..common.http import json_body, login_required, parse_date_field, requested_scope, to_json
from ..container import Container
from ..core.enums import ReminderKind
from ..core.exceptions import ValidationError
from .model import ShiftDraft


def _flag(value, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _time_field(body: dict, key: str, fallback=None):
    raw = body.get(key)
    if not raw:
        if fallback is None:
            raise ValidationError(f"{key} is required")
        return fallback
    try:
        return parse_hhmm(str(raw))
    except ValueError:
        raise ValidationError(f"{key} must be HH:MM")


def _worker_field(body: dict, fallback=None):
    key = "assigned_worker_id" if "assigned_worker_id" in body else "assigned_user_id"
    if key not in body:
        return fallback
    raw = body.get(key)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be an integer")


def register(app: Flask, container: Container) -> None:
    service = container.rota_service

    @app.route("/api/rota/weeks", methods=["GET"], endpoint="api_rota_week")
    @login_required
    def get_week(principal):
        week_start = parse_date_field(request.args, "start")
        week = service.get_week(principal, week_start, requested_scope(request.args))
        return jsonify(to_json(week))

    @app.route("/api/rota/weeks/<start>/publish", methods=["POST"], endpoint="api_rota_publish")
    @login_required
    def publish(principal, start: str):
        body = json_body()
        week = service.publish(
            principal,
            parse_date_field({"start": start}, "start"),
            requested_scope(body),
            notify=_flag(body.get("notify"), default=True),
        )
        return jsonify(to_json(week))

    @app.route("/api/rota/weeks/<start>/unpublish", methods=["POST"], endpoint="api_rota_unpublish")
    @login_required
    def unpublish(principal, start: str):
        week = service.unpublish(principal, parse_date_field({"start": start}, "start"), requested_scope(json_body()))
        return jsonify(to_json(week))

    @app.route("/api/rota/weeks/<start>/notify", methods=["POST"], endpoint="api_rota_notify")
    @login_required
    def notify(principal, start: str):
        sent = service.notify_week(principal, parse_date_field({"start": start}, "start"), requested_scope(json_body()))
        return jsonify({"ok": True, "sent": sent})

    @app.route("/api/rota/weeks/copy", methods=["POST"], endpoint="api_rota_copy_week")
    @login_required
    def copy_week(principal):
        body = json_body()
        try:
            repeat_weeks = int(body.get("repeat_weeks") or 1)
        except (TypeError, ValueError):
            raise ValidationError("repeat_weeks must be an integer")
        created = service.copy_week(
            principal,
            parse_date_field(body, "from_week_start"),
            parse_date_field(body, "to_week_start"),
            requested_scope(body),
            include_assignments=_flag(body.get("include_assignments")),
            overwrite=_flag(body.get("overwrite")),
            repeat_weeks=repeat_weeks,
        )
        return jsonify({"ok": True, "created": len(created)})

    @app.route("/api/rota/shifts", methods=["GET"], endpoint="api_rota_shifts")
    @login_required
    def list_shifts(principal):
        week_start = parse_date_field(request.args, "start")
        return jsonify(to_json(service.list_shifts(principal, week_start, requested_scope(request.args))))

    @app.route("/api/rota/shifts", methods=["POST"], endpoint="api_rota_shift_create")
    @login_required
    def create_shift(principal):
        body = json_body()
        draft = ShiftDraft(
            work_date=parse_date_field(body, "date"),
            start_time=_time_field(body, "start_time"),
            end_time=_time_field(body, "end_time"),
            role=str(body.get("role") or ""),
            notes=str(body.get("notes") or ""),
            assigned_worker_id=_worker_field(body),
            scope=requested_scope(body),
        )
        return jsonify(to_json(service.upsert_shift(principal, draft))), 201

    @app.route("/api/rota/shifts/<int:shift_id>", methods=["PATCH"], endpoint="api_rota_shift_update")
    @login_required
    def update_shift(principal, shift_id: int):
        body = json_body()
        current = service.get_shift(principal, shift_id)
        draft = ShiftDraft(
            work_date=parse_date_field(body, "date", required=False) or current.work_date,
            start_time=_time_field(body, "start_time", current.start_time),
            end_time=_time_field(body, "end_time", current.end_time),
            role=str(body["role"]) if body.get("role") is not None else current.role,
            notes=str(body["notes"]) if body.get("notes") is not None else current.notes,
            assigned_worker_id=_worker_field(body, current.assigned_worker_id),
            scope=requested_scope(body),
        )
        return jsonify(to_json(service.upsert_shift(principal, draft, shift_id=shift_id)))

    @app.route("/api/rota/shifts/<int:shift_id>", methods=["DELETE"], endpoint="api_rota_shift_delete")
    @login_required
    def delete_shift(principal, shift_id: int):
        service.delete_shift(principal, shift_id)
        return jsonify({"ok": True})

    @app.route("/api/rota/shifts/<int:shift_id>/copy", methods=["POST"], endpoint="api_rota_shift_copy")
    @login_required
    def copy_shift(principal, shift_id: int):
        body = json_body()
        new_date = parse_date_field(body, "date", required=False) or service.get_shift(principal, shift_id).work_date
        copy = service.copy_shift(
            principal,
            shift_id,
            new_date,
            requested_scope(body),
            assigned_worker_id=_worker_field(body),
        )
        return jsonify(to_json(copy)), 201

    @app.route("/api/rota/reminders", methods=["POST"], endpoint="api_rota_reminders")
    @login_required
    def send_reminders(principal):
        body = json_body()
        try:
            kind = ReminderKind(str(body.get("type") or ReminderKind.CHECK_IN.value))
        except ValueError:
            raise ValidationError("type must be checkin or checkout")
        work_date = parse_date_field(body, "date", required=False) or container.clock.now().date()
        sent = service.send_reminders_for_date(principal, work_date, kind, requested_scope(body))
        return jsonify({"ok": True, "sent": sent})
