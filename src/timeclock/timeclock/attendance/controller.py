from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import (
    json_body,
    login_required,
    parse_datetime_field,
    parse_geo,
    to_json,
)
from ..container import Container
from ..core.enums import CorrectionStatus, GeoEventKind
from ..core.exceptions import ValidationError
from .model import EntryWithBreaks


def _geo_kind(raw) -> GeoEventKind:
    try:
        return GeoEventKind(str(raw))
    except ValueError:
        raise ValidationError(f"event_type must be one of: {', '.join(k.value for k in GeoEventKind)}")


def _optional_int(raw, field_name: str):
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    def entry_json(item: EntryWithBreaks) -> dict:
        data = to_json(item.entry)
        data["breaks"] = to_json(item.breaks)
        data["worked_minutes"] = service.compute_worked_minutes(item.entry)
        return data

    def single_entry_json(principal, entry) -> dict:
        return entry_json(service.get_entry(principal, entry.entry_id))

    @app.route("/api/time/entries", methods=["GET"], endpoint="api_time_entries")
    @login_required
    def list_entries(principal):
        worker_id = _optional_int(request.args.get("user_id"), "user_id")
        return jsonify([entry_json(e) for e in service.list_entries(principal, worker_id=worker_id)])

    @app.route("/api/time/entries", methods=["POST"], endpoint="api_clock_in")
    @login_required
    def clock_in(principal):
        body = json_body()
        entry = service.clock_in(
            principal.worker_id,
            timestamp=parse_datetime_field(body, "start"),
            geo=parse_geo(body.get("geo") or {}),
        )
        return jsonify(single_entry_json(principal, entry)), 201

    @app.route("/api/time/state", methods=["GET"], endpoint="api_time_state")
    @login_required
    def state(principal):
        return jsonify(to_json(service.get_state(principal.worker_id)))

    @app.route("/api/time/entries/<int:entry_id>", methods=["PATCH"], endpoint="api_clock_out")
    @login_required
    def clock_out(principal, entry_id: int):
        body = json_body()
        entry = service.clock_out(
            entry_id,
            principal=principal,
            timestamp=parse_datetime_field(body, "end"),
            geo=parse_geo(body.get("geo") or {}),
        )
        return jsonify(single_entry_json(principal, entry))

    @app.route("/api/time/entries/<int:entry_id>/breaks", methods=["POST"], endpoint="api_break_start")
    @login_required
    def start_break(principal, entry_id: int):
        body = json_body()
        brk = service.start_break(
            entry_id,
            principal=principal,
            timestamp=parse_datetime_field(body, "start"),
            geo=parse_geo(body.get("geo") or {}),
        )
        return jsonify(to_json(brk)), 201

    @app.route(
        "/api/time/entries/<int:entry_id>/breaks/<int:break_id>",
        methods=["PATCH"],
        endpoint="api_break_end",
    )
    @login_required
    def end_break(principal, entry_id: int, break_id: int):
        body = json_body()
        brk = service.end_break(
            entry_id,
            break_id,
            principal=principal,
            timestamp=parse_datetime_field(body, "end"),
            geo=parse_geo(body.get("geo") or {}),
        )
        return jsonify(to_json(brk))

    @app.route("/api/time/entries/<int:entry_id>/geo", methods=["POST"], endpoint="api_geo_capture")
    @login_required
    def record_geo(principal, entry_id: int):
        body = json_body()
        kind = _geo_kind(body.get("event_type"))
        payload = parse_geo(body)
        if payload is None:
            raise ValidationError("latitude/longitude are required")
        event = service.record_geo_event(entry_id, kind, payload, principal=principal)
        return jsonify(to_json(event)), 201

    @app.route("/api/geo/events", methods=["GET"], endpoint="api_geo_events")
    @login_required
    def geo_events(principal):
        args = request.args
        kind = _geo_kind(args["event_type"]) if args.get("event_type") else None
        events = service.list_geo_events(
            principal,
            worker_id=_optional_int(args.get("user_id"), "user_id"),
            start=parse_datetime_field(args, "from"),
            end=parse_datetime_field(args, "to"),
            kind=kind,
            limit=_optional_int(args.get("limit"), "limit"),
        )
        return jsonify(to_json(events))

    @app.route("/api/corrections", methods=["GET"], endpoint="api_corrections")
    @login_required
    def list_corrections(principal):
        return jsonify(to_json(service.list_corrections(principal)))

    @app.route("/api/corrections", methods=["POST"], endpoint="api_correction_request")
    @login_required
    def request_correction(principal):
        body = json_body()
        correction = service.request_correction(
            principal,
            _optional_int(body.get("entry_id"), "entry_id"),
            str(body.get("reason") or ""),
        )
        return jsonify(to_json(correction)), 201

    @app.route("/api/corrections/<int:correction_id>", methods=["PATCH"], endpoint="api_correction_decide")
    @login_required
    def decide_correction(principal, correction_id: int):
        body = json_body()
        try:
            status = CorrectionStatus(str(body.get("status") or ""))
        except ValueError:
            raise ValidationError("status must be approved or rejected")
        correction = service.decide_correction(principal, correction_id, status, body.get("note"))
        return jsonify(to_json(correction))
