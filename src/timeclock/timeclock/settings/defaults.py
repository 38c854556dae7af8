"""Default live settings, one nested section per settings screen."""

from __future__ import annotations

import copy
from typing import Any, Mapping

DEFAULT_SETTINGS: dict[str, Any] = {
    "company": {
        "controller_legal_name": "",
        "controller_cif": "",
        "controller_address": "",
        "controller_contact_email": "",
        "controller_contact_phone": "",
        "has_dpo": False,
        "dpo_name": "",
        "dpo_email": "",
        "dpo_phone": "",
    },
    "representatives": {
        "has_worker_reps": False,
        "reps_consultation_record": "",
        "no_reps_statement": "",
        "recording_method_version": "",
        "recording_method_effective_date": "",
    },
    "time": {
        "standard_daily_hours": 8,
        "standard_weekly_hours": 40,
        "payroll_provider_name": "",
    },
    "geo": {
        "geo_capture_events": ["clock_in", "clock_out", "break_start", "break_end"],
        "geo_retention_years": 4,
        "geo_notice_version": "",
    },
    "privacy": {
        "data_retention_years": 4,
        "legal_hold_enabled": True,
        "privacy_notice_version": "",
        "byod_policy_version": "",
        "disconnection_policy_version": "",
        "record_of_processing_version": "",
    },
    "hosting": {
        "hosting_provider": "",
        "hosting_region": "EU",
        "data_processing_agreement_ref": "",
    },
    "email": {
        "smtp_host": "",
        "smtp_port": 587,
        "smtp_secure": False,
        "smtp_user": "",
        "smtp_pass": "",
        "smtp_from": "",
        "timeout_seconds": 10,
    },
    "rota": {
        "reminders_enabled": True,
        "checkin_lead_minutes": 30,
        "checkout_lead_minutes": 15,
        "scheduler_interval_minutes": 5,
    },
    "exports": {
        "audit_log_retention_years": 4,
    },
}


def merge_settings(base: Mapping[str, Any], override: Mapping[str, Any] | None) -> dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base``.

    Nested mappings merge key by key; any other value replaces the base one.
    """
    result = copy.deepcopy(dict(base))
    for key, value in (override or {}).items():
        current = result.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            result[key] = merge_settings(current, value)
        else:
            result[key] = copy.deepcopy(value)
    return result
