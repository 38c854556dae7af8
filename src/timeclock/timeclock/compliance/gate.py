from __future__ import annotations

from typing import Any

from ..core.constants import MIN_RETENTION_YEARS
from ..settings.model import PolicyConfig
from .model import MissingRequirement, RequirementKind

# (section, field, label)
_REQUIRED_FIELDS: tuple[tuple[str, str, str], ...] = (
    ("company", "controller_legal_name", "Company legal name"),
    ("company", "controller_cif", "Company CIF"),
    ("company", "controller_address", "Company address"),
    ("company", "controller_contact_email", "Company contact email"),
    ("company", "controller_contact_phone", "Company contact phone"),
    ("representatives", "recording_method_version", "Recording method version"),
    ("representatives", "recording_method_effective_date", "Recording method effective date"),
    ("time", "payroll_provider_name", "Payroll provider"),
    ("geo", "geo_notice_version", "Geolocation notice version"),
    ("privacy", "privacy_notice_version", "Privacy notice version"),
    ("privacy", "byod_policy_version", "BYOD policy version"),
    ("privacy", "disconnection_policy_version", "Disconnection policy version"),
    ("privacy", "record_of_processing_version", "Record of processing version"),
    ("hosting", "hosting_provider", "Hosting provider"),
    ("hosting", "data_processing_agreement_ref", "DPA reference"),
    ("exports", "audit_log_retention_years", "Audit log retention years"),
    ("privacy", "data_retention_years", "Data retention years"),
    ("geo", "geo_retention_years", "Geolocation retention years"),
)

# Lower bounds only: more years is always acceptable.
_MINIMUM_YEARS: tuple[tuple[str, str, str], ...] = (
    ("privacy", "data_retention_years", "Data retention"),
    ("geo", "geo_retention_years", "Geo retention"),
    ("exports", "audit_log_retention_years", "Audit retention"),
)


def _value(config: PolicyConfig, section: str, field: str) -> Any:
    return getattr(getattr(config, section), field)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class ComplianceGate:
    """Fixed legal checklist evaluated against a settings snapshot."""

    def __init__(self, min_retention_years: int = MIN_RETENTION_YEARS):
        self._min_years = int(min_retention_years)

    def evaluate(self, config: PolicyConfig) -> list[MissingRequirement]:
        """Return the unmet requirements; an empty list means compliant."""
        required = list(_REQUIRED_FIELDS)

        if config.company.has_dpo:
            required.append(("company", "dpo_name", "DPO name"))
            required.append(("company", "dpo_email", "DPO email"))

        if config.representatives.has_worker_reps:
            required.append(("representatives", "reps_consultation_record", "Consultation record"))
        else:
            required.append(("representatives", "no_reps_statement", "No reps statement"))

        missing = [
            MissingRequirement(key=f"{section}.{field}", label=label)
            for section, field, label in required
            if _is_blank(_value(config, section, field))
        ]

        for section, field, label in _MINIMUM_YEARS:
            years = _value(config, section, field)
            if years is not None and years < self._min_years:
                missing.append(
                    MissingRequirement(
                        key=f"{section}.{field}",
                        label=f"{label} must be >= {self._min_years}",
                        kind=RequirementKind.MINIMUM,
                    )
                )

        return missing
