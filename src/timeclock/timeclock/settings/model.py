from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..core.constants import (
    DEFAULT_CHECKIN_LEAD_MINUTES,
    DEFAULT_CHECKOUT_LEAD_MINUTES,
    DEFAULT_POLL_INTERVAL_MINUTES,
    DEFAULT_SEND_TIMEOUT_SECONDS,
    DEFAULT_SMTP_PORT,
    MIN_POLL_INTERVAL_MINUTES,
)


def _text(section: Mapping[str, Any], key: str) -> str:
    value = section.get(key)
    return "" if value is None else str(value).strip()


def _number(section: Mapping[str, Any], key: str) -> Optional[float]:
    value = section.get(key)
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if number != number else number  # NaN


def _int(section: Mapping[str, Any], key: str, default: int) -> int:
    number = _number(section, key)
    return default if number is None else int(number)


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


@dataclass(frozen=True)
class CompanyPolicy:
    controller_legal_name: str = ""
    controller_cif: str = ""
    controller_address: str = ""
    controller_contact_email: str = ""
    controller_contact_phone: str = ""
    has_dpo: bool = False
    dpo_name: str = ""
    dpo_email: str = ""


@dataclass(frozen=True)
class RepresentativesPolicy:
    has_worker_reps: bool = False
    reps_consultation_record: str = ""
    no_reps_statement: str = ""
    recording_method_version: str = ""
    recording_method_effective_date: str = ""


@dataclass(frozen=True)
class TimePolicy:
    payroll_provider_name: str = ""


@dataclass(frozen=True)
class GeoPolicy:
    geo_notice_version: str = ""
    geo_retention_years: Optional[float] = None


@dataclass(frozen=True)
class PrivacyPolicy:
    data_retention_years: Optional[float] = None
    privacy_notice_version: str = ""
    byod_policy_version: str = ""
    disconnection_policy_version: str = ""
    record_of_processing_version: str = ""


@dataclass(frozen=True)
class HostingPolicy:
    hosting_provider: str = ""
    data_processing_agreement_ref: str = ""


@dataclass(frozen=True)
class ExportsPolicy:
    audit_log_retention_years: Optional[float] = None


@dataclass(frozen=True)
class PolicyConfig:
    """Snapshot of the compliance-relevant settings."""

    company: CompanyPolicy = CompanyPolicy()
    representatives: RepresentativesPolicy = RepresentativesPolicy()
    time: TimePolicy = TimePolicy()
    geo: GeoPolicy = GeoPolicy()
    privacy: PrivacyPolicy = PrivacyPolicy()
    hosting: HostingPolicy = HostingPolicy()
    exports: ExportsPolicy = ExportsPolicy()

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> "PolicyConfig":
        company = settings.get("company") or {}
        reps = settings.get("representatives") or {}
        time_ = settings.get("time") or {}
        geo = settings.get("geo") or {}
        privacy = settings.get("privacy") or {}
        hosting = settings.get("hosting") or {}
        exports = settings.get("exports") or {}

        return cls(
            company=CompanyPolicy(
                controller_legal_name=_text(company, "controller_legal_name"),
                controller_cif=_text(company, "controller_cif"),
                controller_address=_text(company, "controller_address"),
                controller_contact_email=_text(company, "controller_contact_email"),
                controller_contact_phone=_text(company, "controller_contact_phone"),
                has_dpo=_flag(company.get("has_dpo")),
                dpo_name=_text(company, "dpo_name"),
                dpo_email=_text(company, "dpo_email"),
            ),
            representatives=RepresentativesPolicy(
                has_worker_reps=_flag(reps.get("has_worker_reps")),
                reps_consultation_record=_text(reps, "reps_consultation_record"),
                no_reps_statement=_text(reps, "no_reps_statement"),
                recording_method_version=_text(reps, "recording_method_version"),
                recording_method_effective_date=_text(reps, "recording_method_effective_date"),
            ),
            time=TimePolicy(payroll_provider_name=_text(time_, "payroll_provider_name")),
            geo=GeoPolicy(
                geo_notice_version=_text(geo, "geo_notice_version"),
                geo_retention_years=_number(geo, "geo_retention_years"),
            ),
            privacy=PrivacyPolicy(
                data_retention_years=_number(privacy, "data_retention_years"),
                privacy_notice_version=_text(privacy, "privacy_notice_version"),
                byod_policy_version=_text(privacy, "byod_policy_version"),
                disconnection_policy_version=_text(privacy, "disconnection_policy_version"),
                record_of_processing_version=_text(privacy, "record_of_processing_version"),
            ),
            hosting=HostingPolicy(
                hosting_provider=_text(hosting, "hosting_provider"),
                data_processing_agreement_ref=_text(hosting, "data_processing_agreement_ref"),
            ),
            exports=ExportsPolicy(audit_log_retention_years=_number(exports, "audit_log_retention_years")),
        )


@dataclass(frozen=True)
class SchedulerConfig:
    reminders_enabled: bool = True
    checkin_lead_minutes: int = DEFAULT_CHECKIN_LEAD_MINUTES
    checkout_lead_minutes: int = DEFAULT_CHECKOUT_LEAD_MINUTES
    poll_interval_minutes: int = DEFAULT_POLL_INTERVAL_MINUTES

    def __post_init__(self):
        if self.poll_interval_minutes < MIN_POLL_INTERVAL_MINUTES:
            object.__setattr__(self, "poll_interval_minutes", MIN_POLL_INTERVAL_MINUTES)

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> "SchedulerConfig":
        rota = settings.get("rota") or {}
        return cls(
            reminders_enabled=_flag(rota.get("reminders_enabled", True)),
            checkin_lead_minutes=_int(rota, "checkin_lead_minutes", DEFAULT_CHECKIN_LEAD_MINUTES),
            checkout_lead_minutes=_int(rota, "checkout_lead_minutes", DEFAULT_CHECKOUT_LEAD_MINUTES),
            poll_interval_minutes=_int(rota, "scheduler_interval_minutes", DEFAULT_POLL_INTERVAL_MINUTES),
        )


@dataclass(frozen=True)
class EmailConfig:
    host: str = ""
    port: int = DEFAULT_SMTP_PORT
    secure: bool = False
    user: str = ""
    password: str = ""
    sender: str = ""
    timeout_seconds: float = DEFAULT_SEND_TIMEOUT_SECONDS

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.sender)

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any], env: Mapping[str, str]) -> "EmailConfig":
        """Live settings first, then the SMTP_* environment variables."""
        email = settings.get("email") or {}

        def pick(key: str, env_key: str) -> str:
            return _text(email, key) or str(env.get(env_key, "") or "").strip()

        secure = email.get("smtp_secure")
        if secure is None or secure == "":
            secure = env.get("SMTP_SECURE", "false")

        timeout = _number(email, "timeout_seconds")
        return cls(
            host=pick("smtp_host", "SMTP_HOST"),
            port=int(pick("smtp_port", "SMTP_PORT") or DEFAULT_SMTP_PORT),
            secure=_flag(secure),
            user=pick("smtp_user", "SMTP_USER"),
            password=pick("smtp_pass", "SMTP_PASS"),
            sender=pick("smtp_from", "SMTP_FROM"),
            timeout_seconds=DEFAULT_SEND_TIMEOUT_SECONDS if timeout is None else timeout,
        )
