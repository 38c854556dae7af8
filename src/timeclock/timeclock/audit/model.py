from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class AuditAction(str, Enum):
    CLOCK_IN = "clock_in"
    CLOCK_OUT = "clock_out"
    BREAK_START = "break_start"
    BREAK_END = "break_end"
    GEO_CAPTURE = "geo_capture"
    CORRECTION_REQUESTED = "correction_requested"
    CORRECTION_UPDATE = "correction_update"

    ROTA_PUBLISHED = "rota_published"
    ROTA_UNPUBLISHED = "rota_unpublished"
    ROTA_NOTIFY_SENT = "rota_notify_sent"
    ROTA_WEEK_COPIED = "rota_week_copied"
    ROTA_SHIFT_CREATED = "rota_shift_created"
    ROTA_SHIFT_UPDATED = "rota_shift_updated"
    ROTA_SHIFT_DELETED = "rota_shift_deleted"
    ROTA_SHIFT_COPIED = "rota_shift_copied"

    REMINDER_SENT = "reminder_sent"


@dataclass(frozen=True)
class AuditRecord:
    actor_id: Optional[int]
    action: AuditAction
    entity_type: str
    entity_id: Optional[str]
    timestamp: datetime
    metadata: dict[str, Any] = field(default_factory=dict)
