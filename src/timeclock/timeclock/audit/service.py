from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from ..common.clock import Clock, SystemClock
from .model import AuditAction, AuditRecord
from .repository import AuditSink

logger = logging.getLogger(__name__)


class AuditLogger:
    """Emit one immutable audit record per state transition.

    The audit trail is a write-only side channel: a failing sink is logged
    and never breaks the operation that triggered it.
    """

    def __init__(self, sink: AuditSink, clock: Optional[Clock] = None):
        self._sink = sink
        self._clock = clock or SystemClock()

    def record(
        self,
        *,
        actor_id: Optional[int],
        action: AuditAction,
        entity_type: str,
        entity_id: Any = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> None:
        record = AuditRecord(
            actor_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=None if entity_id is None else str(entity_id),
            timestamp=self._clock.now(),
            metadata=dict(metadata or {}),
        )
        try:
            self._sink.write(record)
        except Exception:
            logger.exception("Failed to write audit record: %s %s#%s", action.value, entity_type, entity_id)
