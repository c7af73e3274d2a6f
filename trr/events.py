from __future__ import annotations

from . import db
from .rollout import Rollout


EVENT_TYPE_NORMAL = "Normal"
EVENT_TYPE_WARNING = "Warning"


class EventRecorder:
    """Records Kubernetes-style events against a rollout in the events table."""

    def event(self, rollout: Rollout, event_type: str, reason: str, message: str) -> None:
        level = "WARN" if event_type == EVENT_TYPE_WARNING else "INFO"
        db.log_event(level, message, rollout=rollout.name, reason=reason)
