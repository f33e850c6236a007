"""
Kubernetes event recording for Installation resources.

Events are a notification side channel. Posting one never fails a
reconciliation pass.
"""

import logging
from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_STAGE_COMPLETE,
    EVENT_TYPE_NORMAL,
    EVENT_TYPE_WARNING,
)

logger = logging.getLogger(__name__)


class EventRecorder:
    """Posts events attached to one Installation body."""

    def __init__(self, body: Any):
        self.body = body

    def record(self, event_type: str, reason: str, message: str) -> None:
        # kopf.event queues the post and logs its own delivery failures
        kopf.event(self.body, type=event_type, reason=reason, message=message)
        logger.debug(f"Recorded {event_type} event {reason}: {message}")

    def record_stage_complete(self, stage: str) -> None:
        self.record(
            EVENT_TYPE_NORMAL,
            EVENT_REASON_STAGE_COMPLETE,
            f"{stage} installation completed",
        )

    def record_error(self, reason: str, message: str) -> None:
        self.record(EVENT_TYPE_WARNING, reason, message)
