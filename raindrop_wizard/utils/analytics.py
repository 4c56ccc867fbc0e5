"""Best-effort failure telemetry.

Events are written to the diagnostic log. Capturing must never raise or
delay the error it reports.
"""

import uuid
from typing import Any

from raindrop_wizard.utils.logging import get_logger

logger = get_logger(__name__)

# One trace id per process, shared by every remote query of the run
TRACE_ID = str(uuid.uuid4())


class Analytics:
    """Records wizard events for later troubleshooting."""

    def __init__(self, distinct_id: str | None = None):
        self.distinct_id = distinct_id or TRACE_ID

    def capture_exception(
        self,
        error: BaseException,
        properties: dict[str, Any] | None = None,
    ) -> None:
        """Record a failure with its context."""
        try:
            payload = self._payload("$exception", properties)
            payload["exception_type"] = type(error).__name__
            payload["exception_message"] = str(error)
            logger.error(
                f"Captured exception: {type(error).__name__}",
                extra={"extra_data": payload},
            )
        except Exception as e:
            logger.debug(f"Failed to capture exception: {e}")

    def _payload(self, event: str, properties: dict[str, Any] | None) -> dict[str, Any]:
        return {
            "event": event,
            "distinct_id": self.distinct_id,
            "trace_id": TRACE_ID,
            "properties": dict(properties or {}),
        }


analytics = Analytics()
