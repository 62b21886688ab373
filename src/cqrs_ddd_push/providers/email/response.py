"""E-mail response classification."""

from __future__ import annotations

import logging

from ...http.responses import BatchResponse
from ...ports.response import IPushResponse
from ...status import PushStatus

logger = logging.getLogger(__name__)


def smtp_code_status(code: int) -> PushStatus:
    """Map an SMTP reply code of a rejected command to a ``PushStatus``."""
    if 400 <= code < 500:
        return PushStatus.TEMPORARY_ERROR
    return PushStatus.ERROR


class EmailResponse(BatchResponse, IPushResponse):
    """
    Per-recipient outcome of one e-mail push.

    Recipients the adapter never reached stay ``UNKNOWN``.
    """

    provider = "email"

    def __init__(self, endpoints: list[str]) -> None:
        super().__init__(endpoints, logger)

    def report_session_failure(
        self, endpoints: list[str], status: PushStatus, reason: str
    ) -> None:
        """Mark ``endpoints`` not yet classified with ``status`` and log once."""
        pending = [endpoint for endpoint in endpoints if endpoint not in self._statuses]
        self.mark(pending, status)
        logger.warning(
            "Sending email notification failed for %d endpoint(s): %s", len(pending), reason
        )
