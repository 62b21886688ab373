"""SMTP e-mail adapter using aiosmtplib."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import aiosmtplib

from ...exceptions import InvalidPayloadError
from ...ports.adapter import IMultiPushAdapter
from ...status import PushStatus
from .payload import EmailPayload
from .response import EmailResponse, smtp_code_status

if TYPE_CHECKING:
    from ...ports.payload import IPushPayload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailConfig:
    host: str
    port: int = 587
    username: str | None = None
    password: str | None = None
    use_tls: bool = True
    timeout: float = 10.0
    source: str | None = None
    batch_size: int = 100

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1")


class EmailAdapter(IMultiPushAdapter):
    """
    Delivers e-mail notifications over SMTP.

    Each chunk of ``batch_size`` recipients shares one SMTP session and every
    recipient gets an individual message, so one rejected address does not
    affect the others.
    """

    def __init__(self, config: EmailConfig) -> None:
        self.config = config
        self.batch_size = config.batch_size

    async def push(self, payload: IPushPayload, endpoints: list[str]) -> EmailResponse:
        if not isinstance(payload, EmailPayload):
            raise InvalidPayloadError(f"EmailAdapter does not support {type(payload).__name__}")

        response = EmailResponse(endpoints)
        if not endpoints:
            return response

        if not self.config.source:
            response.report_batch_failure(
                PushStatus.ERROR, "Tried to send email notification without a source address."
            )
            return response

        logger.debug("Sending email notification to %d endpoint(s)", len(endpoints))

        for start in range(0, len(endpoints), self.batch_size):
            chunk = endpoints[start : start + self.batch_size]
            try:
                await self._send_chunk(payload, chunk, response)
            except aiosmtplib.SMTPAuthenticationError as e:
                response.report_session_failure(chunk, PushStatus.ERROR, str(e))
            except (aiosmtplib.SMTPException, OSError) as e:
                response.report_session_failure(chunk, PushStatus.TEMPORARY_ERROR, str(e))

        return response

    async def _send_chunk(
        self, payload: EmailPayload, endpoints: list[str], response: EmailResponse
    ) -> None:
        async with aiosmtplib.SMTP(
            hostname=self.config.host,
            port=self.config.port,
            timeout=self.config.timeout,
            start_tls=self.config.use_tls,
        ) as smtp:
            if self.config.username and self.config.password:
                await smtp.login(self.config.username, self.config.password)

            for endpoint in endpoints:
                await self._send_one(smtp, payload, endpoint, response)

    async def _send_one(
        self,
        smtp: aiosmtplib.SMTP,
        payload: EmailPayload,
        endpoint: str,
        response: EmailResponse,
    ) -> None:
        message = payload.to_message(self.config.source or "", endpoint)
        try:
            await smtp.send_message(message)
        except (aiosmtplib.SMTPRecipientsRefused, aiosmtplib.SMTPRecipientRefused) as e:
            response.report_endpoint_failure(endpoint, PushStatus.INVALID_ENDPOINT, str(e))
            return
        except aiosmtplib.SMTPResponseException as e:
            response.report_endpoint_failure(endpoint, smtp_code_status(e.code), e.message)
            return
        response.mark([endpoint], PushStatus.SUCCESS)
