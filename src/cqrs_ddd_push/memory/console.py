"""Console adapter for development debugging."""

from __future__ import annotations

import logging

from ..ports.adapter import IMultiPushAdapter
from ..ports.payload import IPushPayload
from ..status import PushStatus
from .fake import InMemoryBroadcastResponse

logger = logging.getLogger(__name__)


class ConsoleAdapter(IMultiPushAdapter):
    """
    Development adapter that prints pushes to the console.

    Every endpoint, and every broadcast, is reported ``SUCCESS``.
    """

    def __init__(self, output_to_stdout: bool = True, batch_size: int = 1000) -> None:
        self.output_to_stdout = output_to_stdout
        self.batch_size = batch_size

    async def push(
        self, payload: IPushPayload, endpoints: list[str]
    ) -> InMemoryBroadcastResponse:
        if payload.is_broadcast():
            recipients = "(broadcast)"
        else:
            recipients = ", ".join(endpoints)

        output = [
            "═" * 50,
            f"PUSH NOTIFICATION ({type(payload).__name__})",
            f"To:      {recipients}",
            f"Payload: {payload!r}",
            "═" * 50,
        ]

        full_output = "\n".join(output)
        logger.info(full_output)

        if self.output_to_stdout:
            print(full_output)

        return InMemoryBroadcastResponse(
            dict.fromkeys(endpoints, PushStatus.SUCCESS), PushStatus.SUCCESS
        )
