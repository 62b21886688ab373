"""WNS payloads: toast, tile, badge and raw notifications."""

from __future__ import annotations

import logging
from typing import Literal
from xml.sax.saxutils import escape, quoteattr

from pydantic import BaseModel, ConfigDict, field_validator

logger = logging.getLogger(__name__)

MAX_LAUNCH_LENGTH = 256

XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>\n'


class WnsPayload(BaseModel):
    """Windows Push Notification Service payload.

    ``kind`` selects the ``X-WNS-Type`` and the body format: toast and tile
    are XML templates, badge is a ``<badge value=.../>`` element and raw is
    sent as an opaque octet stream.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["toast", "tile", "badge", "raw"] = "toast"
    title: str | None = None
    body: str | None = None
    launch: str | None = None
    badge_value: str | None = None
    raw: str = ""

    @field_validator("launch")
    @classmethod
    def _truncate_launch(cls, value: str | None) -> str | None:
        if value is not None and len(value) > MAX_LAUNCH_LENGTH:
            logger.info("Launch argument for WNS toast notification too long. Truncated.")
            return value[:MAX_LAUNCH_LENGTH]
        return value

    def is_broadcast(self) -> bool:
        return False

    @property
    def wns_type(self) -> str:
        return f"wns/{self.kind}"

    @property
    def content_type(self) -> str:
        return "application/octet-stream" if self.kind == "raw" else "text/xml"

    def to_body(self) -> str:
        if self.kind == "raw":
            return self.raw
        if self.kind == "badge":
            return f"{XML_HEADER}<badge value={quoteattr(self.badge_value or 'none')}/>\n"
        if self.kind == "tile":
            return self._tile()
        return self._toast()

    def _texts(self) -> list[str]:
        texts = [text for text in (self.title, self.body) if text is not None]
        return [f'<text id="{i}">{escape(text)}</text>\n' for i, text in enumerate(texts, 1)]

    def _toast(self) -> str:
        template = "ToastText02" if self.title is not None and self.body is not None else "ToastText01"
        return (
            f"{XML_HEADER}<toast launch={quoteattr(self.launch or '')}>\n"
            f"<visual>\n<binding template=\"{template}\">\n"
            + "".join(self._texts())
            + "</binding>\n</visual>\n</toast>\n"
        )

    def _tile(self) -> str:
        template = (
            "TileWide310x150Text09"
            if self.title is not None and self.body is not None
            else "TileWide310x150Text04"
        )
        return (
            f"{XML_HEADER}<tile>\n<visual version=\"2\">\n"
            f"<binding template=\"{template}\">\n"
            + "".join(self._texts())
            + "</binding>\n</visual>\n</tile>\n"
        )
