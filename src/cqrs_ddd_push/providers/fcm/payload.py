"""FCM HTTP v1 payload."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class FcmPayload(BaseModel):
    """Immutable FCM message definition, satisfying ``IPushPayload``.

    A payload with ``topic`` or ``condition`` is a broadcast and is sent
    without endpoints; otherwise ``to_message`` is called once per
    registration token.
    """

    model_config = ConfigDict(frozen=True)

    title: str | None = None
    body: str | None = None
    image: str | None = None
    data: dict[str, str] = Field(default_factory=dict)
    topic: str | None = None
    condition: str | None = None
    collapse_key: str | None = None
    time_to_live: int | None = Field(default=None, ge=0, description="Seconds")
    priority: Literal["high", "normal"] = "high"
    android: dict[str, Any] = Field(default_factory=dict)
    apns: dict[str, Any] = Field(default_factory=dict)

    def is_broadcast(self) -> bool:
        return bool(self.topic or self.condition)

    def to_message(self, token: str | None = None) -> dict[str, Any]:
        """Build the ``messages:send`` request body."""
        message: dict[str, Any] = {}

        if token is not None:
            message["token"] = token
        elif self.topic:
            message["topic"] = self.topic
        elif self.condition:
            message["condition"] = self.condition

        notification = {
            key: value
            for key, value in (("title", self.title), ("body", self.body), ("image", self.image))
            if value is not None
        }
        if notification:
            message["notification"] = notification
        if self.data:
            message["data"] = dict(self.data)

        android: dict[str, Any] = {"priority": self.priority.upper(), **self.android}
        if self.collapse_key is not None:
            android.setdefault("collapse_key", self.collapse_key)
        if self.time_to_live is not None:
            android.setdefault("ttl", f"{self.time_to_live}s")
        message["android"] = android

        if self.apns:
            message["apns"] = dict(self.apns)

        return {"message": message}
