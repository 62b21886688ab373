"""APNs payload."""

from __future__ import annotations

from enum import IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ApnsPriority(IntEnum):
    """Value of the ``apns-priority`` header."""

    HIGH = 10
    """Deliver immediately."""

    NORMAL = 5
    """Deliver with power considerations; required for background pushes."""


class ApnsPayload(BaseModel):
    """Immutable APNs notification, satisfying ``IPushPayload``.

    APNs has no topic fan-out for device pushes, so a payload is never a
    broadcast. A payload without any visible field is sent as a background
    push with ``content-available``.
    """

    model_config = ConfigDict(frozen=True)

    title: str | None = None
    body: str | None = None
    sound: str | None = None
    badge: int | None = Field(default=None, ge=0)
    thread_id: str | None = None
    category: str | None = None
    content_available: bool = False
    mutable_content: bool = False
    custom_data: dict[str, Any] = Field(default_factory=dict)
    topic: str | None = None
    collapse_key: str | None = Field(default=None, max_length=64)
    identifier: str | None = None
    expiration: int | None = Field(default=None, ge=0, description="UNIX epoch seconds")
    priority: ApnsPriority | None = None

    def is_broadcast(self) -> bool:
        return False

    @property
    def push_type(self) -> str:
        visible = (self.title, self.body, self.sound, self.badge)
        return "alert" if any(value is not None for value in visible) else "background"

    def to_body(self) -> dict[str, Any]:
        aps: dict[str, Any] = {}

        alert = {
            key: value
            for key, value in (("title", self.title), ("body", self.body))
            if value is not None
        }
        if alert:
            aps["alert"] = alert
        if self.badge is not None:
            aps["badge"] = self.badge
        if self.sound is not None:
            aps["sound"] = self.sound
        if self.thread_id is not None:
            aps["thread-id"] = self.thread_id
        if self.category is not None:
            aps["category"] = self.category
        if self.content_available or self.push_type == "background":
            aps["content-available"] = 1
        if self.mutable_content:
            aps["mutable-content"] = 1

        return {**self.custom_data, "aps": aps}

    def headers(self, default_topic: str | None = None) -> dict[str, str]:
        """Build the ``apns-*`` request headers."""
        priority = self.priority
        if priority is None:
            priority = ApnsPriority.HIGH if self.push_type == "alert" else ApnsPriority.NORMAL

        headers = {
            "apns-push-type": self.push_type,
            "apns-priority": str(int(priority)),
        }
        topic = self.topic or default_topic
        if topic:
            headers["apns-topic"] = topic
        if self.collapse_key is not None:
            headers["apns-collapse-id"] = self.collapse_key
        if self.identifier is not None:
            headers["apns-id"] = self.identifier
        if self.expiration is not None:
            headers["apns-expiration"] = str(self.expiration)
        return headers
