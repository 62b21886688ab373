"""JPush v3 payload."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

JPushPlatform = Literal["android", "ios"]


class JPushPayload(BaseModel):
    """JPush push definition.

    ``kind="notification"`` produces a displayed notification,
    ``kind="message"`` an in-app (custom) message. JPush pushes are always
    addressed to registration ids, never broadcast.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["notification", "message"] = "notification"
    title: str | None = None
    body: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    category: str | None = None
    time_to_live: int | None = Field(default=None, ge=0, description="Seconds")
    collapse_key: str | None = None
    notification_id: str | None = None
    platforms: tuple[JPushPlatform, ...] = ("ios", "android")

    def is_broadcast(self) -> bool:
        return False

    def to_request(self, endpoints: list[str]) -> dict[str, Any]:
        """Build the ``/v3/push`` request body for a chunk of registration ids."""
        request: dict[str, Any] = {
            "platform": list(self.platforms),
            "audience": {"registration_id": list(endpoints)},
        }

        if self.kind == "notification":
            request["notification"] = self._notification()
        else:
            request["message"] = self._message()

        if self.notification_id is not None:
            request["cid"] = self.notification_id

        options: dict[str, Any] = {}
        if self.time_to_live is not None:
            options["time_to_live"] = self.time_to_live
        if self.collapse_key is not None:
            options["apns_collapse_id"] = self.collapse_key
        if options:
            request["options"] = options

        return request

    def _notification(self) -> dict[str, Any]:
        notification: dict[str, Any] = {}
        for platform in self.platforms:
            entry: dict[str, Any] = {}
            if self.body is not None:
                entry["alert"] = self.body
            # iOS takes its title from the alert dictionary
            if self.title is not None and platform == "android":
                entry["title"] = self.title
            if self.data:
                entry["extras"] = dict(self.data)
            if self.category is not None:
                entry["category"] = self.category
            notification[platform] = entry
        return notification

    def _message(self) -> dict[str, Any]:
        message: dict[str, Any] = {"msg_content": self.body or ""}
        if self.title is not None:
            message["title"] = self.title
        if self.data:
            message["extras"] = dict(self.data)
        if self.category is not None:
            message["content_type"] = self.category
        return message
