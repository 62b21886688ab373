"""E-mail payload."""

from __future__ import annotations

import email.message
import email.policy

from pydantic import BaseModel, ConfigDict


class EmailPayload(BaseModel):
    """Subject and body of an e-mail notification."""

    model_config = ConfigDict(frozen=True)

    subject: str = ""
    body: str = ""
    charset: str = "utf-8"
    body_as_html: bool = False

    def is_broadcast(self) -> bool:
        return False

    def to_message(self, source: str, recipient: str) -> email.message.EmailMessage:
        message = email.message.EmailMessage(policy=email.policy.default)
        message["From"] = source
        message["To"] = recipient
        if self.subject:
            message["Subject"] = self.subject
        message.set_content(
            self.body,
            subtype="html" if self.body_as_html else "plain",
            charset=self.charset,
        )
        return message
