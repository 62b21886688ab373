"""E-mail provider over SMTP."""

from .adapter import EmailAdapter, EmailConfig
from .payload import EmailPayload
from .response import EmailResponse

__all__ = ["EmailAdapter", "EmailConfig", "EmailPayload", "EmailResponse"]
