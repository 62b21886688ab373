"""Windows Push Notification Service provider."""

from .adapter import WnsAdapter, WnsConfig
from .payload import WnsPayload
from .response import WnsResponse

__all__ = ["WnsAdapter", "WnsConfig", "WnsPayload", "WnsResponse"]
