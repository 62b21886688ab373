"""Apple Push Notification service provider."""

from .adapter import ApnsAdapter, ApnsConfig
from .payload import ApnsPayload, ApnsPriority
from .response import ApnsBatchResponse, ApnsResponse

__all__ = [
    "ApnsAdapter",
    "ApnsBatchResponse",
    "ApnsConfig",
    "ApnsPayload",
    "ApnsPriority",
    "ApnsResponse",
]
