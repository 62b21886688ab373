"""JPush provider."""

from .adapter import JPushAdapter, JPushConfig
from .payload import JPushPayload
from .report import JPushReport
from .response import JPushBatchResponse, JPushResponse

__all__ = [
    "JPushAdapter",
    "JPushBatchResponse",
    "JPushConfig",
    "JPushPayload",
    "JPushReport",
    "JPushResponse",
]
