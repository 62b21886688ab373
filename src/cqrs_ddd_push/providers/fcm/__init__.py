"""Firebase Cloud Messaging provider."""

from .adapter import FcmAdapter, FcmConfig
from .payload import FcmPayload
from .response import FcmBatchResponse, FcmResponse
from .topic import FcmTopicManager

__all__ = [
    "FcmAdapter",
    "FcmBatchResponse",
    "FcmConfig",
    "FcmPayload",
    "FcmResponse",
    "FcmTopicManager",
]
