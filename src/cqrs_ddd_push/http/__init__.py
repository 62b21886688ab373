"""Shared HTTP classification and batch-response helpers for adapters."""

from __future__ import annotations

from .classification import (
    HttpStatusClassifier,
    classify_transport_error,
    default_classifier,
    upstream_error,
)
from .responses import (
    BatchResponse,
    BroadcastBatchResponse,
    BroadcastPushResponse,
    DeferredBatchResponse,
    DeferredPushResponse,
    MultiPushResponse,
)

__all__ = [
    "BatchResponse",
    "BroadcastBatchResponse",
    "BroadcastPushResponse",
    "DeferredBatchResponse",
    "DeferredPushResponse",
    "HttpStatusClassifier",
    "MultiPushResponse",
    "classify_transport_error",
    "default_classifier",
    "upstream_error",
]
