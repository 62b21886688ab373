"""cqrs-ddd-push: provider-agnostic push notification dispatch.

Groups targets by provider and payload variant, drives registered provider
adapters (FCM, JPush, e-mail, WNS) and classifies every target into a
``PushStatus`` bucket.
"""

from __future__ import annotations

# ── Engine ───────────────────────────────────────────────────────
from .buckets import BroadcastStatuses, DispatchResult, StatusBuckets
from .dispatcher import DispatcherConfig, PushNotificationDispatcher

# ── Errors ───────────────────────────────────────────────────────
from .exceptions import (
    AdapterRegistrationError,
    InvalidPayloadError,
    ProviderRequestError,
    PushError,
)

# ── Instrumentation ──────────────────────────────────────────────
from .instrumentation import (
    HookRegistration,
    HookRegistry,
    InstrumentationHook,
    get_hook_registry,
    set_hook_registry,
)

# ── Ports ────────────────────────────────────────────────────────
from .ports import (
    IBroadcastResponse,
    IDeferredResponse,
    IMultiPushAdapter,
    IPushAdapter,
    IPushPayload,
    IPushResponse,
)
from .status import PushStatus
from .target import TRACKING_ID_FIELD, PushTarget

__all__ = [
    # Engine
    "BroadcastStatuses",
    "DispatchResult",
    "DispatcherConfig",
    "PushNotificationDispatcher",
    "StatusBuckets",
    # Errors
    "AdapterRegistrationError",
    "InvalidPayloadError",
    "ProviderRequestError",
    "PushError",
    # Instrumentation
    "HookRegistration",
    "HookRegistry",
    "InstrumentationHook",
    "get_hook_registry",
    "set_hook_registry",
    # Ports
    "IBroadcastResponse",
    "IDeferredResponse",
    "IMultiPushAdapter",
    "IPushAdapter",
    "IPushPayload",
    "IPushResponse",
    # Model
    "PushStatus",
    "PushTarget",
    "TRACKING_ID_FIELD",
]
