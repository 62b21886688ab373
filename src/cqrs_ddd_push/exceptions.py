"""Exception hierarchy for push dispatch.

Delivery outcomes are reported through ``PushStatus``; these exceptions only
signal caller contract violations and out-of-band provider calls.
"""

from __future__ import annotations


class PushError(Exception):
    """Root exception for the push dispatch package."""


class AdapterRegistrationError(PushError):
    """Raised when an object that is not a push adapter is registered."""

    def __init__(self, provider: str, adapter: object) -> None:
        self.provider = provider
        self.adapter = adapter
        super().__init__(
            f"Cannot register {type(adapter).__name__} for provider '{provider}': "
            "it does not implement IPushAdapter"
        )


class InvalidPayloadError(PushError):
    """Raised when an adapter receives a payload or target list it cannot send."""


class ProviderRequestError(PushError):
    """Raised when a provider management call (not a delivery) fails."""

    def __init__(self, provider: str, reason: str) -> None:
        self.provider = provider
        self.reason = reason
        super().__init__(f"{provider} request failed: {reason}")
