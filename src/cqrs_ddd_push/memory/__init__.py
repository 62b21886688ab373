"""Memory adapters for testing and development."""

from __future__ import annotations

from .console import ConsoleAdapter
from .fake import InMemoryPushAdapter, PushCall

__all__ = ["ConsoleAdapter", "InMemoryPushAdapter", "PushCall"]
