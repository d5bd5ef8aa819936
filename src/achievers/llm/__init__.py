"""LLM access for Achievers."""
from __future__ import annotations

from .metrics import LLMCall, MetricsCollector
from .providers import (
    AICoreProvider,
    AuthError,
    LLMCallError,
    LLMProvider,
    ResponseShapeError,
)

__all__ = [
    "AICoreProvider",
    "AuthError",
    "LLMCall",
    "LLMCallError",
    "LLMProvider",
    "MetricsCollector",
    "ResponseShapeError",
]
