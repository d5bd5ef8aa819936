"""LLM provider implementations."""
from __future__ import annotations

from .ai_core import AccessToken, AICoreCredentials, AICoreProvider, TokenCache
from .base import (
    APIErrorType,
    AuthError,
    LLMCallError,
    LLMProvider,
    ResponseShapeError,
    classify_api_error,
    error_type_of,
)

__all__ = [
    "AICoreCredentials",
    "AICoreProvider",
    "APIErrorType",
    "AccessToken",
    "AuthError",
    "LLMCallError",
    "LLMProvider",
    "ResponseShapeError",
    "TokenCache",
    "classify_api_error",
    "error_type_of",
]
