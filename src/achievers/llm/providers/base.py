"""Base class for LLM providers and the errors they raise."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from achievers.llm.prompts.builder import ResolvedPrompt


class APIErrorType(Enum):
    """Why an AI call failed. Recorded with every failed call."""

    AUTH_FAILED = "auth_failed"
    RATE_LIMITED = "rate_limited"
    API_UNAVAILABLE = "api_unavailable"
    BUDGET_EXCEEDED = "budget_exceeded"
    INVALID_RESPONSE = "invalid_response"
    UNKNOWN = "unknown"


STATUS_ERROR_TYPES = {
    401: APIErrorType.AUTH_FAILED,
    402: APIErrorType.BUDGET_EXCEEDED,
    403: APIErrorType.AUTH_FAILED,
    429: APIErrorType.RATE_LIMITED,
    500: APIErrorType.API_UNAVAILABLE,
    502: APIErrorType.API_UNAVAILABLE,
    503: APIErrorType.API_UNAVAILABLE,
    504: APIErrorType.API_UNAVAILABLE,
}

# Checked in order against the lowercased message when there is no status
MESSAGE_PATTERNS = [
    (APIErrorType.BUDGET_EXCEEDED, ("budget", "quota exceeded", "billing")),
    (APIErrorType.RATE_LIMITED, ("rate limit", "too many requests", "throttl")),
    (
        APIErrorType.API_UNAVAILABLE,
        (
            "unavailable",
            "overloaded",
            "timed out",
            "timeout",
            "connection error",
            "try again later",
        ),
    ),
]


def _status_code(error: BaseException) -> int | None:
    # openai.APIStatusError carries status_code; httpx.HTTPStatusError a response
    status = getattr(error, "status_code", None)
    if status is None:
        response = getattr(error, "response", None)
        status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None


def classify_api_error(error: BaseException) -> APIErrorType:
    """Classify a transport or SDK error by HTTP status, then by message."""
    status = _status_code(error)
    if status is not None and status in STATUS_ERROR_TYPES:
        return STATUS_ERROR_TYPES[status]

    message = str(error).lower()
    for error_type, patterns in MESSAGE_PATTERNS:
        if any(pattern in message for pattern in patterns):
            return error_type
    return APIErrorType.UNKNOWN


def error_type_of(error: BaseException) -> APIErrorType:
    """The recorded failure category for any error raised on the AI path."""
    if isinstance(error, LLMCallError):
        return error.error_type
    if isinstance(error, AuthError):
        return APIErrorType.AUTH_FAILED
    return classify_api_error(error)


class AuthError(Exception):
    """Raised when the credential exchange fails."""


class LLMCallError(Exception):
    """Raised when a completion request fails or returns unusable content."""

    default_error_type = APIErrorType.UNKNOWN

    def __init__(self, message: str, error_type: APIErrorType | None = None) -> None:
        super().__init__(message)
        self.error_type = error_type or self.default_error_type

    @classmethod
    def wrap(cls, error: Exception) -> "LLMCallError":
        """Wrap an underlying HTTP/network error, keeping its classification."""
        wrapped = cls(f"Completion request failed: {error}", classify_api_error(error))
        wrapped.__cause__ = error
        return wrapped


class ResponseShapeError(LLMCallError):
    """Raised when a structured response does not match the expected shape."""

    default_error_type = APIErrorType.INVALID_RESPONSE


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    Providers execute a resolved prompt and return the raw completion
    text. They know nothing about what the prompt means, and they never
    retry: callers decide what to do on failure.
    """

    provider_name: str

    def __init__(self, model: str) -> None:
        self.model = model

    @abstractmethod
    async def complete(self, prompt: "ResolvedPrompt") -> str:
        """Run a single chat completion.

        Args:
            prompt: The resolved 4-part prompt.

        Returns:
            The first completion's text, verbatim.

        Raises:
            AuthError: If no token could be obtained.
            LLMCallError: If the request failed.
        """

    async def health_check(self) -> dict[str, object]:
        """Report whether the provider can authenticate."""
        return {"status": "healthy", "provider": self.provider_name}
