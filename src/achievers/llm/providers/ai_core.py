"""Generative AI hub provider.

Authenticates with an OAuth client-credentials exchange, then calls an
OpenAI-compatible chat-completions deployment using the openai SDK.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any

import httpx

from achievers.llm.prompts.builder import ResolvedPrompt
from achievers.llm.providers.base import (
    APIErrorType,
    AuthError,
    LLMCallError,
    LLMProvider,
)

logger = logging.getLogger(__name__)

TOKEN_EXPIRY_MARGIN_SECONDS = 60


@dataclass(frozen=True)
class AccessToken:
    """Bearer token returned by the credential exchange."""

    access_token: str
    expires_at: float | None = None  # time.monotonic() deadline

    def is_stale(self, now: float | None = None) -> bool:
        if self.expires_at is None:
            return True
        current = time.monotonic() if now is None else now
        return current >= self.expires_at - TOKEN_EXPIRY_MARGIN_SECONDS


class TokenCache:
    """Single-flight token cache.

    Concurrent callers share one in-flight acquisition; a token is reused
    until it is within TOKEN_EXPIRY_MARGIN_SECONDS of expiring.
    """

    def __init__(self) -> None:
        self._token: AccessToken | None = None
        self._lock = asyncio.Lock()

    async def get(self, acquire: Any) -> AccessToken:
        async with self._lock:
            if self._token is None or self._token.is_stale():
                self._token = await acquire()
            return self._token

    def clear(self) -> None:
        self._token = None


@dataclass(frozen=True)
class AICoreCredentials:
    """Client credentials and endpoints for the AI service."""

    auth_url: str
    client_id: str
    client_secret: str
    api_url: str
    resource_group: str = "default"

    @classmethod
    def from_settings(cls) -> "AICoreCredentials":
        """Read credentials from settings and environment.

        Raises:
            AuthError: If any credential is not configured.
        """
        from achievers.config.settings import settings

        values = {
            "auth_url": settings.auth_url,
            "client_id": settings.client_id,
            "client_secret": settings.client_secret,
            "api_url": settings.api_url,
        }
        missing = [key for key, value in values.items() if not value]
        if missing:
            raise AuthError(f"AI credentials not configured: {', '.join(missing)}")
        return cls(
            auth_url=str(values["auth_url"]),
            client_id=str(values["client_id"]),
            client_secret=str(values["client_secret"]),
            api_url=str(values["api_url"]),
            resource_group=settings.resource_group,
        )


class AICoreProvider(LLMProvider):
    """Chat-completion provider for a fixed model deployment.

    By default a fresh token is acquired for every completion, so
    concurrent calls each authenticate independently. Pass
    cache_tokens=True to share tokens until they expire.
    """

    provider_name = "ai-core"

    def __init__(
        self,
        credentials: AICoreCredentials,
        deployment_id: str,
        model: str = "gpt-4o",
        temperature: float = 0.82,
        api_version: str = "2023-05-15",
        cache_tokens: bool = False,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(model=model)
        self.credentials = credentials
        self.deployment_id = deployment_id
        self.temperature = temperature
        self.api_version = api_version
        self.timeout = timeout
        self._transport = transport
        self._token_cache = TokenCache() if cache_tokens else None
        logger.info(
            "AICoreProvider initialized (deployment=%s, cache_tokens=%s)",
            deployment_id,
            cache_tokens,
        )

    @classmethod
    def from_settings(cls) -> "AICoreProvider":
        """Build a provider from the global settings."""
        from achievers.config.settings import settings

        return cls(
            credentials=AICoreCredentials.from_settings(),
            deployment_id=settings.deployment_id,
            temperature=settings.temperature,
            api_version=settings.api_version,
            cache_tokens=settings.cache_tokens,
        )

    @property
    def deployment_url(self) -> str:
        base = self.credentials.api_url.rstrip("/")
        return f"{base}/v2/inference/deployments/{self.deployment_id}"

    async def acquire_token(self) -> AccessToken:
        """Exchange client credentials for a bearer token.

        Raises:
            AuthError: On a non-2xx response, a network error, or a
                response without an access_token.
        """
        url = self.credentials.auth_url.rstrip("/") + "/oauth/token"
        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=self.timeout
            ) as client:
                resp = await client.get(
                    url,
                    params={"grant_type": "client_credentials"},
                    auth=(self.credentials.client_id, self.credentials.client_secret),
                    headers={"Content-Type": "application/json"},
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            logger.error("Token exchange failed: HTTP %s", e.response.status_code)
            raise AuthError(
                f"Token exchange failed with HTTP {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Token exchange failed: %s", e)
            raise AuthError(f"Token exchange failed: {e}") from e

        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise AuthError("Token exchange response has no access_token")

        expires_in = data.get("expires_in")
        expires_at = None
        if isinstance(expires_in, (int, float)):
            expires_at = time.monotonic() + float(expires_in)
        logger.info("Access token obtained")
        return AccessToken(access_token=str(token), expires_at=expires_at)

    async def _token(self) -> AccessToken:
        if self._token_cache is None:
            return await self.acquire_token()
        return await self._token_cache.get(self.acquire_token)

    def _get_async_client(self, token: AccessToken) -> Any:
        """Get an async OpenAI client bound to the deployment."""
        from openai import AsyncOpenAI

        return AsyncOpenAI(
            api_key=token.access_token,
            base_url=self.deployment_url,
            default_headers={"AI-Resource-Group": self.credentials.resource_group},
            default_query={"api-version": self.api_version},
            max_retries=0,
            timeout=self.timeout,
        )

    def build_messages(self, prompt: ResolvedPrompt) -> list[dict[str, str]]:
        """System message plus one user message of context, task and format."""
        return [
            {"role": "system", "content": prompt.system},
            {"role": "user", "content": prompt.user_message},
        ]

    async def complete(self, prompt: ResolvedPrompt) -> str:
        """Run a single chat completion. Never retries."""
        token = await self._token()
        messages = self.build_messages(prompt)
        logger.info(
            "complete: system=%d chars, user=%d chars",
            len(prompt.system),
            len(messages[1]["content"]),
        )

        start_time = time.perf_counter()
        async with self._get_async_client(token) as client:
            try:
                response = await client.chat.completions.create(
                    model=self.model,
                    messages=messages,
                    temperature=self.temperature,
                )
            except Exception as e:
                logger.error("Completion request failed: %s", e)
                raise LLMCallError.wrap(e) from e

        elapsed_ms = int((time.perf_counter() - start_time) * 1000)
        choices = getattr(response, "choices", None) or []
        if not choices:
            raise LLMCallError(
                "Completion response has no choices", APIErrorType.INVALID_RESPONSE
            )
        content = choices[0].message.content
        if not content:
            raise LLMCallError(
                "Completion response is empty", APIErrorType.INVALID_RESPONSE
            )

        logger.info("Completion received in %dms (%d chars)", elapsed_ms, len(content))
        return str(content)

    async def health_check(self) -> dict[str, object]:
        """Check that a token can be obtained."""
        try:
            token = await self.acquire_token()
        except AuthError as e:
            return {
                "status": "unhealthy",
                "provider": self.provider_name,
                "error": str(e),
            }
        return {
            "status": "healthy",
            "provider": self.provider_name,
            "token": bool(token.access_token),
        }
