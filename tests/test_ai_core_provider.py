"""Tests for the AI service provider: token exchange and completions."""

import asyncio
import base64
from types import SimpleNamespace

import httpx
import pytest

from achievers.config.settings import settings
from achievers.llm.prompts import ResolvedPrompt
from achievers.llm.providers.ai_core import (
    AccessToken,
    AICoreCredentials,
    AICoreProvider,
    TokenCache,
)
from achievers.llm.providers.base import (
    APIErrorType,
    AuthError,
    LLMCallError,
    ResponseShapeError,
    classify_api_error,
    error_type_of,
)

CREDENTIALS = AICoreCredentials(
    auth_url="https://auth.example.com/",
    client_id="client",
    client_secret="secret",
    api_url="https://api.example.com",
    resource_group="rg-1",
)

PROMPT = ResolvedPrompt(
    system="You are helpful.", context="Context", task="Task", format="Format"
)


def _token_transport(
    requests: list[httpx.Request], status: int = 200, body: object = None
) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        payload = body
        if payload is None:
            payload = {"access_token": "tok-1", "expires_in": 3600}
        return httpx.Response(status, json=payload)

    return httpx.MockTransport(handler)


class FakeCompletions:
    def __init__(self, response: object = None, error: Exception | None = None):
        self.calls: list[dict[str, object]] = []
        self.response = response
        self.error = error

    async def create(self, **kwargs: object) -> object:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


class FakeClient:
    """Stands in for AsyncOpenAI, including its async context manager."""

    def __init__(self, completions: FakeCompletions) -> None:
        self.chat = SimpleNamespace(completions=completions)
        self.closed = False

    async def __aenter__(self) -> "FakeClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.closed = True


def _response(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
    )


def _provider(
    requests: list[httpx.Request], completions: FakeCompletions, **kwargs: object
) -> tuple[AICoreProvider, list[FakeClient]]:
    provider = AICoreProvider(
        CREDENTIALS,
        deployment_id="dep-1",
        transport=_token_transport(requests),
        **kwargs,  # type: ignore[arg-type]
    )
    clients: list[FakeClient] = []

    def fake_client(token: AccessToken) -> FakeClient:
        assert token.access_token == "tok-1"
        clients.append(FakeClient(completions))
        return clients[-1]

    provider._get_async_client = fake_client  # type: ignore[method-assign]
    return provider, clients


class TestTokenExchange:
    """Tests for acquire_token()."""

    def test_request_shape(self) -> None:
        requests: list[httpx.Request] = []
        provider = AICoreProvider(
            CREDENTIALS, deployment_id="dep-1", transport=_token_transport(requests)
        )

        token = asyncio.run(provider.acquire_token())

        assert token.access_token == "tok-1"
        assert token.expires_at is not None
        request = requests[0]
        assert request.method == "GET"
        assert request.url.path == "/oauth/token"
        assert request.url.params["grant_type"] == "client_credentials"
        expected = base64.b64encode(b"client:secret").decode()
        assert request.headers["authorization"] == f"Basic {expected}"

    def test_http_error_is_auth_error(self) -> None:
        provider = AICoreProvider(
            CREDENTIALS,
            deployment_id="dep-1",
            transport=_token_transport([], status=401, body={"error": "nope"}),
        )
        with pytest.raises(AuthError, match="401"):
            asyncio.run(provider.acquire_token())

    def test_missing_access_token_is_auth_error(self) -> None:
        provider = AICoreProvider(
            CREDENTIALS,
            deployment_id="dep-1",
            transport=_token_transport([], body={"token_type": "bearer"}),
        )
        with pytest.raises(AuthError, match="access_token"):
            asyncio.run(provider.acquire_token())

    def test_network_error_is_auth_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        provider = AICoreProvider(
            CREDENTIALS, deployment_id="dep-1", transport=httpx.MockTransport(handler)
        )
        with pytest.raises(AuthError, match="connection refused"):
            asyncio.run(provider.acquire_token())


class TestComplete:
    """Tests for complete()."""

    def test_sends_system_and_joined_user_message(self) -> None:
        requests: list[httpx.Request] = []
        completions = FakeCompletions(response=_response("Hello"))
        provider, clients = _provider(requests, completions)

        text = asyncio.run(provider.complete(PROMPT))

        assert text == "Hello"
        assert clients[0].closed is True
        call = completions.calls[0]
        assert call["temperature"] == 0.82
        assert call["messages"] == [
            {"role": "system", "content": "You are helpful."},
            {"role": "user", "content": "Context\n\nTask\n\nFormat"},
        ]

    def test_fresh_token_per_call_by_default(self) -> None:
        requests: list[httpx.Request] = []
        completions = FakeCompletions(response=_response("Hi"))
        provider, _ = _provider(requests, completions)

        async def run_two() -> None:
            await provider.complete(PROMPT)
            await provider.complete(PROMPT)

        asyncio.run(run_two())
        assert len(requests) == 2

    def test_cached_token_reused_until_stale(self) -> None:
        requests: list[httpx.Request] = []
        completions = FakeCompletions(response=_response("Hi"))
        provider, _ = _provider(requests, completions, cache_tokens=True)

        async def run_concurrently() -> None:
            await asyncio.gather(*(provider.complete(PROMPT) for _ in range(3)))

        asyncio.run(run_concurrently())
        assert len(requests) == 1
        assert len(completions.calls) == 3

    def test_request_failure_is_wrapped_and_classified(self) -> None:
        completions = FakeCompletions(error=RuntimeError("429 Too Many Requests"))
        provider, clients = _provider([], completions)

        with pytest.raises(LLMCallError) as exc_info:
            asyncio.run(provider.complete(PROMPT))
        assert exc_info.value.error_type is APIErrorType.RATE_LIMITED
        assert clients[0].closed is True

    def test_empty_choices_is_llm_call_error(self) -> None:
        completions = FakeCompletions(response=SimpleNamespace(choices=[]))
        provider, _ = _provider([], completions)
        with pytest.raises(LLMCallError, match="no choices"):
            asyncio.run(provider.complete(PROMPT))

    def test_empty_content_is_llm_call_error(self) -> None:
        completions = FakeCompletions(response=_response(""))
        provider, _ = _provider([], completions)
        with pytest.raises(LLMCallError, match="empty") as exc_info:
            asyncio.run(provider.complete(PROMPT))
        assert exc_info.value.error_type is APIErrorType.INVALID_RESPONSE

    def test_auth_failure_skips_completion(self) -> None:
        completions = FakeCompletions(response=_response("Hi"))
        provider = AICoreProvider(
            CREDENTIALS,
            deployment_id="dep-1",
            transport=_token_transport([], status=500, body={}),
        )
        provider._get_async_client = (  # type: ignore[method-assign]
            lambda token: FakeClient(completions)
        )
        with pytest.raises(AuthError):
            asyncio.run(provider.complete(PROMPT))
        assert completions.calls == []


class TestConfiguration:
    """Tests for endpoint and settings wiring."""

    def test_deployment_url(self) -> None:
        provider = AICoreProvider(CREDENTIALS, deployment_id="dep-1")
        assert provider.deployment_url == (
            "https://api.example.com/v2/inference/deployments/dep-1"
        )

    def test_client_headers_and_query(self) -> None:
        provider = AICoreProvider(CREDENTIALS, deployment_id="dep-1")
        client = provider._get_async_client(AccessToken("tok-1"))
        assert str(client.base_url).startswith(provider.deployment_url)
        assert client.default_headers["AI-Resource-Group"] == "rg-1"
        assert client.max_retries == 0

    def test_from_settings_missing_credentials(self) -> None:
        settings._data = {}
        with pytest.raises(AuthError, match="auth_url"):
            AICoreCredentials.from_settings()

    def test_env_overrides_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        settings._data = {
            "ai_core": {
                "url": "https://settings-auth",
                "client_id": "id",
                "client_secret": "secret",
                "api_url": "https://settings-api",
            }
        }
        monkeypatch.setenv("AICORE_AUTH_URL", "https://env-auth")
        monkeypatch.setenv("AICORE_RESOURCE_GROUP", "env-rg")

        credentials = AICoreCredentials.from_settings()
        assert credentials.auth_url == "https://env-auth"
        assert credentials.api_url == "https://settings-api"
        assert credentials.resource_group == "env-rg"


class TestTokenCache:
    """Tests for TokenCache staleness."""

    def test_token_without_expiry_is_stale(self) -> None:
        assert AccessToken("t").is_stale() is True

    def test_token_stale_inside_margin(self) -> None:
        token = AccessToken("t", expires_at=1000.0)
        assert token.is_stale(now=900.0) is False
        assert token.is_stale(now=950.0) is True

    def test_clear_forces_reacquire(self) -> None:
        cache = TokenCache()
        issued: list[int] = []

        async def acquire() -> AccessToken:
            issued.append(1)
            return AccessToken(f"t{len(issued)}", expires_at=10**12)

        async def run() -> tuple[AccessToken, AccessToken]:
            first = await cache.get(acquire)
            cache.clear()
            return first, await cache.get(acquire)

        first, second = asyncio.run(run())
        assert (first.access_token, second.access_token) == ("t1", "t2")


class TestErrorClassification:
    """Tests for classify_api_error() and error_type_of()."""

    def test_status_code_wins_over_message(self) -> None:
        error = RuntimeError("something odd")
        error.status_code = 503  # type: ignore[attr-defined]
        assert classify_api_error(error) is APIErrorType.API_UNAVAILABLE

    def test_http_status_error_uses_response_status(self) -> None:
        request = httpx.Request("POST", "https://api.example.com")
        error = httpx.HTTPStatusError(
            "denied", request=request, response=httpx.Response(401, request=request)
        )
        assert classify_api_error(error) is APIErrorType.AUTH_FAILED

    def test_message_patterns(self) -> None:
        assert classify_api_error(RuntimeError("Request timed out.")) is (
            APIErrorType.API_UNAVAILABLE
        )
        assert classify_api_error(RuntimeError("Monthly budget reached")) is (
            APIErrorType.BUDGET_EXCEEDED
        )
        assert classify_api_error(RuntimeError("boom")) is APIErrorType.UNKNOWN

    def test_error_type_of_known_errors(self) -> None:
        assert error_type_of(AuthError("no token")) is APIErrorType.AUTH_FAILED
        assert error_type_of(ResponseShapeError("not a list")) is (
            APIErrorType.INVALID_RESPONSE
        )
        assert error_type_of(ValueError("bad")) is APIErrorType.UNKNOWN
