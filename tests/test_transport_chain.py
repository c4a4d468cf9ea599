"""
Tests for the transport middleware layers and their composition.
"""

import ssl

import httpx
import pytest

from powerbi_provider.auth.exceptions import NoTokenProvidedError
from powerbi_provider.auth.providers import DirectTokenProvider
from powerbi_provider.transport.bearer import BearerTokenTransport
from powerbi_provider.transport.chain import (
    build_transport,
    compose,
    create_ssl_context,
    default_layers,
)
from powerbi_provider.transport.enhanced_retry import EnhancedRetryTransport, RetryConfig
from powerbi_provider.transport.errors import ErrorOnUnsuccessfulTransport
from powerbi_provider.transport.retry import (
    RetryIntermittentErrorTransport,
    RetryTooManyRequestsTransport,
)
from powerbi_provider.utils.exceptions import HTTPUnsuccessfulError

URL = "https://api.powerbi.test/v1.0/myorg/groups"


class RecordingTransport(httpx.MockTransport):
    """MockTransport that answers with scripted statuses and keeps the requests."""

    def __init__(self, *responses: httpx.Response):
        self.requests = []
        self._responses = list(responses)
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if len(self._responses) > 1:
            return self._responses.pop(0)
        return self._responses[0]


class TagTransport(httpx.AsyncBaseTransport):
    """Appends its name to a header, to observe layer order."""

    def __init__(self, inner, name):
        self._inner = inner
        self.name = name

    async def handle_async_request(self, request):
        existing = request.headers.get("X-Layers")
        request.headers["X-Layers"] = f"{existing},{self.name}" if existing else self.name
        return await self._inner.handle_async_request(request)


async def send(transport, method="GET", **kwargs) -> httpx.Response:
    async with httpx.AsyncClient(transport=transport) as client:
        return await client.request(method, URL, **kwargs)


class TestCompose:

    @pytest.mark.asyncio
    async def test_layers_listed_outermost_first(self):
        base = RecordingTransport(httpx.Response(200))
        transport = compose(base, [
            lambda inner: TagTransport(inner, "outer"),
            lambda inner: TagTransport(inner, "middle"),
            lambda inner: TagTransport(inner, "inner"),
        ])

        await send(transport)

        assert base.requests[0].headers["X-Layers"] == "outer,middle,inner"

    def test_no_layers_returns_base(self):
        base = RecordingTransport(httpx.Response(200))

        assert compose(base, []) is base

    def test_default_order(self, test_config, token_provider):
        transport = compose(
            RecordingTransport(httpx.Response(200)),
            default_layers(token_provider, test_config, RetryConfig()),
        )

        chain = []
        while hasattr(transport, "_transport"):
            chain.append(type(transport))
            transport = transport._transport

        assert chain == [
            RetryTooManyRequestsTransport,
            RetryIntermittentErrorTransport,
            ErrorOnUnsuccessfulTransport,
            EnhancedRetryTransport,
            BearerTokenTransport,
        ]

    def test_enhanced_retry_is_optional(self, test_config, token_provider):
        layers = default_layers(token_provider, test_config)

        assert len(layers) == 4


class TestBearerTokenTransport:

    @pytest.mark.asyncio
    async def test_sets_authorization_header(self, token_provider):
        base = RecordingTransport(httpx.Response(200))

        await send(BearerTokenTransport(base, token_provider))

        assert base.requests[0].headers["Authorization"] == "Bearer token-1"

    @pytest.mark.asyncio
    async def test_token_error_aborts_request(self):
        base = RecordingTransport(httpx.Response(200))

        with pytest.raises(NoTokenProvidedError):
            await send(BearerTokenTransport(base, DirectTokenProvider("")))

        assert base.requests == []


class TestErrorOnUnsuccessfulTransport:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [200, 201, 202, 204])
    async def test_passes_success(self, status):
        response = await send(ErrorOnUnsuccessfulTransport(RecordingTransport(httpx.Response(status))))

        assert response.status_code == status

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [301, 400, 404, 429, 500])
    async def test_raises_for_unsuccessful(self, status):
        base = RecordingTransport(httpx.Response(status, text='{"error":{"code":"X"}}', headers={"Retry-After": "3"}))

        with pytest.raises(HTTPUnsuccessfulError) as exc_info:
            await send(ErrorOnUnsuccessfulTransport(base))

        error = exc_info.value
        assert error.status_code == status
        assert error.body == '{"error":{"code":"X"}}'
        assert error.response.headers["Retry-After"] == "3"
        assert str(error) == f'status code {status}: {{"error":{{"code":"X"}}}}'


class TestRetryTooManyRequests:

    @pytest.mark.asyncio
    async def test_waits_retry_after(self, recording_sleep):
        base = RecordingTransport(
            httpx.Response(429, headers={"Retry-After": "4"}),
            httpx.Response(200),
        )
        transport = RetryTooManyRequestsTransport(
            ErrorOnUnsuccessfulTransport(base), max_retries=3, sleep=recording_sleep
        )

        response = await send(transport)

        assert response.status_code == 200
        assert recording_sleep.delays == [4.0]

    @pytest.mark.asyncio
    async def test_default_delay_without_header(self, recording_sleep):
        base = RecordingTransport(httpx.Response(429), httpx.Response(200))
        transport = RetryTooManyRequestsTransport(
            ErrorOnUnsuccessfulTransport(base), default_delay=5.0, sleep=recording_sleep
        )

        await send(transport)

        assert recording_sleep.delays == [5.0]

    @pytest.mark.asyncio
    async def test_reraises_after_max_retries(self, recording_sleep):
        base = RecordingTransport(httpx.Response(429))
        transport = RetryTooManyRequestsTransport(
            ErrorOnUnsuccessfulTransport(base), max_retries=2, sleep=recording_sleep
        )

        with pytest.raises(HTTPUnsuccessfulError) as exc_info:
            await send(transport)

        assert exc_info.value.status_code == 429
        assert len(base.requests) == 3

    @pytest.mark.asyncio
    async def test_ignores_other_errors(self, recording_sleep):
        base = RecordingTransport(httpx.Response(503))
        transport = RetryTooManyRequestsTransport(ErrorOnUnsuccessfulTransport(base), sleep=recording_sleep)

        with pytest.raises(HTTPUnsuccessfulError):
            await send(transport)

        assert len(base.requests) == 1


class TestRetryIntermittentErrors:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 500, 502, 503])
    async def test_retries_with_backoff(self, recording_sleep, status):
        base = RecordingTransport(httpx.Response(status))
        transport = RetryIntermittentErrorTransport(
            ErrorOnUnsuccessfulTransport(base), max_retries=3, initial_delay=1.0, sleep=recording_sleep
        )

        with pytest.raises(HTTPUnsuccessfulError) as exc_info:
            await send(transport)

        assert exc_info.value.status_code == status
        assert len(base.requests) == 4
        assert recording_sleep.delays == [1.0, 2.0, 4.0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403, 404, 409, 429])
    async def test_does_not_retry_other_errors(self, recording_sleep, status):
        base = RecordingTransport(httpx.Response(status))
        transport = RetryIntermittentErrorTransport(ErrorOnUnsuccessfulTransport(base), sleep=recording_sleep)

        with pytest.raises(HTTPUnsuccessfulError):
            await send(transport)

        assert len(base.requests) == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_resends_body(self, recording_sleep):
        base = RecordingTransport(httpx.Response(500), httpx.Response(200))
        transport = RetryIntermittentErrorTransport(ErrorOnUnsuccessfulTransport(base), sleep=recording_sleep)

        await send(transport, "POST", content=b'{"name": "dashboard"}')

        assert [r.content for r in base.requests] == [b'{"name": "dashboard"}'] * 2


class TestBuildTransport:

    @pytest.mark.asyncio
    async def test_full_chain_success(self, test_config, token_provider, recording_sleep):
        base = RecordingTransport(httpx.Response(200, json={"value": []}))
        transport = build_transport(token_provider, test_config, base=base, sleep=recording_sleep)

        response = await send(transport)

        assert response.json() == {"value": []}
        assert base.requests[0].headers["Authorization"] == "Bearer token-1"

    @pytest.mark.asyncio
    async def test_legacy_layers_retry_through_classifier(self, test_config, token_provider, recording_sleep):
        base = RecordingTransport(
            httpx.Response(429, headers={"Retry-After": "1"}),
            httpx.Response(500),
            httpx.Response(200),
        )
        transport = build_transport(token_provider, test_config, base=base, sleep=recording_sleep)

        response = await send(transport)

        assert response.status_code == 200
        assert len(base.requests) == 3
        # each attempt asks for a token
        assert [r.headers["Authorization"] for r in base.requests] == [
            "Bearer token-1", "Bearer token-2", "Bearer token-3",
        ]

    @pytest.mark.asyncio
    async def test_enhanced_retry_fetches_token_per_attempt(self, test_config, token_provider, recording_sleep):
        base = RecordingTransport(httpx.Response(503), httpx.Response(503), httpx.Response(200))
        transport = build_transport(
            token_provider,
            test_config,
            RetryConfig(jitter_factor=0),
            base=base,
            sleep=recording_sleep,
        )

        response = await send(transport)

        assert response.status_code == 200
        assert token_provider.calls == 3
        assert recording_sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_token_errors_are_not_retried(self, test_config, recording_sleep):
        base = RecordingTransport(httpx.Response(200))
        transport = build_transport(
            DirectTokenProvider(""), test_config, RetryConfig(), base=base, sleep=recording_sleep
        )

        with pytest.raises(NoTokenProvidedError):
            await send(transport)

        assert base.requests == []
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_connection_errors_propagate(self, test_config, token_provider, recording_sleep):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        transport = build_transport(
            token_provider, test_config, base=httpx.MockTransport(handler), sleep=recording_sleep
        )

        with pytest.raises(httpx.ConnectError):
            await send(transport)

        assert recording_sleep.delays == []


def test_ssl_context_requires_tls12():
    context = create_ssl_context()

    assert context.minimum_version >= ssl.TLSVersion.TLSv1_2
    assert context.verify_mode == ssl.CERT_REQUIRED
