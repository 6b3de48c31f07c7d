"""Tests for the upstream client."""

import httpx
import pytest

from throughline.core.upstream import create_upstream
from throughline.exceptions import ConfigurationError, TransportError, UpstreamError
from tests.helpers import make_settings, sse, text_delta


def streaming_upstream(*chunks: bytes):
    def handler(request: httpx.Request) -> httpx.Response:
        async def body():
            for chunk in chunks:
                yield chunk
        return httpx.Response(200, content=body())
    return create_upstream(make_settings(), httpx.MockTransport(handler))


class TestUpstreamStream:
    """Lifecycle of an open upstream stream."""

    async def test_closed_after_full_read(self) -> None:
        upstream = streaming_upstream(sse(text_delta("a")), sse(text_delta("b")))
        stream = await upstream.open_stream({"messages": [], "stream": True})

        received = [chunk async for chunk in stream.aiter_bytes()]

        assert b"".join(received) == sse(text_delta("a")) + sse(text_delta("b"))
        assert stream.response.is_closed
        assert stream.client.is_closed

    async def test_closed_when_consumer_stops_early(self) -> None:
        upstream = streaming_upstream(sse(text_delta("a")), sse(text_delta("b")))
        stream = await upstream.open_stream({"messages": [], "stream": True})

        chunks = stream.aiter_bytes()
        first = await chunks.__anext__()
        await chunks.aclose()

        assert first == sse(text_delta("a"))
        assert stream.response.is_closed
        assert stream.client.is_closed


class TestUpstreamErrors:
    """Errors raised before any body is relayed."""

    async def test_missing_key(self) -> None:
        upstream = create_upstream(make_settings(anthropic_api_key=None))

        with pytest.raises(ConfigurationError):
            await upstream.forward({"messages": []})

    async def test_error_status_keeps_body(self) -> None:
        upstream = create_upstream(
            make_settings(),
            httpx.MockTransport(lambda request: httpx.Response(429, content=b'{"error": "slow down"}')),
        )

        with pytest.raises(UpstreamError) as exc_info:
            await upstream.open_stream({"messages": [], "stream": True})

        assert exc_info.value.status_code == 429
        assert exc_info.value.body == b'{"error": "slow down"}'

    async def test_network_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused")

        upstream = create_upstream(make_settings(), httpx.MockTransport(handler))

        with pytest.raises(TransportError, match="refused"):
            await upstream.forward({"messages": []})
