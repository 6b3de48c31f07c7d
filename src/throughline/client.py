"""Async client for the relay.

Every operation resolves to a value or None; transport failures, error
statuses and unparseable output are logged and reported as None so that
callers can render an empty state instead of handling exceptions.
"""

from typing import Any, Callable

import httpx
from pydantic import ValidationError

from throughline.config import Settings
from throughline.core.degradation import DegradationStrategy, DowngradeToBuffered
from throughline.core.events import Accumulator, EventStreamDecoder
from throughline.core.extract import parse_json_text, parse_search_results
from throughline.exceptions import MalformedResultError, TransportError, UpstreamError
from throughline.models import ChatResponse
from throughline.utils import get_logger

logger = get_logger(__name__)

WEB_SEARCH_TOOL = {"type": "web_search_20250305", "name": "web_search"}

IncrementHandler = Callable[[str], Any]


class AIClient:
    """Client for the relay's chat endpoint."""

    def __init__(
        self,
        relay_url: str,
        model: str = "claude-sonnet-4-20250514",
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = None,
        degradation: DegradationStrategy | None = None,
    ) -> None:
        """Initialize client.

        Args:
            relay_url: Relay endpoint URL
            model: Model requested on every call
            transport: Optional httpx transport, used by tests
            timeout: Seconds before giving up, None waits indefinitely
            degradation: Strategy applied when streaming fails
        """
        self.relay_url = relay_url
        self.model = model
        self.transport = transport
        self.timeout = timeout
        self.degradation = degradation or DowngradeToBuffered()

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport, timeout=self.timeout)

    def _payload(self, prompt: str, max_tokens: int, **extra: Any) -> dict[str, Any]:
        return {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
            **extra,
        }

    async def _post(self, payload: dict[str, Any], check_status: bool = True) -> ChatResponse:
        """Send a buffered request and decode the response body.

        Raises:
            TransportError: Request failed or body is not a response object
            UpstreamError: Non-success status when ``check_status`` is set
        """
        async with self._http() as http:
            try:
                response = await http.post(self.relay_url, json=payload)
            except httpx.HTTPError as e:
                raise TransportError(str(e) or type(e).__name__) from e

        if check_status and not response.is_success:
            raise UpstreamError(response.status_code, response.content)
        try:
            return ChatResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise TransportError(f"Undecodable response body: {e}") from e

    async def call(self, prompt: str, max_tokens: int = 1000) -> str | None:
        """Request a buffered completion.

        Args:
            prompt: User prompt
            max_tokens: Upstream token limit

        Returns:
            Concatenated reply text, or None when there is no usable answer
        """
        try:
            data = await self._post(self._payload(prompt, max_tokens))
        except UpstreamError as e:
            logger.error("client.call_status", status=e.status_code)
            return None
        except TransportError as e:
            logger.error("client.call_failed", error=str(e))
            return None

        if data.error:
            logger.error("client.call_error", error=data.error)
            return None
        return data.joined_text() or None

    async def stream(
        self,
        prompt: str,
        on_increment: IncrementHandler,
        max_tokens: int = 1000,
    ) -> str | None:
        """Request a streamed completion.

        ``on_increment`` receives the full accumulated text after every
        delta. If the stream cannot be opened or read, the prompt is
        retried in buffered mode and the whole reply is delivered as one
        increment.

        Args:
            prompt: User prompt
            on_increment: Sink called with the text accumulated so far
            max_tokens: Upstream token limit

        Returns:
            Final accumulated text, or None when nothing was produced
        """

        async def buffered_retry() -> str | None:
            result = await self.call(prompt, max_tokens)
            if result:
                on_increment(result)
            return result

        return await self.degradation.execute(
            lambda: self._stream(prompt, on_increment, max_tokens),
            buffered_retry,
            "stream",
        )

    async def _stream(
        self,
        prompt: str,
        on_increment: IncrementHandler,
        max_tokens: int,
    ) -> str | None:
        payload = self._payload(prompt, max_tokens, stream=True)
        decoder = EventStreamDecoder()
        accumulator = Accumulator()

        async with self._http() as http:
            async with http.stream("POST", self.relay_url, json=payload) as response:
                if not response.is_success:
                    logger.error("client.stream_status", status=response.status_code)
                    return None

                async for chunk in response.aiter_bytes():
                    for text in decoder.feed(chunk):
                        on_increment(accumulator.append(text))

        logger.debug("client.stream_complete", deltas=accumulator.count)
        return accumulator.value or None

    async def call_json(self, prompt: str, max_tokens: int = 1000) -> Any | None:
        """Request a buffered completion and parse it as JSON.

        Returns:
            Parsed value, or None when the call or the parse fails
        """
        raw = await self.call(prompt, max_tokens)
        if not raw:
            return None
        try:
            return parse_json_text(raw)
        except MalformedResultError as e:
            logger.warning("client.json_malformed", error=str(e))
            return None

    async def search_json(self, prompt: str, max_tokens: int = 1500) -> Any | None:
        """Run a web-search-enabled request and parse its JSON array.

        Returns:
            Parsed value, or None when the request or the parse fails
        """
        payload = self._payload(prompt, max_tokens, tools=[WEB_SEARCH_TOOL])
        try:
            data = await self._post(payload, check_status=False)
            return parse_search_results(data.joined_text("\n"))
        except (TransportError, MalformedResultError) as e:
            logger.warning("client.search_failed", error=str(e))
            return None


def create_client(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AIClient:
    """Factory for the relay client.

    Args:
        settings: Application settings
        transport: Optional httpx transport

    Returns:
        Configured client
    """
    return AIClient(
        relay_url=settings.relay_url,
        model=settings.default_model,
        transport=transport,
        timeout=settings.request_timeout,
    )
