"""Upstream API client used by the relay."""

from dataclasses import dataclass
from typing import AsyncIterator

import httpx

from throughline.config import Settings
from throughline.exceptions import ConfigurationError, TransportError, UpstreamError
from throughline.utils import get_logger

logger = get_logger(__name__)


@dataclass
class UpstreamStream:
    """An open upstream event stream.

    The body has not been read yet. Iterating ``aiter_bytes`` closes the
    stream when iteration ends for any reason, including a downstream
    disconnect.
    """

    response: httpx.Response
    client: httpx.AsyncClient

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        """Yield upstream bytes as they arrive, then close the stream."""
        try:
            async for chunk in self.response.aiter_bytes():
                yield chunk
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        """Close the upstream response and its client."""
        await self.response.aclose()
        await self.client.aclose()


class UpstreamClient:
    """Client for the upstream messages API."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize client.

        Args:
            settings: Application settings
            transport: Optional httpx transport, used by tests
        """
        self.settings = settings
        self.base_url = settings.anthropic_base_url.rstrip("/")
        self.timeout = settings.request_timeout
        self.transport = transport

    @property
    def configured(self) -> bool:
        """Whether an upstream credential is available."""
        return self.settings.api_key_configured

    def ensure_configured(self) -> None:
        """Raise if no credential is available.

        Raises:
            ConfigurationError: When the API key is missing
        """
        if not self.configured:
            raise ConfigurationError("API key not configured")

    def _build_request(self, payload: dict) -> tuple[str, dict, dict]:
        """Build request parameters.

        Args:
            payload: Normalized upstream payload

        Returns:
            Tuple of (url, headers, body)
        """
        self.ensure_configured()
        url = f"{self.base_url}/v1/messages"
        headers = {
            "Content-Type": "application/json",
            "x-api-key": self.settings.anthropic_api_key.get_secret_value(),
            "anthropic-version": self.settings.anthropic_version,
        }
        return url, headers, payload

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport, timeout=self.timeout)

    async def forward(self, payload: dict) -> httpx.Response:
        """Forward a buffered request upstream.

        Args:
            payload: Normalized upstream payload

        Returns:
            Successful upstream response with its body read

        Raises:
            UpstreamError: Upstream answered with a non-success status
            TransportError: The request could not be completed
        """
        url, headers, body = self._build_request(payload)
        logger.debug("upstream.request", url=url, model=body.get("model"), stream=False)

        async with self._client() as client:
            try:
                response = await client.post(url, headers=headers, json=body)
            except httpx.HTTPError as e:
                raise TransportError(str(e) or type(e).__name__) from e

        if not response.is_success:
            raise UpstreamError(response.status_code, response.content)
        return response

    async def open_stream(self, payload: dict) -> UpstreamStream:
        """Open a streaming request upstream without reading its body.

        Args:
            payload: Normalized upstream payload with ``stream`` set

        Returns:
            The open stream, owned by the caller

        Raises:
            UpstreamError: Upstream answered with a non-success status
            TransportError: The request could not be completed
        """
        url, headers, body = self._build_request(payload)
        logger.debug("upstream.request", url=url, model=body.get("model"), stream=True)

        client = self._client()
        try:
            request = client.build_request("POST", url, headers=headers, json=body)
            response = await client.send(request, stream=True)
        except httpx.HTTPError as e:
            await client.aclose()
            raise TransportError(str(e) or type(e).__name__) from e

        if not response.is_success:
            try:
                error_body = await response.aread()
            finally:
                await response.aclose()
                await client.aclose()
            raise UpstreamError(response.status_code, error_body)

        return UpstreamStream(response=response, client=client)


def create_upstream(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> UpstreamClient:
    """Factory for the upstream client.

    Args:
        settings: Application settings
        transport: Optional httpx transport

    Returns:
        Configured client
    """
    return UpstreamClient(settings, transport)
