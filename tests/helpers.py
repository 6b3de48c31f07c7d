"""Shared test helpers."""

import json
from typing import Callable

import httpx

from throughline.config import Settings

API_KEY = "sk-test-secret"


def make_settings(**overrides) -> Settings:
    """Settings isolated from the environment and any .env file.

    Every field the tests depend on is passed explicitly, since init
    values take precedence over environment variables.
    """
    values = {
        "anthropic_api_key": API_KEY,
        "anthropic_base_url": "https://api.anthropic.com",
        "anthropic_version": "2023-06-01",
        "default_model": "claude-sonnet-4-20250514",
        "default_max_tokens": 1024,
        "request_timeout": None,
        "relay_url": "http://localhost:8080/ai",
        "store_path": "./.throughline/state.json",
        "log_level": "debug",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def sse(*events: dict | str) -> bytes:
    """Encode events as ``data:`` lines."""
    lines = []
    for event in events:
        payload = event if isinstance(event, str) else json.dumps(event)
        lines.append(f"data: {payload}\n\n")
    return "".join(lines).encode("utf-8")


def text_delta(text: str) -> dict:
    return {
        "type": "content_block_delta",
        "index": 0,
        "delta": {"type": "text_delta", "text": text},
    }


class RecordingUpstream:
    """Mock server that records requests and answers with a handler."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    @property
    def last_payload(self) -> dict:
        return json.loads(self.requests[-1].content)
