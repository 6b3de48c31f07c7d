"""Test configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient

from throughline.config import Settings
from throughline.main import create_app
from tests.helpers import RecordingUpstream, make_settings


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def message_response() -> dict:
    return {
        "id": "msg_01",
        "type": "message",
        "role": "assistant",
        "content": [{"type": "text", "text": "Hello"}, {"type": "text", "text": " world"}],
        "stop_reason": "end_turn",
    }


@pytest.fixture
def relay_factory(settings: Settings):
    """Build a TestClient whose upstream is the given handler."""

    def build(handler, app_settings: Settings | None = None) -> tuple[TestClient, RecordingUpstream]:
        upstream = RecordingUpstream(handler)
        app = create_app(app_settings or settings, transport=upstream.transport)
        return TestClient(app), upstream

    return build
