"""Incremental decoder for the upstream event-stream line protocol."""

import codecs

from pydantic import ValidationError

from throughline.exceptions import MalformedEventError
from throughline.models import StreamEvent
from throughline.utils import get_logger

logger = get_logger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


def parse_event(payload: str) -> StreamEvent:
    """Parse the JSON payload of a ``data:`` line.

    Args:
        payload: Text after the ``data: `` prefix, trimmed

    Returns:
        Decoded event

    Raises:
        MalformedEventError: Payload is not a valid event
    """
    try:
        return StreamEvent.model_validate_json(payload)
    except ValidationError as e:
        raise MalformedEventError(str(e)) from e


def text_from_line(line: str) -> str | None:
    """Extract delta text from one complete line.

    Lines without the data prefix, the ``[DONE]`` sentinel, malformed
    payloads and non-text events all yield None.
    """
    if not line.startswith(DATA_PREFIX):
        return None
    payload = line[len(DATA_PREFIX):].strip()
    # [DONE] does not end decoding; only stream closure does
    if payload == DONE_SENTINEL:
        return None
    try:
        event = parse_event(payload)
    except MalformedEventError as e:
        logger.debug("events.malformed", error=str(e))
        return None
    return event.text_delta


class EventStreamDecoder:
    """Turns arbitrarily split byte chunks into text deltas.

    Bytes are decoded incrementally, so multi-byte characters split
    across reads survive. Only newline-terminated lines are parsed; the
    trailing fragment waits in the buffer for the next chunk.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    @property
    def pending(self) -> str:
        """Unterminated text held back from parsing."""
        return self._buffer

    def feed(self, chunk: bytes) -> list[str]:
        """Consume one read and return the deltas it completes, in order."""
        self._buffer += self._decoder.decode(chunk)
        *lines, self._buffer = self._buffer.split("\n")

        deltas = []
        for line in lines:
            text = text_from_line(line)
            if text is not None:
                deltas.append(text)
        return deltas


class Accumulator:
    """Append-only text owned by a single streaming call."""

    def __init__(self) -> None:
        self._value = ""
        self._count = 0

    @property
    def value(self) -> str:
        """Text accumulated so far."""
        return self._value

    def append(self, text: str) -> str:
        """Append a delta and return the full text so far."""
        self._value += text
        self._count += 1
        return self._value

    @property
    def count(self) -> int:
        """Number of deltas appended."""
        return self._count
