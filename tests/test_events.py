"""Tests for the event-stream decoder."""

import json

import pytest

from throughline.core.events import Accumulator, EventStreamDecoder, parse_event, text_from_line
from throughline.exceptions import MalformedEventError
from tests.helpers import sse, text_delta


def decode_all(chunks: list[bytes]) -> list[str]:
    decoder = EventStreamDecoder()
    deltas = []
    for chunk in chunks:
        deltas.extend(decoder.feed(chunk))
    return deltas


class TestTextFromLine:
    """Line classification."""

    def test_text_delta(self) -> None:
        assert text_from_line("data: " + json.dumps(text_delta("hi"))) == "hi"

    @pytest.mark.parametrize(
        "line",
        [
            "event: content_block_delta",
            "",
            ": keepalive",
            "data:" + json.dumps(text_delta("no space")),
            "data: [DONE]",
            "data: {broken",
            'data: {"type": "ping"}',
            'data: {"type": "content_block_start", "index": 0}',
            'data: {"type": "content_block_delta", "delta": {"type": "input_json_delta", "partial_json": "{"}}',
            "data: 42",
        ],
    )
    def test_ignored_lines(self, line: str) -> None:
        assert text_from_line(line) is None

    def test_trailing_carriage_return(self) -> None:
        assert text_from_line("data: " + json.dumps(text_delta("a")) + "\r") == "a"

    def test_parse_event_raises_on_bad_json(self) -> None:
        with pytest.raises(MalformedEventError):
            parse_event("{nope")


class TestEventStreamDecoder:
    """Chunked decoding."""

    def test_well_formed_stream(self) -> None:
        body = sse(
            {"type": "message_start", "message": {"id": "msg_1"}},
            {"type": "content_block_start", "index": 0},
            text_delta("Hel"),
            {"type": "ping"},
            text_delta("lo"),
            text_delta(" there"),
            {"type": "content_block_stop", "index": 0},
            {"type": "message_stop"},
        )

        assert decode_all([body]) == ["Hel", "lo", " there"]

    def test_event_split_across_reads(self) -> None:
        line = ("data: " + json.dumps(text_delta("split")) + "\n").encode()
        decoder = EventStreamDecoder()

        assert decoder.feed(line[:9]) == []
        assert decoder.pending == line[:9].decode()
        assert decoder.feed(line[9:]) == ["split"]
        assert decoder.pending == ""

    def test_every_split_point(self) -> None:
        body = sse(text_delta("ab"), text_delta("cd"))

        for i in range(1, len(body)):
            assert decode_all([body[:i], body[i:]]) == ["ab", "cd"]

    def test_multibyte_character_split(self) -> None:
        line = ("data: " + json.dumps(text_delta("héllo ✓"), ensure_ascii=False) + "\n").encode()
        index = line.index("✓".encode()) + 1

        assert decode_all([line[:index], line[index:]]) == ["héllo ✓"]

    def test_malformed_line_does_not_stop_stream(self) -> None:
        body = sse(text_delta("a"), "{oops", text_delta("b"))

        assert decode_all([body]) == ["a", "b"]

    def test_done_sentinel_does_not_terminate(self) -> None:
        body = sse(text_delta("a"), "[DONE]", text_delta("b"))

        assert decode_all([body]) == ["a", "b"]

    def test_unterminated_fragment_never_parsed(self) -> None:
        decoder = EventStreamDecoder()
        line = "data: " + json.dumps(text_delta("tail"))

        assert decoder.feed(line.encode()) == []
        assert decoder.pending == line


class TestAccumulator:
    """Append-only accumulation."""

    def test_append_returns_full_text(self) -> None:
        accumulator = Accumulator()

        assert accumulator.append("a") == "a"
        assert accumulator.append("bc") == "abc"
        assert accumulator.value == "abc"
        assert accumulator.count == 2

    def test_starts_empty(self) -> None:
        accumulator = Accumulator()

        assert accumulator.value == ""
        assert accumulator.count == 0
