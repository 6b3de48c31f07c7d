"""Core relay and stream-processing modules."""

from throughline.core.degradation import DegradationStrategy, DowngradeToBuffered
from throughline.core.events import Accumulator, EventStreamDecoder, parse_event, text_from_line
from throughline.core.extract import (
    find_first_array,
    parse_json_text,
    parse_search_results,
    strip_code_fences,
)
from throughline.core.upstream import UpstreamClient, UpstreamStream, create_upstream

__all__ = [
    "DegradationStrategy",
    "DowngradeToBuffered",
    "Accumulator",
    "EventStreamDecoder",
    "parse_event",
    "text_from_line",
    "find_first_array",
    "parse_json_text",
    "parse_search_results",
    "strip_code_fences",
    "UpstreamClient",
    "UpstreamStream",
    "create_upstream",
]
