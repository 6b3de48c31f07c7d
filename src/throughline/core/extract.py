"""Helpers that turn model text into JSON results."""

import json
import re
from typing import Any

from throughline.exceptions import MalformedResultError

_FENCE_JSON = re.compile(r"```json\s*")
_FENCE = re.compile(r"```\s*")


def strip_code_fences(text: str) -> str:
    """Remove markdown code-fence markers and surrounding whitespace."""
    return _FENCE.sub("", _FENCE_JSON.sub("", text)).strip()


_DECODER = json.JSONDecoder()


def _loads(text: str) -> Any:
    try:
        return json.loads(text)
    except (ValueError, RecursionError) as e:
        raise MalformedResultError(str(e) or type(e).__name__) from e


def find_first_array(text: str) -> str | None:
    """Return the first ``[...]`` substring that is a complete JSON array.

    Each opening bracket is tried in turn and the decoder matches it to
    its closing bracket, so bracketed prose such as ``[as requested]``
    before the real array is skipped. Returns None when no candidate
    decodes, or when nesting is too deep to decode at all.
    """
    start = text.find("[")
    while start != -1:
        try:
            _, end = _DECODER.raw_decode(text, start)
        except ValueError:
            start = text.find("[", start + 1)
            continue
        except RecursionError:
            return None
        return text[start:end]
    return None


def parse_json_text(text: str) -> Any:
    """Parse fenced model output as JSON.

    Raises:
        MalformedResultError: Text is not valid JSON
    """
    return _loads(strip_code_fences(text))


def parse_search_results(text: str) -> Any:
    """Parse the first JSON array in search output.

    Commentary before or after the array is ignored. Without an array
    the whole cleaned text is parsed instead.

    Raises:
        MalformedResultError: Nothing parseable was found
    """
    cleaned = strip_code_fences(text)
    candidate = find_first_array(cleaned)
    return _loads(candidate if candidate is not None else cleaned)
