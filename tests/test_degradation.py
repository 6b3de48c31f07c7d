"""Tests for degradation strategies."""

from throughline.core.degradation import DowngradeToBuffered


async def test_primary_result_returned() -> None:
    calls = []

    async def primary() -> str:
        return "streamed"

    async def fallback() -> str:
        calls.append("fallback")
        return "buffered"

    assert await DowngradeToBuffered().execute(primary, fallback, "stream") == "streamed"
    assert calls == []


async def test_failure_uses_fallback() -> None:
    async def primary() -> str:
        raise ConnectionError("lost")

    async def fallback() -> str:
        return "buffered"

    assert await DowngradeToBuffered().execute(primary, fallback, "stream") == "buffered"


async def test_failing_fallback_is_none() -> None:
    async def primary() -> str:
        raise ConnectionError("lost")

    async def fallback() -> str:
        raise RuntimeError("also lost")

    assert await DowngradeToBuffered().execute(primary, fallback, "stream") is None


async def test_no_fallback_is_none() -> None:
    async def primary() -> str:
        raise ConnectionError("lost")

    assert await DowngradeToBuffered().execute(primary) is None
