"""Fallback strategies for service degradation."""

from typing import Awaitable, Callable, TypeVar

from throughline.utils import get_logger

logger = get_logger(__name__)
T = TypeVar("T")


class DegradationStrategy:
    """Base class for degradation strategies."""

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        fallback: Callable[[], Awaitable[T]] | None = None,
        operation_name: str = "operation",
    ) -> T | None:
        """Execute operation with degradation handling.

        Args:
            operation: Primary operation to execute
            fallback: Fallback operation if primary fails
            operation_name: Name for logging

        Returns:
            Operation result or fallback result
        """
        raise NotImplementedError


class DowngradeToBuffered(DegradationStrategy):
    """Retry a failed streaming operation through its buffered variant.

    Any exception from the primary operation triggers the fallback. A
    failing fallback resolves to None, so callers never see an error.
    """

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        fallback: Callable[[], Awaitable[T]] | None = None,
        operation_name: str = "operation",
    ) -> T | None:
        """Execute, downgrading on failure."""
        try:
            return await operation()
        except Exception as e:
            logger.warning(
                "degradation.downgrade",
                operation=operation_name,
                error=str(e) or type(e).__name__,
            )

        if fallback is None:
            return None
        try:
            return await fallback()
        except Exception as e:
            logger.error(
                "degradation.fallback_failed",
                operation=operation_name,
                error=str(e) or type(e).__name__,
            )
            return None
