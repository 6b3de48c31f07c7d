"""Utility functions package."""

from throughline.utils.logger import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
