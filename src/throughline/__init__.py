"""Throughline: AI relay and streaming client."""

__version__ = "0.1.0"
