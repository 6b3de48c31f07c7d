"""Error taxonomy shared by the relay and the client."""


class ThroughlineError(Exception):
    """Base class for relay and client errors."""


class ConfigurationError(ThroughlineError):
    """Required server configuration is missing."""


class UpstreamError(ThroughlineError):
    """Upstream API answered with a non-success status.

    The raw body is kept so the relay can pass it through unchanged.
    """

    def __init__(self, status_code: int, body: bytes) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Upstream returned {status_code}")


class TransportError(ThroughlineError):
    """The network call could not be completed."""


class MalformedEventError(ThroughlineError):
    """A single event-stream line is not a valid event."""


class MalformedResultError(ThroughlineError):
    """Model output expected to be JSON could not be parsed."""
