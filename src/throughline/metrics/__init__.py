"""Prometheus metrics exposition."""

from prometheus_client import Counter, Histogram, Info, generate_latest, CONTENT_TYPE_LATEST

from throughline import __version__

# Application info
APP_INFO = Info("throughline", "Application information")
APP_INFO.info({"version": __version__})

RELAY_REQUESTS_TOTAL = Counter(
    "throughline_relay_requests_total",
    "Relay requests by mode and response status",
    ["mode", "status"],
)

UPSTREAM_LATENCY = Histogram(
    "throughline_upstream_latency_seconds",
    "Time until upstream response headers arrive",
    ["mode"],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0],
)


class MetricsExporter:
    """Exports metrics in Prometheus format."""

    @staticmethod
    def get_prometheus_format() -> tuple[str, bytes]:
        """Get metrics in Prometheus exposition format.

        Returns:
            Tuple of (content_type, metrics_body)
        """
        return CONTENT_TYPE_LATEST, generate_latest()

    @staticmethod
    def record_request(mode: str, status: int) -> None:
        """Record one relay response.

        Args:
            mode: "stream", "buffered" or "rejected"
            status: HTTP status returned to the caller
        """
        RELAY_REQUESTS_TOTAL.labels(mode=mode, status=str(status)).inc()

    @staticmethod
    def observe_upstream(mode: str, seconds: float) -> None:
        """Record upstream latency up to response headers."""
        UPSTREAM_LATENCY.labels(mode=mode).observe(seconds)
