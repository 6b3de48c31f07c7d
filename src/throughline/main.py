"""Main FastAPI application entry point."""

import time
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse

from throughline import __version__
from throughline.config import Settings, get_settings
from throughline.core.upstream import UpstreamClient, create_upstream
from throughline.exceptions import ConfigurationError, UpstreamError
from throughline.metrics import MetricsExporter
from throughline.models import ChatRequest
from throughline.utils import configure_logging, get_logger

logger = get_logger(__name__)

RELAY_PATHS = ("/ai", "/.netlify/functions/ai")
RELAY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


def error_response(status_code: int, message: str) -> JSONResponse:
    """Build the relay's JSON error body."""
    return JSONResponse(status_code=status_code, content={"error": {"message": message}})


async def relay(request: Request) -> Response:
    """Forward one chat request upstream.

    Buffered requests get the upstream JSON unchanged; streaming requests
    get the upstream byte stream as it arrives. Upstream error statuses
    and bodies are passed through untouched.
    """
    if request.method == "OPTIONS":
        return Response(status_code=status.HTTP_200_OK, headers=CORS_HEADERS)

    if request.method != "POST":
        MetricsExporter.record_request("rejected", status.HTTP_405_METHOD_NOT_ALLOWED)
        return error_response(status.HTTP_405_METHOD_NOT_ALLOWED, "Method not allowed")

    settings: Settings = request.app.state.settings
    upstream: UpstreamClient = request.app.state.upstream

    try:
        upstream.ensure_configured()
    except ConfigurationError as e:
        logger.error("relay.not_configured")
        MetricsExporter.record_request("rejected", status.HTTP_500_INTERNAL_SERVER_ERROR)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))

    mode = "buffered"
    try:
        body = await request.json()
        chat_request = ChatRequest.model_validate(body)
        mode = "stream" if chat_request.streaming else "buffered"
        payload = chat_request.to_upstream_payload(
            settings.default_model, settings.default_max_tokens
        )

        logger.info(
            "relay.request",
            model=payload["model"],
            messages=len(payload["messages"]),
            stream=chat_request.streaming,
            tools="tools" in payload,
        )

        started = time.perf_counter()
        if chat_request.streaming:
            upstream_stream = await upstream.open_stream(payload)
            MetricsExporter.observe_upstream(mode, time.perf_counter() - started)
            MetricsExporter.record_request(mode, status.HTTP_200_OK)
            return StreamingResponse(
                upstream_stream.aiter_bytes(),
                status_code=status.HTTP_200_OK,
                media_type="text/event-stream",
                headers=STREAM_HEADERS,
            )

        response = await upstream.forward(payload)
        MetricsExporter.observe_upstream(mode, time.perf_counter() - started)
        # Fail on a non-JSON body, but emit the original bytes
        response.json()
        MetricsExporter.record_request(mode, status.HTTP_200_OK)
        return Response(
            content=response.content,
            status_code=status.HTTP_200_OK,
            media_type="application/json",
        )

    except UpstreamError as e:
        logger.warning("relay.upstream_error", status=e.status_code, mode=mode)
        MetricsExporter.record_request(mode, e.status_code)
        return Response(
            content=e.body,
            status_code=e.status_code,
            media_type="application/json",
        )
    except Exception as e:
        logger.error("relay.failed", error=str(e), error_type=type(e).__name__, mode=mode)
        MetricsExporter.record_request(mode, status.HTTP_500_INTERNAL_SERVER_ERROR)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, f"Function error: {e}"
        )


def create_app(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the relay application.

    Args:
        settings: Application settings, defaults to environment settings
        transport: Optional httpx transport for the upstream client

    Returns:
        Configured application
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        configure_logging(settings.log_level)
        logger.info(
            "startup",
            version=__version__,
            host=settings.host,
            port=settings.port,
            upstream=settings.anthropic_base_url,
            configured=settings.api_key_configured,
        )
        yield
        logger.info("shutdown")

    app = FastAPI(
        title="Throughline Relay",
        description="Credential-holding relay for the upstream messages API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.upstream = create_upstream(settings, transport)

    for path in RELAY_PATHS:
        app.add_api_route(path, relay, methods=RELAY_METHODS, response_model=None)

    @app.get("/health")
    async def health_check(request: Request) -> dict[str, str | bool]:
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": __version__,
            "configured": request.app.state.upstream.configured,
        }

    @app.get("/ready")
    async def readiness_check() -> dict[str, str]:
        """Readiness check endpoint."""
        return {"status": "ready"}

    @app.get("/metrics")
    async def metrics() -> PlainTextResponse:
        """Prometheus metrics endpoint."""
        content_type, metrics_body = MetricsExporter.get_prometheus_format()
        return PlainTextResponse(
            content=metrics_body.decode("utf-8"),
            media_type=content_type,
        )

    return app


app = create_app()


def main():
    """CLI entry point."""
    import uvicorn
    settings = get_settings()

    uvicorn.run(
        "throughline.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    main()
