"""Gateway exceptions and centralized FastAPI error handlers.

Every failure carries the HTTP status the client should see. The client
body is always the same opaque ``{"error": "internal error"}``; details
only ever reach the logs.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import Response

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"
INTERNAL_ERROR_BODY = b'{"error": "internal error"}'


class GatewayError(Exception):
    """Base exception with HTTP status code."""

    status_code = 500


class UpstreamError(GatewayError):
    """Base for failures talking to the upstream places service."""


class TransportError(UpstreamError):
    """Connection, DNS or timeout failure at the transport layer."""


class UpstreamStatusError(UpstreamError):
    def __init__(self, status: int, reason: str):
        super().__init__(f"upstream returned {status} {reason}".rstrip())
        self.status = status
        self.reason = reason


class DecodeError(UpstreamError):
    """Upstream body is not a JSON array of place objects."""


class EncodeError(GatewayError):
    """Transformed collection could not be serialized."""


class GatewayTimeoutError(GatewayError):
    status_code = 504

    def __init__(self, key: str, timeout: float):
        super().__init__(f"request for {key} exceeded {timeout:.3f}s")
        self.key = key
        self.timeout = timeout


def error_response(status_code: int) -> Response:
    """Build the opaque JSON error response for a status code."""
    return Response(
        content=INTERNAL_ERROR_BODY,
        status_code=status_code,
        media_type=JSON_MEDIA_TYPE,
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register centralized exception handlers on the FastAPI app."""

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        return error_response(500)
