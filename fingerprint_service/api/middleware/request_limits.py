"""
Request Middleware
Body size limit and request logging (client IP from X-Forwarded-For).
"""
import logging
import time
from typing import Callable

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from fingerprint_service.core.exceptions import PayloadTooLargeError

logger = logging.getLogger(__name__)


def extract_client_ip(request: Request) -> str:
    """
    Extract client IP address from request.
    Handles X-Forwarded-For header for load balancer environments.
    """
    # X-Forwarded-For can contain multiple IPs: "client, proxy1, proxy2"
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        client_ip = forwarded_for.split(",")[0].strip()
        if client_ip:
            return client_ip

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host

    return "unknown"


def payload_too_large_response(max_bytes: int) -> JSONResponse:
    error = PayloadTooLargeError(max_bytes)
    return JSONResponse(
        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        content={"detail": error.detail, "code": "REQUEST_TOO_LARGE"},
    )


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests whose declared Content-Length exceeds the limit."""

    def __init__(self, app, max_body_bytes: int):
        super().__init__(app)
        self.max_body_bytes = max_body_bytes

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        content_length = request.headers.get("content-length")
        if (
            content_length
            and content_length.isdigit()
            and int(content_length) > self.max_body_bytes
        ):
            logger.warning(
                f"Rejected {content_length} byte body from "
                f"{extract_client_ip(request)} on {request.url.path}"
            )
            return payload_too_large_response(self.max_body_bytes)

        # Chunked bodies are checked while reading, see read_limited_body
        return await call_next(request)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Log each request with its client IP and latency."""

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        client_ip = extract_client_ip(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"from {client_ip} in {elapsed_ms:.1f}ms"
        )
        return response
