from __future__ import annotations

import logging
import time
from typing import Callable
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from tourbook.config import MAX_BODY_BYTES
from tourbook.errors import PayloadTooLargeError, RateLimitError
from tourbook.rate_limit import get_rate_limiter

logger = logging.getLogger("tourbook.access")

CORRELATION_HEADER = "X-Correlation-Id"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cache-Control": "no-store",
}


def install_request_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def ensure_correlation_id(request: Request, call_next: Callable[[Request], Response]):
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid4())
        request.state.correlation_id = correlation_id
        request.state.user_id = None
        started = time.perf_counter()

        response = await call_next(request)

        if CORRELATION_HEADER not in response.headers:
            response.headers[CORRELATION_HEADER] = correlation_id
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)

        logger.info(
            "%s %s -> %s (%.1f ms) user=%s corr=%s",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
            getattr(request.state, "user_id", None),
            correlation_id,
        )
        return response


def install_request_limits(app: FastAPI, *, api_prefix: str = "/api") -> None:
    """
    Body size cap on every request and a per-IP request limit on the API.
    Both answer with the usual error envelope (413 / 429).
    """

    @app.middleware("http")
    async def enforce_request_limits(request: Request, call_next: Callable[[Request], Response]):
        content_length = request.headers.get("content-length", "")
        if content_length.isdigit() and int(content_length) > MAX_BODY_BYTES:
            logger.warning(
                "%s %s rejected: body of %s bytes exceeds %s",
                request.method,
                request.url.path,
                content_length,
                MAX_BODY_BYTES,
            )
            exc = PayloadTooLargeError(f"Request body too large. Maximum size: {MAX_BODY_BYTES} bytes")
            return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

        limiter = get_rate_limiter()
        if limiter is None or not request.url.path.startswith(api_prefix):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        allowed, remaining, retry_after = limiter.hit(client_ip)
        if not allowed:
            logger.warning("Rate limit exceeded for %s on %s", client_ip, request.url.path)
            exc = RateLimitError(retry_after)
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_dict(),
                headers={
                    "Retry-After": str(retry_after),
                    "X-RateLimit-Limit": str(limiter.max_requests),
                    "X-RateLimit-Remaining": "0",
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limiter.max_requests)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response
