# proxy/rate_limit.py
"""
Per-client-IP fixed-window rate limiting for the proxy's /api routes (slowapi).
"""

import math
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from ..config import settings

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."


def limit_string(max_requests: int, window_ms: int) -> str:
    """slowapi/limits notation, e.g. '100 per 900 seconds'"""
    return f"{max_requests} per {max(1, window_ms // 1000)} seconds"


def create_limiter(max_requests: Optional[int] = None, window_ms: Optional[int] = None) -> Limiter:
    max_requests = max_requests if max_requests is not None else settings.RATE_LIMIT_MAX_REQUESTS
    window_ms = window_ms if window_ms is not None else settings.RATE_LIMIT_WINDOW_MS

    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[limit_string(max_requests, window_ms)],
        strategy="fixed-window"
    )
    return limiter


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 body; called synchronously by SlowAPIMiddleware"""
    window_ms = getattr(request.app.state, "rate_limit_window_ms", settings.RATE_LIMIT_WINDOW_MS)
    logger.warning(f"Rate limit exceeded for {get_remote_address(request)} on {request.url.path}")
    return JSONResponse(
        status_code=429,
        content={
            "error": RATE_LIMIT_MESSAGE,
            "retryAfter": math.ceil(window_ms / 1000 / 60),
        }
    )
