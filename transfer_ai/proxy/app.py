# proxy/app.py
"""
Rates Proxy Service - FastAPI Application

Forwards transfer searches to the booking marketplace with browser-like
headers, caches successful responses, and rate limits clients per IP.

Endpoints:
- GET /api/transfers      search (cached)
- GET /api/cache/stats    cache counters
- DELETE /api/cache/clear flush the cache
- GET /health             uptime, memory and cache status
"""

import json
import resource
import time
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Dict, Any

import httpx
import uvicorn
from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..config import settings, configure_logging
from .cache import TTLCache
from .rate_limit import create_limiter, rate_limit_exceeded_handler

REQUIRED_PARAMS = ["pickup", "dropoff", "pickupDateTime", "passenger"]

UPSTREAM_HEADERS = {
    "Accept": "application/json, text/plain, */*",
    "Accept-Language": "en-US,en;q=0.9,ru;q=0.8",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "empty",
    "Sec-Fetch-Mode": "cors",
    "Sec-Fetch-Site": "same-site",
    "Referer": "https://www.booking.com/",
    "Origin": "https://www.booking.com",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "X-DNS-Prefetch-Control": "off",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "Cross-Origin-Resource-Policy": "same-origin",
    "X-Permitted-Cross-Domain-Policies": "none",
}


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def build_cache_key(params: Dict[str, Any]) -> str:
    return "transfer_" + json.dumps(params, ensure_ascii=False)


def build_upstream_params(params: Dict[str, Any], today: Optional[date] = None) -> Dict[str, str]:
    """Marketplace query: caller parameters plus the fixed affiliate/format flags"""
    today = today or date.today()
    return {
        "affiliate": "booking-taxi",
        "currency": params["currency"],
        "displayLocalSupplierText": "true",
        "dropoff": params["dropoff"],
        "dropoffEstablishment": params.get("dropoffEstablishment") or "Unknown",
        "dropoffType": params.get("dropoffType") or "city",
        "format": "envelope",
        "isExpandable": "true",
        "language": params["language"],
        "passenger": str(params["passenger"]),
        "passengerMismatchExperiment": "true",
        "pickup": params["pickup"],
        "pickupDateTime": params["pickupDateTime"],
        "pickupEstablishment": params.get("pickupEstablishment") or "Unknown",
        "pickupType": params.get("pickupType") or "city",
        "populateSupplierName": "true",
        "returnBannerDate": (today + timedelta(days=7)).isoformat(),
    }


async def fetch_upstream(request: Request, params: Dict[str, Any]) -> Any:
    """Call the marketplace; raises httpx.HTTPError or ValueError on failure"""
    async with httpx.AsyncClient(
        timeout=settings.BOOKING_TIMEOUT_MS / 1000,
        transport=request.app.state.upstream_transport
    ) as client:
        response = await client.get(
            settings.BOOKING_RATES_URL,
            params=build_upstream_params(params),
            headers={"User-Agent": settings.BOOKING_USER_AGENT, **UPSTREAM_HEADERS}
        )

    logger.info(f"[{request.state.request_id}] Upstream responded {response.status_code}")
    if response.status_code != 200:
        raise ValueError(f"Booking.com API returned status {response.status_code}")
    return response.json()


# ============================================
# Routes
# ============================================

async def search_transfers(
    request: Request,
    pickup: Optional[str] = Query(None),
    dropoff: Optional[str] = Query(None),
    pickupEstablishment: Optional[str] = Query(None),
    dropoffEstablishment: Optional[str] = Query(None),
    pickupType: Optional[str] = Query(None),
    dropoffType: Optional[str] = Query(None),
    pickupDateTime: Optional[str] = Query(None),
    passenger: Optional[str] = Query(None),
    currency: str = Query("EUR"),
    language: str = Query("en-gb")
):
    request_id = request.state.request_id
    started = time.monotonic()

    params = {
        "pickup": pickup,
        "dropoff": dropoff,
        "pickupEstablishment": pickupEstablishment,
        "dropoffEstablishment": dropoffEstablishment,
        "pickupType": pickupType,
        "dropoffType": dropoffType,
        "pickupDateTime": pickupDateTime,
        "passenger": passenger,
        "currency": currency,
        "language": language,
    }
    logger.info(f"[{request_id}] Transfer search: {params}")

    if not all(params[name] for name in REQUIRED_PARAMS):
        logger.warning(f"[{request_id}] Missing required parameters")
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": "Missing required parameters",
                "required": REQUIRED_PARAMS,
                "requestId": request_id,
            }
        )

    cache: TTLCache = request.app.state.cache
    cache_key = build_cache_key(params)

    cached = cache.get(cache_key)
    if cached is not None:
        logger.info(f"[{request_id}] Cache hit")
        return {**cached, "cached": True, "requestId": request_id, "duration": _elapsed_ms(started)}

    logger.info(f"[{request_id}] Cache miss, fetching from upstream")
    try:
        data = await fetch_upstream(request, params)
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"[{request_id}] Upstream request failed: {e}")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Internal server error",
                "message": str(e) or type(e).__name__,
                "requestId": request_id,
                "duration": _elapsed_ms(started),
                "timestamp": _timestamp(),
            }
        )

    result = {
        "success": True,
        "source": "booking.com",
        "data": data,
        "requestParams": params,
        "requestId": request_id,
        "duration": _elapsed_ms(started),
        "cached": False,
        "timestamp": _timestamp(),
    }
    cache.set(cache_key, result)
    logger.info(f"[{request_id}] Processed in {result['duration']}ms")
    return result


async def cache_stats(request: Request):
    cache: TTLCache = request.app.state.cache
    return {"keys": len(cache.keys()), "stats": cache.stats(), "timestamp": _timestamp()}


async def cache_clear(request: Request):
    request.app.state.cache.clear()
    return {"success": True, "message": "Cache cleared", "timestamp": _timestamp()}


async def health(request: Request):
    cache: TTLCache = request.app.state.cache
    return {
        "status": "healthy",
        "timestamp": _timestamp(),
        "uptime": round(time.monotonic() - request.app.state.started_at, 3),
        "memory": {"maxRssKb": resource.getrusage(resource.RUSAGE_SELF).ru_maxrss},
        "cache": {"keys": len(cache.keys()), "stats": cache.stats()},
    }


async def not_found_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return JSONResponse(
            status_code=404,
            content={
                "success": False,
                "error": "Not found",
                "message": f"Route {request.url.path} not found",
                "timestamp": _timestamp(),
            }
        )
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.detail})


# ============================================
# Application Factory
# ============================================

def create_app(
    cache: Optional[TTLCache] = None,
    rate_limit_max: Optional[int] = None,
    rate_limit_window_ms: Optional[int] = None,
    upstream_transport: Optional[httpx.AsyncBaseTransport] = None
) -> FastAPI:
    """Build the proxy app; arguments override configuration (used by tests)"""
    app = FastAPI(title="Rates Proxy Service", version="1.0.0", docs_url=None, redoc_url=None)

    limiter = create_limiter(rate_limit_max, rate_limit_window_ms)
    app.state.limiter = limiter
    app.state.rate_limit_window_ms = (
        rate_limit_window_ms if rate_limit_window_ms is not None else settings.RATE_LIMIT_WINDOW_MS
    )
    app.state.cache = cache or TTLCache()
    app.state.upstream_transport = upstream_transport
    app.state.started_at = time.monotonic()

    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(StarletteHTTPException, not_found_handler)

    # SlowAPIMiddleware only resolves routes registered directly on the app
    app.add_api_route("/api/transfers", search_transfers, methods=["GET"], tags=["rates"])
    app.add_api_route("/api/cache/stats", cache_stats, methods=["GET"], tags=["rates"])
    app.add_api_route("/api/cache/clear", cache_clear, methods=["DELETE"], tags=["rates"])
    app.add_api_route("/health", health, methods=["GET"])
    limiter.exempt(health)

    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        request.state.request_id = uuid.uuid4().hex[:8]
        started = time.monotonic()
        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        response.headers["X-Request-ID"] = request.state.request_id
        client = request.client.host if request.client else "-"
        logger.info(
            f"[{request.state.request_id}] {client} {request.method} {request.url.path} "
            f"{response.status_code} {_elapsed_ms(started)}ms"
        )
        return response

    logger.info(
        f"Rates proxy ready: cache ttl={app.state.cache.ttl_seconds}s, "
        f"max keys={app.state.cache.max_keys}, upstream={settings.BOOKING_RATES_URL}"
    )
    return app


# ============================================
# Main
# ============================================

def run():
    configure_logging()
    uvicorn.run(
        "transfer_ai.proxy.app:create_app",
        factory=True,
        host=settings.API_HOST,
        port=settings.PROXY_PORT
    )


if __name__ == "__main__":
    run()
