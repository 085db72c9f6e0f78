"""
HTTP hardening for the API: CORS, security headers and rate limiting.

Limits use the slowapi "count/period" syntax and can be overridden from the
environment:
- RATE_LIMIT: global per-client limit applied to every route
- QUERY_RATE_LIMIT: tighter limit for the language-model endpoints
- RATE_LIMIT_ENABLED=0 turns limiting off
"""

import os

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware

from utils.env_loader import env_flag, env_list, load_environments

load_environments()

DEFAULT_RATE_LIMIT = "100 per 15 minutes"
DEFAULT_QUERY_RATE_LIMIT = "10/minute"


def query_rate_limit() -> str:
    return os.getenv("QUERY_RATE_LIMIT", DEFAULT_QUERY_RATE_LIMIT)


limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[os.getenv("RATE_LIMIT", DEFAULT_RATE_LIMIT)],
    enabled=env_flag("RATE_LIMIT_ENABLED", "1"),
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    limit_str = str(getattr(exc, "limit", "") or "")
    retry_after = 60
    if "second" in limit_str:
        retry_after = 1
    elif "hour" in limit_str:
        retry_after = 3600
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Too many requests from this IP, please try again later.",
            "limit": str(exc.detail),
            "retry_after_seconds": retry_after,
        },
        headers={"Retry-After": str(retry_after)},
    )


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


def setup_security(app: FastAPI) -> FastAPI:
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=env_list("ALLOWED_ORIGINS", "http://localhost:5173"),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
    return app
