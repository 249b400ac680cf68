"""FastAPI application entry point."""

import json
import logging
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from resource_gate import config
from resource_gate.api.routes import router, limiter
from resource_gate.exceptions import ResourceNotPermittedError
from resource_gate.resources.metadata import MetadataFetcher
from resource_gate.security.validator import get_validator


# ── Structured JSON logging ──────────────────────────────────────────────────

_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "message",
        "taskName",
    }
)


class _JsonFormatter(logging.Formatter):
    """Emit log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        log: dict = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log[key] = value
        if record.exc_info:
            log["exc_type"] = (
                record.exc_info[0].__name__ if record.exc_info[0] else None
            )
        return json.dumps(log, default=str)


_handler = logging.StreamHandler()
_handler.setFormatter(_JsonFormatter())
logging.basicConfig(level=logging.INFO, handlers=[_handler], force=True)

logger = logging.getLogger(__name__)


# ── Lifespan ──────────────────────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Share one outbound HTTP client; redirects are handled by MetadataFetcher."""
    async with httpx.AsyncClient(follow_redirects=False) as client:
        app.state.metadata_fetcher = MetadataFetcher(
            validator=get_validator(),
            client=client,
            max_redirects=config.METADATA_MAX_REDIRECTS,
            max_bytes=config.METADATA_MAX_BYTES,
            timeout=config.METADATA_FETCH_TIMEOUT,
        )
        logger.info(
            "startup",
            extra={"allowed_domains": len(config.get_allowed_domains())},
        )
        yield


# ── App ───────────────────────────────────────────────────────────────────────

API_VERSION = "1.0.0"

app = FastAPI(title="Resource Gate", version=API_VERSION, lifespan=lifespan)

app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(status_code=429, content={"detail": str(exc.detail)})


@app.exception_handler(ResourceNotPermittedError)
async def not_permitted_handler(request: Request, exc: ResourceNotPermittedError):
    """Reject with a generic message; the reason code only goes to the log."""
    logger.info(
        "resource_not_permitted",
        extra={"path": request.url.path, "url": exc.url[:512], "reason": exc.reason},
    )
    return JSONResponse(status_code=403, content={"detail": exc.message})


# ── CORS ──────────────────────────────────────────────────────────────────────

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "X-Api-Key"],
)


# ── Security headers ──────────────────────────────────────────────────────────
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["X-API-Version"] = API_VERSION
        return response


app.add_middleware(SecurityHeadersMiddleware)


# ── API key auth ──────────────────────────────────────────────────────────────
_AUTH_EXEMPT = {"/api/health/ready"}


class ApiKeyMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if not config.API_KEY:
            return await call_next(request)
        if request.url.path in _AUTH_EXEMPT:
            return await call_next(request)
        key = request.headers.get("X-Api-Key", "")
        if key != config.API_KEY:
            return JSONResponse(
                status_code=401,
                content={"detail": "Unauthorized: X-Api-Key required"},
            )
        return await call_next(request)


app.add_middleware(ApiKeyMiddleware)

app.include_router(router, prefix="/api")


# ── Global error sanitization ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def _global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return a sanitized error response; never expose internal details."""
    logger.error(
        "unhandled_exception",
        extra={
            "path": request.url.path,
            "method": request.method,
            "exc_type": type(exc).__name__,
            "detail": traceback.format_exc(),
        },
    )
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"},
    )
