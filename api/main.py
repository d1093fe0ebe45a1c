#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
FastAPI Web Server - REST API for GiftBook AI.

Thin orchestration shell: app creation, middleware, router includes,
error handlers, startup/shutdown events.

Usage:
    uvicorn api.main:app --host 0.0.0.0 --port 8000
"""

from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

# Load environment variables from .env file
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

from config.logging_config import get_logger, setup_logging
from config.settings import settings

setup_logging()
logger = get_logger(__name__)

from api.deps import limiter, start_time
from api.book_router import router as book_router
from api.admin_router import router as admin_router

# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="GiftBook AI API",
    description="Personalized children's books generated from a short form",
    version="1.0.0",
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware, origins from settings (env var) or dev defaults
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response

app.add_middleware(SecurityHeadersMiddleware)

# =============================================================================
# Error Handlers
# =============================================================================

def _field_name(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) or "request"


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Reject malformed input with a per-field message map."""
    errors = {}
    for error in exc.errors():
        errors.setdefault(_field_name(error.get("loc", ())), error.get("msg", "Invalid value"))

    message = "; ".join(f"{field}: {msg}" for field, msg in errors.items())
    return JSONResponse(
        status_code=400,
        content={"error": "Validation failed", "message": message, "errors": errors},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "message": "An unexpected error occurred"},
    )

# =============================================================================
# Include Routers
# =============================================================================

app.include_router(book_router)
app.include_router(admin_router)


@app.get("/health", tags=["System"])
async def health():
    import time
    return {
        "status": "healthy",
        "version": app.version,
        "uptime_seconds": round(time.time() - start_time, 1),
    }

# =============================================================================
# Startup / Shutdown Events
# =============================================================================

@app.on_event("startup")
async def startup_prepare_directories():
    """Create data and PDF output directories."""
    settings.prepare_directories()
    from core.books.service import get_book_service
    get_book_service().renderer.ensure_output_dir()


@app.on_event("startup")
async def startup_resume_renders():
    """Resume PDF renders interrupted by server restart or failure."""
    try:
        from core.books.service import get_book_service
        resumed = await get_book_service().resume_pending_renders()
        if resumed > 0:
            logger.info(f"Startup: Resumed {resumed} pending renders")
    except Exception as e:
        logger.error(f"Startup: Failed to resume renders: {e}", exc_info=True)


@app.on_event("shutdown")
async def shutdown_wait_for_renders():
    """Let in-flight renders finish so no book is left half-written."""
    from core.books.service import get_book_service
    await get_book_service().wait_for_renders()
