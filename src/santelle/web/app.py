"""
Santelle API - FastAPI application.

Serves the plan quiz flow and the waitlist endpoints for the marketing site.
"""

import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from quiz.api import router as quiz_router
from quiz.errors import QuizError
from santelle import __version__
from santelle.config import get_settings
from santelle.web.dependencies import get_session_registry
from santelle.web.errors import (
    ApiError,
    api_error_handler,
    quiz_error_handler,
    request_validation_handler,
    unexpected_error_handler,
)
from santelle.web.waitlist_routes import router as waitlist_router

logger = logging.getLogger(__name__)

app = FastAPI(title="Santelle", version=__version__)


@app.on_event("startup")
async def startup_event():
    """Log configuration on startup."""
    settings = get_settings()
    logger.info("Santelle API starting up...")
    logger.info(f"  Environment: {settings.santelle_env}")
    logger.info(f"  Store backend: {settings.store_backend}")
    logger.info(f"  DNS resolver: {settings.dns_resolver_url}")
    if settings.store_backend == "supabase" and not settings.supabase_configured:
        logger.warning("  Supabase credentials missing - quiz and waitlist writes will fail")


@app.on_event("shutdown")
async def shutdown_event():
    """Give pending best-effort writes a chance to finish."""
    await get_session_registry().close_all()


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(ApiError, api_error_handler)
app.add_exception_handler(QuizError, quiz_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(Exception, unexpected_error_handler)

app.include_router(quiz_router, prefix="/api")
app.include_router(waitlist_router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}
