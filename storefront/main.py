"""FastAPI application entry point."""

import logging
import os

# ENV=dev: INFO level with detailed format (default)
# ENV=prod/staging: WARNING level, minimal logs
_env = os.getenv("ENV", "dev").lower()
_is_dev = _env == "dev"
_log_level = logging.INFO if _is_dev else logging.WARNING

logging.basicConfig(
    level=_log_level,
    format=(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        if _is_dev
        else "%(levelname)s | %(message)s"
    ),
    datefmt="%H:%M:%S",
)

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from storefront.api import admin, auth, quiz
from storefront.config import settings
from storefront.database.collection_store import get_store
from storefront.middleware.exception_handlers import (
    general_exception_handler,
    http_exception_handler,
    storefront_exception_handler,
    validation_exception_handler,
)
from storefront.services.exceptions import StorefrontError

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Storefront back-office API: accounts, password recovery, quizzes and admin tools",
    version=settings.APP_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:3001"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StorefrontError, storefront_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

app.include_router(auth.router, prefix="/api", tags=["Auth"])
app.include_router(quiz.router, prefix="/api", tags=["Quiz"])
app.include_router(admin.router, prefix="/api", tags=["Admin"])


@app.get("/")
async def root():
    return {
        "message": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/api/docs",
    }


@app.get("/api/health")
def health():
    """Liveness plus the configured storage backend and providers."""
    return {
        "status": "ok",
        "env": settings.ENV,
        "store": type(get_store()).__name__,
        "sms": settings.sms_configured,
        "images": settings.images_configured,
    }
