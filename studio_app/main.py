"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from studio_app import __version__
from studio_app.api.v1.router import api_v1_router
from studio_app.core.config import settings
from studio_app.core.exceptions import (
    AccessRedirect,
    ProblemDetailError,
    access_redirect_handler,
    http_exception_handler,
    problem_detail_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from studio_app.core.middleware.cors import get_cors_config
from studio_app.core.middleware.request_id import RequestIdMiddleware
from studio_app.db.session import Database

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the process-wide Database handle; dispose it on shutdown."""
    logger.info("Studio API starting (environment=%s)", settings.ENVIRONMENT)
    database = None
    if settings.database_configured:
        database = Database(settings.DATABASE_URL, echo=settings.DEBUG)
        if await database.ping():
            logger.info("Database connection verified")
        else:
            logger.warning("Database unreachable at startup; studio routes will answer 503")
    else:
        logger.warning("DATABASE_URL is not set; studio routes will answer 503")
    app.state.database = database

    try:
        yield
    finally:
        logger.info("Studio API shutting down")
        if database is not None:
            await database.dispose()
            logger.info("Database connection pool closed")


app = FastAPI(
    title="Studio Membership API",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    openapi_url="/openapi.json",
)

# Middleware (last added = first executed)
app.add_middleware(RequestIdMiddleware)
app.add_middleware(CORSMiddleware, **get_cors_config())

# Exception handlers (RFC 7807)
app.add_exception_handler(ProblemDetailError, problem_detail_handler)
app.add_exception_handler(AccessRedirect, access_redirect_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# Routes
app.include_router(api_v1_router, prefix="/api/v1")
