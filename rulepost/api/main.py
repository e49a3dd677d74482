"""FastAPI application entry point for Rule Post."""

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from structlog import get_logger

from rulepost.api.middleware.logging_middleware import LoggingMiddleware
from rulepost.api.routes import admin_router, drafts_router, health_router, posts_router
from rulepost.domain.exceptions import RulePostError
from rulepost.infrastructure.observability import configure_structlog

logger = get_logger(__name__)

PROBLEM_JSON = "application/problem+json"


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    configure_structlog(os.environ.get("ENVIRONMENT", "production"))
    logger.info("api_started")
    yield


app = FastAPI(
    lifespan=lifespan,
    title="Rule Post API",
    description="Rules enquiry submission and publication",
    version="0.1.0",
)

app.add_middleware(LoggingMiddleware)


@app.exception_handler(RulePostError)
async def rulepost_error_handler(request: Request, exc: RulePostError) -> JSONResponse:
    """Map domain errors to RFC 7807 problem details."""
    logger.info(
        "request_rejected",
        path=request.url.path,
        code=exc.code,
        detail=exc.message,
    )
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_rfc7807_dict(),
        media_type=PROBLEM_JSON,
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_error",
        path=request.url.path,
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={
            "type": "urn:rulepost:error:internal",
            "title": "Internal",
            "status": 500,
            "detail": "An unexpected error occurred.",
            "code": "internal",
        },
        media_type=PROBLEM_JSON,
    )


app.include_router(health_router)
app.include_router(posts_router)
app.include_router(drafts_router)
app.include_router(admin_router)
