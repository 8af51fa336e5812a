"""Application bootstrap for the Job Relevance Filter API.

This module wires the FastAPI application, attaches middleware and error
handlers, and owns the lifecycle of the embedding client.

Functions:
    lifespan(app: FastAPI): Initialise logging, database state and services; close the client on shutdown.
    health_check(): Lightweight readiness probe used by monitoring and local smoke tests.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from jobfilter.api import api_router
from jobfilter.core.config import get_settings
from jobfilter.core.errors import JobFilterError
from jobfilter.db.session import init_db
from jobfilter.services.openai_client import OpenAIService
from jobfilter.services.preferences import build_preference_service

settings = get_settings()

_LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=settings.log_level.upper())
    await init_db()
    embeddings = OpenAIService(settings=settings)
    if not embeddings.is_configured:
        _LOGGER.warning("OPENAI_API_KEY is not set; feedback and filtering will fail until it is")
    app.state.preference_service = build_preference_service(embeddings, settings)
    try:
        yield
    finally:
        await embeddings.close()


app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_body(code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}}


@app.exception_handler(JobFilterError)
async def job_filter_error_handler(request: Request, exc: JobFilterError) -> JSONResponse:
    if exc.status_code >= 500:
        _LOGGER.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.code, exc.message))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=_error_body("InvalidRequestBody", "Request body failed validation"),
    )


app.include_router(api_router)


@app.get("/health")
async def health_check():
    return {"status": "ok"}
