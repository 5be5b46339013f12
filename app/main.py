from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import router, system_router
from datastore.measurement_store import build_default_measurement_store
from datastore.mock_firestore import StoreError, build_default_store
from logging_config import configure_logging
from services.queries import build_default_query_service
from settings import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    build_default_query_service()
    try:
        yield
    finally:
        build_default_query_service.cache_clear()
        build_default_measurement_store.cache_clear()
        build_default_store.cache_clear()


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = jsonable_encoder(exc.errors())
    logger.warning(
        "Rejected invalid request",
        extra={"path": request.url.path, "error_count": len(errors)},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request.", "errors": errors},
    )


async def store_exception_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error(
        "Document store failure",
        exc_info=exc,
        extra={"path": request.url.path, "reason": type(exc).__name__},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Error processing your request."},
    )


def create_app() -> FastAPI:
    configure_logging()
    settings = get_settings()
    app = FastAPI(
        title="Noise Monitor API",
        description="Sector-partitioned decibel measurements backed by a document store.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StoreError, store_exception_handler)
    app.include_router(router, prefix=settings.api_prefix)
    app.include_router(system_router)
    return app

app = create_app()
