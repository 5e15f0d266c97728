from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import router
from app.dependencies import ServiceContainer, build_default_container
from datastore.reading_store import build_default_store
from logging_config import configure_logging
from services.errors import StorageUnavailable, ValidationError

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong"


def _error_detail(request: Request, exc: Exception) -> str:
    services: ServiceContainer = request.app.state.services
    if services.settings.is_production:
        return GENERIC_ERROR_MESSAGE
    return str(exc) or type(exc).__name__


async def _validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)})


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Request body must be a JSON object"},
    )


async def _storage_error_handler(request: Request, exc: StorageUnavailable) -> JSONResponse:
    logger.error(
        "Storage unavailable: %s",
        exc,
        extra={"path": request.url.path, "status_code": 500},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error", "message": _error_detail(request, exc)},
    )


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        content = {
            "error": "Route not found",
            "message": f"Cannot {request.method} {request.url.path}",
        }
    else:
        content = {"error": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", extra={"path": request.url.path, "status_code": 500})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error", "message": _error_detail(request, exc)},
    )


def create_app(services: Optional[ServiceContainer] = None) -> FastAPI:
    configure_logging()
    owns_services = services is None

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        container: ServiceContainer = app.state.services
        container.start()
        try:
            yield
        finally:
            container.shutdown()
            if owns_services:
                build_default_container.cache_clear()
                build_default_store.cache_clear()

    app = FastAPI(
        title="Climate Sensor Data Service",
        description="Ingests temperature/humidity readings and serves dashboard queries.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.services = services or build_default_container()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ValidationError, _validation_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(StorageUnavailable, _storage_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
    app.include_router(router)
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:create_app", factory=True, host="0.0.0.0", port=3000)
