from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings
from .container import ApplicationContainer, build_container
from .logging import configure_logging
from ..domain.exceptions import ServiceError
from ..presentation.api.routers import checkout_router
from ..presentation.api.routers import discount_router
from ..presentation.api.routers import license_router
from ..presentation.api.routers import product_router
from ..presentation.api.routers import subscription_admin_router
from ..presentation.api.routers import user_subscription_router

logger = logging.getLogger(__name__)


def create_application(
    settings: Optional[Settings] = None,
    container: Optional[ApplicationContainer] = None,
) -> FastAPI:
    settings = settings or (container.settings if container else Settings())

    app = FastAPI(title="Subscription & License Service", lifespan=_create_lifespan(settings, container))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(user_subscription_router.router)
    app.include_router(subscription_admin_router.router)
    app.include_router(license_router.router)
    app.include_router(product_router.router)
    app.include_router(checkout_router.router)
    app.include_router(discount_router.router)

    _register_exception_handlers(app)

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        container: ApplicationContainer = app.state.container  # type: ignore[attr-defined]
        return {"ok": True, "providerConfigured": container.entitlement_client is not None}

    return app


def _create_lifespan(settings: Settings, prebuilt: Optional[ApplicationContainer]):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging()
        container = prebuilt or build_container(settings)
        app.state.container = container  # type: ignore[attr-defined]
        logger.info("Using subscription database at %s", settings.database_path)

        try:
            yield
        finally:
            await container.aclose()

    return lifespan


def _error_response(status_code: int, code: str, message: str, details: Any = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": {"code": code, "message": message, "details": jsonable_encoder(details)},
        },
    )


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceError)
    async def handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.code)
        return _error_response(exc.status_code, exc.code, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(400, "VALIDATION_ERROR", "Invalid request", exc.errors())

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_response(500, "INTERNAL_ERROR", "Internal server error")
