"""
Main FastAPI application with logging, dependency injection, and middleware setup.
"""
from contextlib import asynccontextmanager

from dishka import AsyncContainer
from dishka.integrations import fastapi as fastapi_integration
from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from deeptrust.api.exceptions.exception_handlers import register_exception_handlers
from deeptrust.api.middlewares.request_context_middleware import (
    REQUEST_ID_HEADER,
    RequestContextMiddleware,
)
from deeptrust.api.v1.controllers.analysis import router as analysis_router
from deeptrust.core.config import Config, config
from deeptrust.core.logging import get_logger, setup_logging
from deeptrust.ioc import create_container
from deeptrust.services.analysis_service import AnalysisService
from deeptrust.web import router as web_router

logger = get_logger(__name__)

CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type", REQUEST_ID_HEADER.lower()]

health_router = APIRouter(route_class=DishkaRoute, tags=["Health"])


@health_router.get("/health")
async def health_check(app_config: FromDishka[Config]):
    """
    Basic liveness check endpoint.
    """
    return {"status": "healthy", "service": app_config.app_name}


@health_router.get("/health/ready")
async def readiness_check(
    service: FromDishka[AnalysisService],
    app_config: FromDishka[Config],
):
    """
    Readiness check endpoint: the selected provider must have its API key.
    """
    provider = service.provider
    body = {
        "status": "ready" if provider.is_configured else "not_configured",
        "service": app_config.app_name,
        "provider": provider.name,
        "model": provider.model,
    }
    if not provider.is_configured:
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)
    return body


def create_app(app_config: Config | None = None, container: AsyncContainer | None = None) -> FastAPI:
    """
    Create and configure FastAPI application with Dishka DI container.
    """
    app_config = app_config or config
    setup_logging(app_config)
    container = container or create_container(app_config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        service = await container.get(AnalysisService)
        logger.info(
            "application_startup",
            app_name=app_config.app_name,
            provider=service.provider.name,
            model=service.provider.model,
        )
        if not service.provider.is_configured:
            logger.warning("provider_credentials_missing", provider=service.provider.name)
        yield
        logger.info("application_shutdown", app_name=app_config.app_name)
        await container.close()

    app = FastAPI(
        title=app_config.app_name,
        description="Relays images to a hosted model and reports whether they look AI-generated",
        version=app_config.app_version,
        lifespan=lifespan,
    )

    fastapi_integration.setup_dishka(container, app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_config.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=CORS_ALLOW_HEADERS,
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(RequestContextMiddleware)

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(analysis_router)
    app.include_router(web_router)

    return app


app = create_app()
