import logging

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute

from processlink.api import api_router
from processlink.config import settings
from processlink.credentials.service import config_store
from processlink.logger import setup_global_logger
from processlink.utils.health import router as health_router
from processlink.utils.request_id import RequestIDMiddleware

setup_global_logger(settings.LOG_LEVEL)

logger = logging.getLogger(__name__)


def custom_generate_unique_id(route: APIRoute) -> str:
    if route.tags:
        return f"{route.tags[0]}-{route.name}"
    return route.name


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    logger.error(f"Validation error for {request.url}: {errors}")
    return JSONResponse(status_code=422, content={"detail": errors})


def create_app() -> FastAPI:
    """Admin HTTP surface used by the editor for configuration lookups."""
    if settings.SENTRY_DSN and settings.ENVIRONMENT != "local":
        sentry_sdk.init(dsn=str(settings.SENTRY_DSN), traces_sample_rate=1.0)

    if settings.CONFIG_NODES_FILE:
        config_store.load_file(settings.CONFIG_NODES_FILE)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        generate_unique_id_function=custom_generate_unique_id,
    )
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_middleware(RequestIDMiddleware)

    app.include_router(health_router)
    app.include_router(api_router, prefix="/processlink")
    return app


app = create_app()
