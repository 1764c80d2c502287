"""
Application factory.

    uvicorn service_template.main:create_app --factory
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from service_template.api.v1 import health_router, register_exception_handlers
from service_template.config.settings import Settings, get_settings
from service_template.core.executor import build_task_executor
from service_template.core.logging import RequestIDMiddleware, setup_logging
from service_template.database.session import COMMAND, QUERY, dispose_engines, get_engine
from service_template.i18n import LocaleMiddleware, MessageService
from service_template.responses.builder import ApiResponseBuilder
from service_template.utils.project import get_project_version

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    logger.info("app.startup", extra={"service": settings.SERVICE_NAME, "env": settings.ENV})
    yield
    app.state.executor.shutdown(wait=True)
    await dispose_engines()
    logger.info("app.shutdown", extra={"service": settings.SERVICE_NAME})


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(title=settings.SERVICE_NAME, version=get_project_version(), lifespan=lifespan)

    messages = MessageService.from_directory(
        settings.MESSAGES_DIR,
        default_locale=settings.DEFAULT_LOCALE,
        supported_locales=settings.supported_locales,
    )
    app.state.settings = settings
    app.state.messages = messages
    app.state.responses = ApiResponseBuilder(messages)
    app.state.executor = build_task_executor(settings)

    # Engines are lazy about connecting; building them here binds them to these settings.
    get_engine(COMMAND, settings)
    get_engine(QUERY, settings)

    # Last added runs first: request id is set before the locale is resolved.
    app.add_middleware(
        LocaleMiddleware,
        supported_locales=settings.supported_locales,
        default_locale=settings.DEFAULT_LOCALE,
        query_param=settings.LOCALE_QUERY_PARAM,
    )
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)
    app.include_router(health_router)

    return app

