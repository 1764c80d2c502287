"""
FastAPI dependency providers.

Everything request-scoped is read from `app.state`, which `create_app` fills.
Each app owns its message catalog, response builder and executor, all built
from the settings it was created with; the lifespan stops that executor.
Database engines stay process-wide (see `database.session`).

    @router.post("/items")
    async def create_item(
        body: ItemIn,
        cmd: CreateItem = Depends(command_provider(CreateItem)),
        responses: ApiResponseBuilder = Depends(get_response_builder),
    ):
        cmd.context = body
        return responses.created(await run_in_threadpool(cmd.execute)).to_response()
"""

from typing import Callable, TypeVar

from fastapi import Depends, Request

from service_template.config.settings import Settings
from service_template.core.executor import BoundedTaskExecutor
from service_template.database.session import get_command_session, get_query_session
from service_template.i18n.message_service import MessageService
from service_template.pipeline.command import AsyncCommandProcess, CommandProcess
from service_template.responses.builder import ApiResponseBuilder

CommandT = TypeVar("CommandT", CommandProcess, AsyncCommandProcess)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_message_service(request: Request) -> MessageService:
    return request.app.state.messages


def get_response_builder(request: Request) -> ApiResponseBuilder:
    return request.app.state.responses


def get_executor(request: Request) -> BoundedTaskExecutor:
    return request.app.state.executor


def command_provider(cls: type[CommandT], *, is_async: bool = False) -> Callable[..., CommandT]:
    """
    Dependency that builds a fresh `cls` for every request.

    Commands hold per-call state, so they are never shared. Sync commands get
    the application executor; both flavours get COMMAND_ASYNC_TIMEOUT.
    """

    def provide(
        settings: Settings = Depends(get_app_settings),
        executor: BoundedTaskExecutor = Depends(get_executor),
    ) -> CommandT:
        if issubclass(cls, AsyncCommandProcess):
            command = cls(timeout=settings.COMMAND_ASYNC_TIMEOUT)
        else:
            command = cls(executor, timeout=settings.COMMAND_ASYNC_TIMEOUT)
        command.is_async = is_async
        return command

    provide.__name__ = f"provide_{cls.__name__}"
    return provide


__all__ = [
    "get_app_settings",
    "get_message_service",
    "get_response_builder",
    "get_executor",
    "get_command_session",
    "get_query_session",
    "command_provider",
]
