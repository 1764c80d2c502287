import pytest
from fastapi import Depends, FastAPI
from starlette.concurrency import run_in_threadpool
from starlette.testclient import TestClient

from service_template.core.dependencies import command_provider, get_response_builder
from service_template.main import create_app
from service_template.pipeline import CommandProcess
from service_template.responses import ApiResponseBuilder
from service_template.tests.test_fixtures.app_fixtures import make_settings
from service_template.tests.test_fixtures.pipeline_fixtures import AsyncRecordingCommand, ItemIn, ItemStore
from service_template.validators.context_validators import require_fields


class RegisterItem(CommandProcess[ItemIn, dict]):
    store: ItemStore

    def pre_process(self):
        require_fields(self.context, "sku", "name")
        self.is_valid = True

    def process(self):
        self.result = self.store.add(self.context)
        self.is_executed = True

    def post_process(self):
        self.store.events.append(("created", self.context.sku))


@pytest.fixture
def app(app: FastAPI) -> FastAPI:
    RegisterItem.store = ItemStore()

    @app.post("/items")
    async def register_item(
        body: ItemIn,
        cmd: RegisterItem = Depends(command_provider(RegisterItem, is_async=True)),
        responses: ApiResponseBuilder = Depends(get_response_builder),
    ):
        cmd.context = body
        result = await run_in_threadpool(cmd.execute)
        return responses.created(result).to_response()

    @app.post("/echo")
    async def echo(
        body: dict,
        cmd: AsyncRecordingCommand = Depends(command_provider(AsyncRecordingCommand)),
        responses: ApiResponseBuilder = Depends(get_response_builder),
    ):
        cmd.context = body.get("value")
        return responses.success(await cmd.execute()).to_response()

    return app


def _post(client, url, payload):
    return client.post(url, json=payload, headers={"Accept-Language": "en"})


class TestCommandRoutes:
    def test_valid_command(self, client):
        resp = _post(client, "/items", {"sku": "A-1", "name": "Anvil"})

        assert resp.status_code == 201
        body = resp.json()
        assert body["message"] == "Resource created successfully"
        assert body["data"]["sku"] == "A-1"
        assert RegisterItem.store.events == [("created", "A-1")]

    def test_invalid_context_is_translated(self, client):
        resp = _post(client, "/items", {"sku": "A-1", "name": " "})

        assert resp.status_code == 400
        assert resp.json()["message"] == "Missing required field(s): name"
        assert RegisterItem.store.items == {}

    def test_execution_failure_is_a_domain_error(self, client):
        _post(client, "/items", {"sku": "A-1", "name": "Anvil"})

        resp = _post(client, "/items", {"sku": "A-1", "name": "Again"})

        assert resp.status_code == 400
        assert resp.json()["message"] == "Item A-1 already exists"

    def test_coroutine_command(self, client):
        resp = _post(client, "/echo", {"value": "hi"})
        assert resp.json()["data"] == "done:hi"


class TestCommandProvider:
    def test_builds_fresh_commands_with_settings(self):
        app = create_app(make_settings(COMMAND_ASYNC_TIMEOUT="2.5"))
        seen = []

        @app.get("/probe")
        def probe(cmd: RegisterItem = Depends(command_provider(RegisterItem))):
            seen.append(cmd)
            return {
                "timeout": cmd.timeout,
                "is_async": cmd.is_async,
                "shared_executor": cmd.executor is app.state.executor,
            }

        with TestClient(app) as client:
            first = client.get("/probe").json()
            client.get("/probe")

        assert first == {"timeout": 2.5, "is_async": False, "shared_executor": True}
        assert seen[0] is not seen[1]

    def test_coroutine_commands_get_timeout_only(self):
        provide = command_provider(AsyncRecordingCommand, is_async=True)
        settings = make_settings(COMMAND_ASYNC_TIMEOUT="1")

        cmd = provide(settings=settings, executor=None)

        assert isinstance(cmd, AsyncRecordingCommand)
        assert cmd.timeout == 1.0
        assert cmd.is_async is True
