import json
import logging

from fastapi import FastAPI
from starlette.testclient import TestClient

from service_template.core.logging.builder import setup_logging
from service_template.core.logging.middleware import REQUEST_ID_HEADER, RequestIDMiddleware, resolve_request_id


class S:
    LOG_FORMAT = "json"
    LOG_LEVEL = "INFO"
    LOG_TO_STDOUT = True
    LOG_DIR = None
    LOG_MAX_BYTES = 1000
    LOG_BACKUP_COUNT = 1
    ENV = "production"
    SERVICE_NAME = "svc"
    ENABLE_SQL_LOGGING = False


def _app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)

    @app.get("/hello")
    def hello():
        logging.getLogger("service_template.hello").info("handling hello")
        return {"ok": True}

    return app


def test_request_id_in_response_and_logs(capsys):
    setup_logging(S())
    client = TestClient(_app())

    resp = client.get("/hello")

    assert resp.status_code == 200
    rid = resp.headers.get(REQUEST_ID_HEADER)
    assert rid is not None

    out = capsys.readouterr().out.strip()
    records = []
    for line in out.splitlines():
        try:
            records.append(json.loads(line))
        except ValueError:
            continue
    assert any(r.get("request_id") == rid and r.get("message") == "handling hello" for r in records)


def test_incoming_request_id_is_reused():
    client = TestClient(_app())
    resp = client.get("/hello", headers={REQUEST_ID_HEADER: "abc.123"})
    assert resp.headers[REQUEST_ID_HEADER] == "abc.123"


def test_unsafe_request_id_is_replaced():
    assert resolve_request_id("bad id\nwith newline") != "bad id\nwith newline"
    assert resolve_request_id("x" * 200) != "x" * 200
    assert resolve_request_id("ok-id") == "ok-id"
