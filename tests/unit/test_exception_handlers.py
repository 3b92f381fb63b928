"""Exception handlers: domain and workflow error mapping, request and trace ids."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from app.core import exception_handlers
from app.core.exception_handlers import register_exception_handlers, status_for
from app.domain.exceptions import (
    DuplicateStepError,
    EmailDeliveryError,
    InvalidTriggerPayloadError,
    LeaseLostError,
    PermanentEmailError,
    ResourceNotFoundException,
    TransientEmailError,
    ValidationException,
)
from app.middleware import RequestIDMiddleware

TRACE_ID = "0af7651916cd43dd8448eb211c80319c"

_RAISES = {
    "missing": ResourceNotFoundException("task", "t1"),
    "invalid": ValidationException("bad", field="title"),
    "payload": InvalidTriggerPayloadError("app/task.assigned", "taskId is required"),
    "transient": TransientEmailError("gateway timeout", status_code=504),
    "permanent": PermanentEmailError("rejected", status_code=400),
    "lease": LeaseLostError("run-1"),
    "step": DuplicateStepError("run-1", "get-task"),
}


@pytest.fixture
def app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/raise/{kind}")
    async def raise_kind(kind: str):
        if kind == "crash":
            raise RuntimeError("secret internals")
        raise _RAISES[kind]

    return app


@pytest.fixture
async def client(app: FastAPI):
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.mark.parametrize(
    ("exc", "status"),
    [
        (ResourceNotFoundException("task", "t1"), 404),
        (ValidationException("bad"), 400),
        (InvalidTriggerPayloadError("e", "r"), 400),
        (TransientEmailError("timeout"), 503),
        (PermanentEmailError("rejected", status_code=422), 502),
        (EmailDeliveryError("unknown"), 502),
        (LeaseLostError("run-1"), 409),
        (DuplicateStepError("run-1", "s"), 500),
    ],
)
def test_status_for_domain_and_workflow_errors(exc, status) -> None:
    assert status_for(exc) == status


async def test_domain_error_body_carries_request_id(client: AsyncClient) -> None:
    response = await client.get("/raise/missing", headers={"X-Request-ID": "req-42"})
    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "RESOURCE_NOT_FOUND"
    assert body["request_id"] == "req-42"
    assert "trace_id" not in body


async def test_transient_email_error_is_503_with_retry_after(client: AsyncClient) -> None:
    response = await client.get("/raise/transient")
    assert response.status_code == 503
    assert response.json()["error"] == "EMAIL_DELIVERY_ERROR"
    assert response.json()["details"] == {"status_code": 504}
    assert int(response.headers["Retry-After"]) >= 1


async def test_permanent_email_error_is_bad_gateway(client: AsyncClient) -> None:
    response = await client.get("/raise/permanent")
    assert response.status_code == 502
    assert "Retry-After" not in response.headers


async def test_lease_lost_is_conflict(client: AsyncClient) -> None:
    response = await client.get("/raise/lease")
    assert response.status_code == 409
    assert response.json()["error"] == "LEASE_LOST"
    assert response.json()["details"] == {"run_id": "run-1"}


async def test_workflow_fault_is_500_with_trace_id(
    client: AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(exception_handlers, "get_trace_id", lambda: TRACE_ID)
    response = await client.get("/raise/step")
    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "DUPLICATE_STEP"
    assert body["trace_id"] == TRACE_ID
    assert body["request_id"]


async def test_unhandled_error_hides_detail(
    client: AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(exception_handlers, "get_trace_id", lambda: TRACE_ID)
    response = await client.get("/raise/crash", headers={"X-Request-ID": "req-7"})
    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "INTERNAL_ERROR"
    assert body["message"] == "Internal server error"
    assert body["trace_id"] == TRACE_ID
    assert body["request_id"] == "req-7"


async def test_request_validation_error_is_422() -> None:
    app_with_body = FastAPI()
    register_exception_handlers(app_with_body)

    @app_with_body.get("/items/{item_id}")
    async def item(item_id: int):
        return {"id": item_id}

    transport = ASGITransport(app=app_with_body)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        response = await c.get("/items/not-a-number")
    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_ERROR"
    assert "request_id" not in response.json()
