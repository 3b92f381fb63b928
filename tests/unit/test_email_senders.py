"""Email senders: HTTP API sender error classification, log-only sender, factory."""

import json

import httpx
import pytest

from app.core.config import Settings
from app.domain.exceptions import NonRetriableError, PermanentEmailError, TransientEmailError
from app.infrastructure.external.email import (
    HttpEmailSender,
    LogOnlyEmailSender,
    create_email_sender,
)

API_URL = "https://mail.test/v3/smtp/email"


def _sender(handler) -> HttpEmailSender:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpEmailSender(
        api_url=API_URL,
        api_key="secret-key",
        from_address="noreply@taskpulse.test",
        from_name="TaskPulse",
        http_client=client,
    )


async def test_http_sender_posts_expected_payload() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(201, json={"messageId": "m1"})

    await _sender(handler).send("max@example.com", "Subject", "<p>Body</p>")

    assert len(captured) == 1
    request = captured[0]
    assert str(request.url) == API_URL
    assert request.headers["api-key"] == "secret-key"
    assert json.loads(request.content) == {
        "sender": {"name": "TaskPulse", "email": "noreply@taskpulse.test"},
        "to": [{"email": "max@example.com"}],
        "subject": "Subject",
        "htmlContent": "<p>Body</p>",
    }


@pytest.mark.parametrize("status", [408, 429, 500, 502, 503])
async def test_http_sender_retryable_statuses_are_transient(status: int) -> None:
    sender = _sender(lambda request: httpx.Response(status, text="busy"))
    with pytest.raises(TransientEmailError) as info:
        await sender.send("max@example.com", "S", "B")
    assert info.value.status_code == status
    assert not isinstance(info.value, NonRetriableError)


@pytest.mark.parametrize("status", [400, 401, 403, 404, 422])
async def test_http_sender_client_errors_are_permanent(status: int) -> None:
    sender = _sender(lambda request: httpx.Response(status, json={"message": "bad"}))
    with pytest.raises(PermanentEmailError) as info:
        await sender.send("max@example.com", "S", "B")
    assert info.value.status_code == status
    assert isinstance(info.value, NonRetriableError)


async def test_http_sender_connection_error_is_transient() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransientEmailError):
        await _sender(handler).send("max@example.com", "S", "B")


async def test_http_sender_timeout_is_transient() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(TransientEmailError):
        await _sender(handler).send("max@example.com", "S", "B")


async def test_log_only_sender_does_not_raise(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level("INFO")
    await LogOnlyEmailSender().send("max@example.com", "Hello", "<p>Hi</p>")
    assert "max@example.com" in caplog.text


def test_factory_defaults_to_log_sender() -> None:
    assert isinstance(create_email_sender(Settings(email_backend="log")), LogOnlyEmailSender)


def test_factory_builds_http_sender() -> None:
    settings = Settings(
        email_backend="http",
        email_api_url=API_URL,
        email_api_key="k",
    )
    assert isinstance(create_email_sender(settings), HttpEmailSender)


def test_http_backend_requires_url_and_key() -> None:
    with pytest.raises(ValueError):
        Settings(email_backend="http", email_api_url=None, email_api_key=None)
