"""Transactional email over HTTP (Brevo-style JSON API) using httpx."""

from __future__ import annotations

from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

import httpx

from app.domain.exceptions import PermanentEmailError, TransientEmailError
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

# 408 and 429 are worth retrying; every other 4xx means the request itself is wrong.
_RETRYABLE_4XX = frozenset({408, 429})


class HttpEmailSender:
    """IEmailSender that posts to a transactional email API.

    Request body: {"sender": {name, email}, "to": [{email}], "subject", "htmlContent"},
    authenticated with an "api-key" header. Failures are classified so the
    workflow engine can retry transient ones and fail the run on permanent ones.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        from_address: str,
        from_name: str,
        *,
        timeout_seconds: float = 15.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_url = api_url
        self._api_key = api_key
        self._from_address = from_address
        self._from_name = from_name
        self._timeout = timeout_seconds
        self._shared_http = http_client

    @asynccontextmanager
    async def _http_cm(self) -> AsyncIterator[httpx.AsyncClient]:
        """Yield shared HTTP client or a short-lived one (connection reuse when shared)."""
        if self._shared_http is not None:
            yield self._shared_http
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            yield client

    async def send(self, to_address: str, subject: str, html_body: str) -> None:
        """Send one email. Raises TransientEmailError or PermanentEmailError on failure."""
        payload = {
            "sender": {"name": self._from_name, "email": self._from_address},
            "to": [{"email": to_address}],
            "subject": subject,
            "htmlContent": html_body,
        }
        headers = {"api-key": self._api_key, "accept": "application/json"}
        try:
            async with self._http_cm() as client:
                response = await client.post(self._api_url, json=payload, headers=headers)
        except (httpx.TimeoutException, httpx.TransportError) as e:
            logger.warning("Email API unreachable (to=%s): %s", to_address, e)
            raise TransientEmailError(f"Email API request failed: {e}") from e

        if response.is_success:
            logger.info("Email sent to %s (subject=%r)", to_address, subject[:80])
            return
        status = response.status_code
        detail = response.text[:300]
        if status >= 500 or status in _RETRYABLE_4XX:
            logger.warning(
                "Email API temporary failure %s (to=%s): %s", status, to_address, detail
            )
            raise TransientEmailError(f"Email API returned {status}", status_code=status)
        logger.error("Email API rejected message %s (to=%s): %s", status, to_address, detail)
        raise PermanentEmailError(f"Email API rejected message with {status}", status_code=status)
