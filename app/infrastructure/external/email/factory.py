"""Email sender factory: picks the IEmailSender implementation from settings."""

from __future__ import annotations

import httpx

from app.application.interfaces.services import IEmailSender
from app.core.config import Settings
from app.infrastructure.external.email.http_sender import HttpEmailSender
from app.infrastructure.external.email.log_sender import LogOnlyEmailSender
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


def create_email_sender(
    settings: Settings,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> IEmailSender:
    """Return HttpEmailSender for email_backend "http", LogOnlyEmailSender otherwise.

    Args:
        settings: Loaded settings (validated: http backend has url and key).
        http_client: Optional shared httpx.AsyncClient for connection reuse.
    """
    if settings.email_backend == "http":
        assert settings.email_api_url and settings.email_api_key
        logger.info("Email backend: http (%s)", settings.email_api_url)
        return HttpEmailSender(
            api_url=settings.email_api_url,
            api_key=settings.email_api_key.get_secret_value(),
            from_address=settings.email_from_address,
            from_name=settings.email_from_name,
            timeout_seconds=settings.email_timeout_seconds,
            http_client=http_client,
        )
    logger.info("Email backend: log only")
    return LogOnlyEmailSender()
