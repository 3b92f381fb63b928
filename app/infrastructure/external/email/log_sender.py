"""Log-only email sender (development and tests)."""

from __future__ import annotations

import logging

from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import utc_now

logger = get_logger(__name__)


class LogOnlyEmailSender:
    """IEmailSender implementation that logs instead of sending email.

    Use when no email API is configured. Production swaps in HttpEmailSender.
    """

    async def send(self, to_address: str, subject: str, html_body: str) -> None:
        """Log the message; no actual email sent."""
        logger.info(
            "Email (log only): would send to %s (subject=%r)",
            to_address,
            (subject or "")[:80],
        )
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Email body at %s (first 500 chars): %s",
                utc_now().isoformat(),
                (html_body or "")[:500],
            )
