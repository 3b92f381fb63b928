"""Email gateway: senders (log-only, HTTP API), templates, factory."""

from app.infrastructure.external.email.factory import create_email_sender
from app.infrastructure.external.email.http_sender import HttpEmailSender
from app.infrastructure.external.email.log_sender import LogOnlyEmailSender
from app.infrastructure.external.email.templates import (
    TASK_ASSIGNED,
    TASK_OVERDUE,
    EmailTemplateRenderer,
)

__all__ = [
    "EmailTemplateRenderer",
    "HttpEmailSender",
    "LogOnlyEmailSender",
    "TASK_ASSIGNED",
    "TASK_OVERDUE",
    "create_email_sender",
]
