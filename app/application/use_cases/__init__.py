"""Application use cases: one entry point per request-driven operation."""

from app.application.use_cases.tasks import TaskService

__all__ = ["TaskService"]
