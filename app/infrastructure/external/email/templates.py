"""Notification email templates: template key -> subject/body (Jinja, HTML autoescaped)."""

from __future__ import annotations

from typing import Any

from jinja2 import Environment, Template, select_autoescape

TASK_ASSIGNED = "task_assigned"
TASK_OVERDUE = "task_overdue"

_LAYOUT_OPEN = (
    '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;'
    ' color: #1f2937;">'
)
_LAYOUT_CLOSE = "</div>"

# Context: assignee_name, task_title, description, due_date, project_name,
# priority, task_url
_DEFAULT_TEMPLATES: dict[str, tuple[str, str]] = {
    TASK_ASSIGNED: (
        "New Task Assignment in {{ project_name }}",
        _LAYOUT_OPEN
        + "<h2>Hi {{ assignee_name }}, &#128075;</h2>"
        "<p>You've been assigned a new task:</p>"
        '<p style="font-size: 18px; font-weight: bold; color: #007bff; margin: 8px 0;">'
        "{{ task_title }}</p>"
        '<div style="border: 1px solid #ddd; padding: 12px 16px; border-radius: 6px;'
        ' margin-bottom: 30px;">'
        "<p><strong>Description:</strong> {{ description }}</p>"
        "<p><strong>Priority:</strong> {{ priority }}</p>"
        "<p><strong>Due Date:</strong> {{ due_date }}</p>"
        "</div>"
        '<a href="{{ task_url }}" style="background-color: #007bff; padding: 12px 24px;'
        ' border-radius: 5px; color: #fff; font-weight: 600; font-size: 16px;'
        ' text-decoration: none;">View Task</a>'
        '<p style="margin-top: 20px; font-size: 14px; color: #6c757d;">'
        "Please make sure to review and complete it before the due date.</p>"
        + _LAYOUT_CLOSE,
    ),
    TASK_OVERDUE: (
        "Reminder: \"{{ task_title }}\" is overdue",
        _LAYOUT_OPEN
        + "<h2>Hi {{ assignee_name }},</h2>"
        '<p style="font-size: 16px;">Your task in <strong>{{ project_name }}</strong>'
        " passed its due date and is not completed yet:</p>"
        '<p style="font-size: 18px; font-weight: bold; color: #dc3545; margin: 8px 0;">'
        "{{ task_title }}</p>"
        '<div style="border: 1px solid #f5c2c7; background-color: #fff5f5; padding: 12px 16px;'
        ' border-radius: 6px; margin-bottom: 30px;">'
        "<p><strong>Description:</strong> {{ description }}</p>"
        '<p><strong>Due Date:</strong> <span style="color: #dc3545;">{{ due_date }}</span></p>'
        "</div>"
        '<a href="{{ task_url }}" style="background-color: #dc3545; padding: 12px 24px;'
        ' border-radius: 5px; color: #fff; font-weight: 600; font-size: 16px;'
        ' text-decoration: none;">Complete Task Now</a>'
        '<p style="margin-top: 20px; font-size: 14px; color: #6c757d;">'
        "Please complete it as soon as possible or update its status.</p>"
        + _LAYOUT_CLOSE,
    ),
}


class EmailTemplateRenderer:
    """Renders subject and HTML body for notification emails from a template key."""

    def __init__(
        self,
        templates: dict[str, tuple[str, str]] | None = None,
    ) -> None:
        """Initialize with optional template dict; falls back to _DEFAULT_TEMPLATES."""
        self._templates = templates or _DEFAULT_TEMPLATES
        # Subjects are plain text; only bodies are HTML-escaped.
        self._subject_env = Environment(autoescape=False)
        self._body_env = Environment(autoescape=select_autoescape(default_for_string=True))
        self._compiled: dict[str, tuple[Template, Template]] = {}
        for key, (sub_str, body_str) in self._templates.items():
            self._compiled[key] = (
                self._subject_env.from_string(sub_str),
                self._body_env.from_string(body_str),
            )

    def render(self, template_key: str, context: dict[str, Any]) -> tuple[str, str]:
        """Render subject and body for the template key. Raises KeyError if key unknown."""
        if template_key not in self._compiled:
            raise KeyError(f"Unknown email template: {template_key}")
        subject_tpl, body_tpl = self._compiled[template_key]
        subject = " ".join(subject_tpl.render(**context).split())
        return subject, body_tpl.render(**context)
