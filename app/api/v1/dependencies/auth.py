"""Caller identity dependency.

Authentication is done upstream by the identity provider; the gateway
forwards the verified user id in a header (settings.user_id_header).
"""

from __future__ import annotations

from fastapi import Request

from app.core.config import get_settings
from app.domain.exceptions import AuthenticationException


def get_current_user_id(request: Request) -> str:
    """Return the caller's user id or raise AuthenticationException (401)."""
    header = get_settings().user_id_header
    user_id = (request.headers.get(header) or "").strip()
    if not user_id:
        raise AuthenticationException(f"Missing {header} header")
    return user_id
