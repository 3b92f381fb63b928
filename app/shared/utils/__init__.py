"""Shared utilities: datetime and generators."""

from app.shared.utils.datetime import (
    ensure_utc,
    parse_datetime_utc,
    to_iso,
    utc_now,
)
from app.shared.utils.generators import generate_cuid, stable_digest

__all__ = [
    "generate_cuid",
    "stable_digest",
    "utc_now",
    "ensure_utc",
    "parse_datetime_utc",
    "to_iso",
]
