"""ID and key generators (CUID primary keys, stable digests for run keys)."""

import hashlib
import json
from typing import Any

from cuid2 import cuid_wrapper

cuid_generator = cuid_wrapper()


def generate_cuid() -> str:
    """Generate a collision-resistant unique identifier (CUID2)."""
    result = cuid_generator()
    if not isinstance(result, str):
        raise TypeError(
            f"Expected str from cuid_generator, got {type(result).__name__}"
        )
    return result


def stable_digest(payload: Any) -> str:
    """Return a SHA-256 hex digest of the canonical JSON form of payload.

    Keys are sorted and whitespace is fixed so that equal payloads always
    produce the same digest, regardless of dict insertion order.
    """
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
