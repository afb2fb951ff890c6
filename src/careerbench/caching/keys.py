"""Content-addressed cache keys."""

from __future__ import annotations

import hashlib
import json
from typing import Any


def canonical_json(payload: Any) -> str:
    """Serialize ``payload`` so that equal values always produce equal text."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def compute_input_hash(payload: Any) -> str:
    """SHA-256 hex digest of the canonical serialization of a request payload."""
    return hashlib.sha256(canonical_json(payload).encode("utf-8")).hexdigest()
