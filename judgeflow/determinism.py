"""Canonical hashing helpers.

Hashes are audit fingerprints only: a SHA-256 over canonical JSON, with
no key material and no verification counterpart.
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime, timezone
from typing import Any


def canonical_json(data: Any) -> str:
    """Serialize with sorted keys and no whitespace so equal data hashes equally."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)


def compute_hash(data: Any) -> str:
    """SHA-256 hex digest of the canonical JSON form of ``data``."""
    return hashlib.sha256(canonical_json(data).encode()).hexdigest()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


__all__ = ["canonical_json", "compute_hash", "utcnow"]
