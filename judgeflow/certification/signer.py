"""Audit fingerprints for winner sign-offs.

The "signature" is a SHA-256 digest over the signer's context. There is no
key and no verification function: it is a tamper-evident artifact for the
audit trail, not proof of identity.
"""

from __future__ import annotations

from datetime import datetime

from judgeflow.determinism import compute_hash, utcnow
from judgeflow.roles import Role


def signature_payload(
    user_id: str,
    category_id: str,
    role: Role,
    timestamp: datetime,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> dict[str, str]:
    """Canonical fields hashed into a winners signature."""
    return {
        "user_id": user_id,
        "category_id": category_id,
        "role": role.value,
        "timestamp": timestamp.isoformat(),
        "ip_address": ip_address or "",
        "user_agent": user_agent or "",
    }


def generate_signature(
    user_id: str,
    category_id: str,
    role: Role,
    ip_address: str | None = None,
    user_agent: str | None = None,
    timestamp: datetime | None = None,
) -> str:
    """Return the hex fingerprint for a sign-off at ``timestamp`` (default now)."""
    ts = timestamp or utcnow()
    return compute_hash(signature_payload(user_id, category_id, role, ts, ip_address, user_agent))


__all__ = ["generate_signature", "signature_payload"]
