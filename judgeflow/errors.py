"""Error taxonomy shared by every judgeflow component.

Errors are raised at the point of detection and propagate unchanged to
the caller. Each carries a kind, a human message and the identity of the
resource involved so an outer layer can render a structured response.
"""

from __future__ import annotations

from typing import Any


class JudgeflowError(Exception):
    """Base class for all domain errors."""

    kind = "ERROR"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "message": self.message, "details": dict(self.details)}


class NotFoundError(JudgeflowError):
    """Referenced entity is absent."""

    kind = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: str | None = None):
        message = f"{resource} not found" if resource_id is None else f"{resource} {resource_id} not found"
        super().__init__(message, resource=resource, resource_id=resource_id)


class BadRequestError(JudgeflowError):
    """A precondition for the operation does not hold."""

    kind = "BAD_REQUEST"


class ForbiddenError(JudgeflowError):
    """The caller's role may not perform this action."""

    kind = "FORBIDDEN"


class ConflictError(JudgeflowError):
    """Uniqueness or idempotency boundary was hit."""

    kind = "CONFLICT"


__all__ = [
    "BadRequestError",
    "ConflictError",
    "ForbiddenError",
    "JudgeflowError",
    "NotFoundError",
]
