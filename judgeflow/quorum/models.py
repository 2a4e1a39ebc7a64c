"""Quorum request payloads."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from judgeflow.roles import Role


class RequestStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class RequestKind(str, Enum):
    SCORE_REMOVAL = "score_removal"
    JUDGE_UNCERTIFICATION = "judge_uncertification"

    @property
    def noun(self) -> str:
        return {
            RequestKind.SCORE_REMOVAL: "score removal requests",
            RequestKind.JUDGE_UNCERTIFICATION: "uncertification requests",
        }[self]


class SignatureSlot(BaseModel):
    signature: str | None = None
    signed_at: datetime | None = None
    signed_by: str | None = None

    @property
    def filled(self) -> bool:
        return self.signature is not None


class QuorumRequest(BaseModel):
    """A pending (or historical) removal or uncertification request."""

    request_id: str
    kind: RequestKind
    tenant_id: str
    judge_id: str
    category_id: str
    contestant_id: str | None = None
    reason: str
    requested_by: str
    status: RequestStatus = RequestStatus.PENDING

    auditor: SignatureSlot = Field(default_factory=SignatureSlot)
    tally: SignatureSlot = Field(default_factory=SignatureSlot)
    board: SignatureSlot = Field(default_factory=SignatureSlot)

    rejected_by: str | None = None
    rejected_at: datetime | None = None
    rejection_reason: str | None = None

    executed_at: datetime | None = None
    affected_count: int | None = None
    created_at: datetime | None = None

    def slot(self, role: Role) -> SignatureSlot | None:
        return {
            Role.AUDITOR: self.auditor,
            Role.TALLY_MASTER: self.tally,
            Role.BOARD: self.board,
        }.get(role)

    @property
    def all_signed(self) -> bool:
        return self.auditor.filled and self.tally.filled and self.board.filled

    @property
    def executed(self) -> bool:
        return self.executed_at is not None


class SignResult(BaseModel):
    request: QuorumRequest
    all_signed: bool


class ExecutionResult(BaseModel):
    """Outcome of executing an approved request.

    ``affected_count`` is what this call changed; a retry after the first
    execution reports 0 with ``already_executed`` set.
    """

    request: QuorumRequest
    affected_count: int = 0
    already_executed: bool = False


class RemovalResult(BaseModel):
    request_id: str
    deleted_count: int
    already_executed: bool = False


class UncertificationResult(BaseModel):
    request_id: str
    uncertified_count: int
    already_executed: bool = False


__all__ = [
    "ExecutionResult",
    "QuorumRequest",
    "RemovalResult",
    "RequestKind",
    "RequestStatus",
    "SignResult",
    "SignatureSlot",
    "UncertificationResult",
]
