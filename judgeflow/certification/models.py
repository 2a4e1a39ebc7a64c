"""Typed records for the certification ledger and workflow."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from judgeflow.roles import Role


class WorkflowState(str, Enum):
    """Conceptual per-category state, derived from ledger rows (never stored)."""

    SCORING = "SCORING"
    JUDGES_CERTIFIED = "JUDGES_CERTIFIED"
    TALLY_CERTIFIED = "TALLY_CERTIFIED"
    AUDITOR_CERTIFIED = "AUDITOR_CERTIFIED"
    BOARD_CERTIFIED = "BOARD_CERTIFIED"


class WorkflowStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    CERTIFIED = "CERTIFIED"


class CertificationRecord(BaseModel):
    """One role's sign-off on a category."""

    certification_id: str
    category_id: str
    role: Role
    user_id: str
    signature_name: str | None = None
    signature: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    comments: str | None = None
    certified_at: datetime


class JudgeCertificationRecord(BaseModel):
    judge_certification_id: str
    category_id: str
    judge_id: str
    user_id: str
    certified_at: datetime


class WorkflowRecord(BaseModel):
    workflow_id: str
    category_id: str
    status: WorkflowStatus = WorkflowStatus.PENDING
    current_step: int = Field(default=1, ge=1)
    total_steps: int = 4
    judge_certified: bool = False
    tally_certified: bool = False
    auditor_certified: bool = False
    board_certified: bool = False


class CertificationProgress(BaseModel):
    """Four-role progress for a category.

    ``fully_certified`` needs every required role. ``tally_totals_certified``
    mirrors the category's own flag, which only the Tally Master sets.
    """

    category_id: str
    roles_certified: list[Role] = Field(default_factory=list)
    roles_remaining: list[Role] = Field(default_factory=list)
    percent: int = 0
    fully_certified: bool = False
    tally_totals_certified: bool = False
    state: WorkflowState = WorkflowState.SCORING


class RoleCertificationStatus(BaseModel):
    category_id: str
    role: Role
    certified: bool = False
    certified_by: str | None = None
    certified_at: datetime | None = None


class SignatureStatus(BaseModel):
    category_id: str
    user_id: str
    signed: bool = False
    role: Role | None = None
    signature: str | None = None
    certified_at: datetime | None = None


class SignWinnersResult(BaseModel):
    category_id: str
    certification_id: str
    signature: str


__all__ = [
    "CertificationProgress",
    "CertificationRecord",
    "JudgeCertificationRecord",
    "RoleCertificationStatus",
    "SignWinnersResult",
    "SignatureStatus",
    "WorkflowRecord",
    "WorkflowState",
    "WorkflowStatus",
]
