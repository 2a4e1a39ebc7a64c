"""Co-signature quorum requests.

Both request tables share the same three signature slots. A slot is filled
with a compare-and-swap update (``WHERE <slot> IS NULL AND status = 'PENDING'``)
so one role can hold at most one signature per request.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from .base import Base


class _QuorumRequestColumns:
    request_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    @declared_attr
    def judge_id(cls) -> Mapped[str]:
        return mapped_column(String(36), ForeignKey("judge.judge_id", ondelete="CASCADE"), nullable=False)

    @declared_attr
    def category_id(cls) -> Mapped[str]:
        return mapped_column(String(36), ForeignKey("category.category_id", ondelete="CASCADE"), nullable=False)

    reason: Mapped[str] = mapped_column(String, nullable=False)
    requested_by: Mapped[str] = mapped_column(String(36), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="PENDING")

    auditor_signature: Mapped[str | None] = mapped_column(String)
    auditor_signed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    auditor_signed_by: Mapped[str | None] = mapped_column(String(36))
    tally_signature: Mapped[str | None] = mapped_column(String)
    tally_signed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    tally_signed_by: Mapped[str | None] = mapped_column(String(36))
    board_signature: Mapped[str | None] = mapped_column(String)
    board_signed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    board_signed_by: Mapped[str | None] = mapped_column(String(36))

    rejected_by: Mapped[str | None] = mapped_column(String(36))
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    rejection_reason: Mapped[str | None] = mapped_column(String)

    executed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    affected_count: Mapped[int | None] = mapped_column(
        Integer, comment="Rows deleted or uncertified by the first execution",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.current_timestamp(),
    )


class ScoreRemovalRequest(_QuorumRequestColumns, Base):
    __tablename__ = "score_removal_request"

    contestant_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("contestant.contestant_id", ondelete="CASCADE"),
        comment="Optional narrowing to one contestant; NULL wipes the judge's whole category",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED')", name="ck_score_removal_request_status",
        ),
    )


class JudgeUncertificationRequest(_QuorumRequestColumns, Base):
    __tablename__ = "judge_uncertification_request"

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED')", name="ck_judge_uncertification_request_status",
        ),
    )


__all__ = ["JudgeUncertificationRequest", "ScoreRemovalRequest"]
