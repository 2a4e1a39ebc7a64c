"""Certification ledger tables.

Uniqueness on (category_id, role) and (category_id, judge_id) is what makes
certification write-once; the services translate violations into conflicts.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class CategoryCertification(Base):
    __tablename__ = "category_certification"

    certification_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    category_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("category.category_id", ondelete="CASCADE"), nullable=False, index=True,
    )
    role: Mapped[str] = mapped_column(String(32), nullable=False)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    signature_name: Mapped[str | None] = mapped_column(String)
    signature: Mapped[str | None] = mapped_column(
        String(64), comment="SHA-256 audit fingerprint, not a cryptographic signature",
    )
    ip_address: Mapped[str | None] = mapped_column(String)
    user_agent: Mapped[str | None] = mapped_column(String)
    comments: Mapped[str | None] = mapped_column(String)
    certified_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("category_id", "role", name="uq_category_certification_role"),
    )


class JudgeCertification(Base):
    __tablename__ = "judge_certification"

    judge_certification_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    category_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("category.category_id", ondelete="CASCADE"), nullable=False, index=True,
    )
    judge_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("judge.judge_id", ondelete="CASCADE"), nullable=False,
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    certified_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("category_id", "judge_id", name="uq_judge_certification_judge"),
    )


class CertificationWorkflow(Base):
    """Per-category step counter kept alongside the ledger rows.

    ``current_step`` only ever increases.
    """

    __tablename__ = "certification_workflow"

    workflow_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    category_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("category.category_id", ondelete="CASCADE"), nullable=False, unique=True,
    )
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="PENDING")
    current_step: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    total_steps: Mapped[int] = mapped_column(Integer, nullable=False, default=4)
    judge_certified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    tally_certified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    auditor_certified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    board_certified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


__all__ = ["CategoryCertification", "CertificationWorkflow", "JudgeCertification"]
