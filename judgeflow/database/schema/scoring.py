"""Raw judging facts: per-criterion scores and overall deductions."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Score(Base):
    """One judge's value for one contestant on one criterion."""

    __tablename__ = "score"

    score_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    judge_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("judge.judge_id", ondelete="CASCADE"), nullable=False, index=True,
    )
    contestant_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("contestant.contestant_id", ondelete="CASCADE"), nullable=False,
    )
    category_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("category.category_id", ondelete="CASCADE"), nullable=False, index=True,
    )
    criterion_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("criterion.criterion_id", ondelete="CASCADE"), nullable=False,
    )
    value: Mapped[float | None] = mapped_column(Float)
    comment: Mapped[str | None] = mapped_column(String)
    is_certified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    certified_by: Mapped[str | None] = mapped_column(String(36))
    certified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.current_timestamp(),
    )

    __table_args__ = (
        UniqueConstraint("judge_id", "contestant_id", "criterion_id", name="uq_score_judge_contestant_criterion"),
        CheckConstraint("value IS NULL OR value >= 0", name="ck_score_value_non_negative"),
    )


class OverallDeduction(Base):
    """Penalty subtracted from a contestant's category total at tabulation time."""

    __tablename__ = "overall_deduction"

    deduction_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    category_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("category.category_id", ondelete="CASCADE"), nullable=False, index=True,
    )
    contestant_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("contestant.contestant_id", ondelete="CASCADE"), nullable=False,
    )
    deduction: Mapped[float] = mapped_column(Float, nullable=False)
    reason: Mapped[str | None] = mapped_column(String)
    created_by: Mapped[str | None] = mapped_column(String(36))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.current_timestamp(),
    )

    __table_args__ = (
        CheckConstraint("deduction > 0", name="ck_overall_deduction_positive"),
    )


__all__ = ["OverallDeduction", "Score"]
