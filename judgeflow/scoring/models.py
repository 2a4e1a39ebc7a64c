"""Typed rows for the catalog and score store."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class EventRow(BaseModel):
    event_id: str
    tenant_id: str
    name: str


class ContestRow(BaseModel):
    contest_id: str
    event_id: str
    tenant_id: str
    name: str


class CategoryRow(BaseModel):
    category_id: str
    contest_id: str
    tenant_id: str
    name: str
    score_cap: int | None = None
    tally_totals_certified: bool = False


class CriterionRow(BaseModel):
    criterion_id: str
    category_id: str
    name: str
    max_score: int = Field(gt=0)


class JudgeRow(BaseModel):
    judge_id: str
    tenant_id: str
    name: str


class ContestantRow(BaseModel):
    contestant_id: str
    tenant_id: str
    name: str
    contestant_number: int | None = None


class ScoreRow(BaseModel):
    score_id: str
    judge_id: str
    contestant_id: str
    category_id: str
    criterion_id: str
    value: float | None = None
    comment: str | None = None
    is_certified: bool = False
    certified_by: str | None = None
    certified_at: datetime | None = None


class DeductionRow(BaseModel):
    deduction_id: str
    category_id: str
    contestant_id: str
    deduction: float = Field(gt=0)
    reason: str | None = None
    created_by: str | None = None


__all__ = [
    "CategoryRow",
    "ContestRow",
    "ContestantRow",
    "CriterionRow",
    "DeductionRow",
    "EventRow",
    "JudgeRow",
    "ScoreRow",
]
