"""Standings payloads for categories, contests and events."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from judgeflow.roles import Role
from judgeflow.scoring.models import (
    CategoryRow,
    ContestantRow,
    ContestRow,
    EventRow,
    ScoreRow,
)


class ContestantStanding(BaseModel):
    """A contestant's tabulated result in one category.

    ``total_score`` is ``max(0, raw_total - deduction)``.
    """

    contestant_id: str
    contestant: ContestantRow | None = None
    raw_total: float = 0.0
    deduction: float = 0.0
    total_score: float = 0.0
    total_possible_score: int | None = None
    judges_scored: list[str] = Field(default_factory=list)
    scores: list[ScoreRow] = Field(default_factory=list)


class SignatureSummary(BaseModel):
    user_id: str
    role: Role
    certified_at: datetime


class CategoryStandings(BaseModel):
    category: CategoryRow
    contestants: list[ContestantStanding] = Field(default_factory=list)
    total_possible_score: int | None = Field(
        default=None, description="None when the category has no criteria (no cap defined)",
    )
    all_signed: bool = False
    board_signed: bool = False
    can_show_winners: bool = False
    signatures: list[SignatureSummary] = Field(default_factory=list)


class ContestContestantTotal(BaseModel):
    contestant_id: str
    contestant: ContestantRow | None = None
    total_score: float = 0.0
    total_possible_score: int = 0
    categories_participated: int = 0


class ContestStandings(BaseModel):
    contest: ContestRow
    categories: list[CategoryStandings] | None = None
    contestants: list[ContestContestantTotal] = Field(default_factory=list)
    skipped_categories: list[str] = Field(default_factory=list)


class EventStandings(BaseModel):
    event: EventRow
    contests: list[ContestStandings] = Field(default_factory=list)
    skipped_contests: list[str] = Field(default_factory=list)


__all__ = [
    "CategoryStandings",
    "ContestContestantTotal",
    "ContestStandings",
    "ContestantStanding",
    "EventStandings",
    "SignatureSummary",
]
