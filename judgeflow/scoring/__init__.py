"""Raw score storage and catalog lookups."""

from .models import (
    CategoryRow,
    ContestantRow,
    ContestRow,
    CriterionRow,
    DeductionRow,
    EventRow,
    JudgeRow,
    ScoreRow,
)
from .store import ScoreStore

__all__ = [
    "CategoryRow",
    "ContestRow",
    "ContestantRow",
    "CriterionRow",
    "DeductionRow",
    "EventRow",
    "JudgeRow",
    "ScoreRow",
    "ScoreStore",
]
