"""Winner aggregation: category, contest and event standings."""

from .aggregation import WinnerAggregator, rank_descending, tabulate_category, total_possible_score
from .models import (
    CategoryStandings,
    ContestContestantTotal,
    ContestStandings,
    ContestantStanding,
    EventStandings,
    SignatureSummary,
)

__all__ = [
    "CategoryStandings",
    "ContestContestantTotal",
    "ContestStandings",
    "ContestantStanding",
    "EventStandings",
    "SignatureSummary",
    "WinnerAggregator",
    "rank_descending",
    "tabulate_category",
    "total_possible_score",
]
