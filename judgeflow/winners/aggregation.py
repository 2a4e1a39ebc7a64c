"""Winner aggregation: deterministic standings from raw scores.

Standings are recomputed on every call and never cached. The tabulation
itself is a pure function of (scores, deductions, criteria); the engine
only gathers inputs and fans out across categories and contests.

Steps for a category:
1. total possible = sum of criterion max scores (None when no criteria)
2. group non-null scores by contestant, summing values, tracking judges
3. subtract each contestant's overall deductions, floored at 0
4. stable sort by adjusted total, descending (ties keep grouping order)
5. visibility: Board certified, or caller is privileged
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Sequence

import bittensor as bt
import numpy as np

from judgeflow.roles import Action, Role, is_authorized_for
from judgeflow.scoring.models import CriterionRow, DeductionRow, ScoreRow
from judgeflow.scoring.store import ScoreStore

from .models import (
    CategoryStandings,
    ContestContestantTotal,
    ContestStandings,
    ContestantStanding,
    EventStandings,
    SignatureSummary,
)

if TYPE_CHECKING:
    from judgeflow.certification.ledger import CertificationLedger


def total_possible_score(criteria: Sequence[CriterionRow]) -> int | None:
    """Sum of criterion maxima, or None when the category defines no cap."""
    total = sum(c.max_score for c in criteria)
    return total if total > 0 else None


def rank_descending(totals: Sequence[float]) -> list[int]:
    """Indices of ``totals`` from highest to lowest.

    Stable: equal totals keep their input order. There is deliberately no
    tie-break rule.
    """
    if len(totals) == 0:
        return []
    arr = np.asarray(totals, dtype=np.float64)
    return [int(i) for i in np.argsort(-arr, kind="stable")]


def tabulate_category(
    scores: Sequence[ScoreRow],
    deductions: Sequence[DeductionRow],
    possible: int | None,
) -> list[ContestantStanding]:
    """Group, deduct and rank. Pure; same inputs always give the same output."""
    grouped: dict[str, list[ScoreRow]] = {}
    for score in scores:
        if score.value is None:
            continue
        grouped.setdefault(score.contestant_id, []).append(score)

    if not grouped:
        return []

    deduction_by_contestant: dict[str, float] = {}
    for d in deductions:
        deduction_by_contestant[d.contestant_id] = deduction_by_contestant.get(d.contestant_id, 0.0) + d.deduction

    contestant_ids = list(grouped.keys())
    raw = np.array(
        [sum(float(s.value) for s in grouped[cid]) for cid in contestant_ids],  # type: ignore[arg-type]
        dtype=np.float64,
    )
    deducted = np.array([deduction_by_contestant.get(cid, 0.0) for cid in contestant_ids], dtype=np.float64)
    adjusted = np.maximum(raw - deducted, 0.0)

    standings: list[ContestantStanding] = []
    for i, cid in enumerate(contestant_ids):
        judges: list[str] = []
        for s in grouped[cid]:
            if s.judge_id not in judges:
                judges.append(s.judge_id)
        standings.append(ContestantStanding(
            contestant_id=cid,
            raw_total=float(raw[i]),
            deduction=float(deducted[i]),
            total_score=float(adjusted[i]),
            total_possible_score=possible,
            judges_scored=judges,
            scores=list(grouped[cid]),
        ))

    order = rank_descending([s.total_score for s in standings])
    return [standings[i] for i in order]


def _is_privileged(role: Role | str) -> bool:
    return is_authorized_for(Action.VIEW_WINNERS, role)


class WinnerAggregator:
    """Computes category, contest and event standings on demand."""

    def __init__(self, store: ScoreStore, ledger: CertificationLedger):
        self.store = store
        self.ledger = ledger

    async def compute_category_standings(
        self, category_id: str, caller_role: Role | str,
    ) -> CategoryStandings:
        """Full standings for a category. Never redacts; callers check ``can_show_winners``.

        Raises:
            NotFoundError: category does not exist.
        """
        category = await self.store.get_category(category_id)
        criteria, scores, deductions, certifications, judge_certs = await asyncio.gather(
            self.store.list_criteria(category_id),
            self.store.list_scores(category_id, scored_only=True),
            self.store.list_deductions(category_id),
            self.ledger.list_certifications(category_id),
            self.ledger.list_judge_certifications(category_id),
        )

        possible = total_possible_score(criteria)
        standings = tabulate_category(scores, deductions, possible)

        people = await self.store.list_contestants([s.contestant_id for s in standings])
        for s in standings:
            s.contestant = people.get(s.contestant_id)

        board_signed = any(c.role is Role.BOARD for c in certifications)
        return CategoryStandings(
            category=category,
            contestants=standings,
            total_possible_score=possible,
            all_signed=len(judge_certs) > 0,
            board_signed=board_signed,
            can_show_winners=board_signed or _is_privileged(caller_role),
            signatures=[
                SignatureSummary(user_id=c.user_id, role=c.role, certified_at=c.certified_at)
                for c in certifications
            ],
        )

    async def compute_contest_standings(
        self,
        contest_id: str,
        caller_role: Role | str,
        include_breakdown: bool = True,
    ) -> ContestStandings:
        """Sum category standings per contestant across a contest.

        A category that fails to compute is logged and skipped; it never
        hides the other categories' results.
        """
        contest = await self.store.get_contest(contest_id)
        category_ids = await self.store.list_contest_category_ids(contest_id)

        results = await asyncio.gather(
            *(self.compute_category_standings(cid, caller_role) for cid in category_ids),
            return_exceptions=True,
        )

        categories: list[CategoryStandings] = []
        skipped: list[str] = []
        for cid, result in zip(category_ids, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                bt.logging.warning({"winner_aggregation": {
                    "event": "category_skipped",
                    "contest_id": contest_id,
                    "category_id": cid,
                    "error": str(result),
                }})
                skipped.append(cid)
                continue
            categories.append(result)

        privileged = _is_privileged(caller_role)
        totals: dict[str, ContestContestantTotal] = {}
        for cat in categories:
            if not cat.can_show_winners and not privileged:
                continue
            for standing in cat.contestants:
                entry = totals.get(standing.contestant_id)
                if entry is None:
                    entry = ContestContestantTotal(
                        contestant_id=standing.contestant_id,
                        contestant=standing.contestant,
                    )
                    totals[standing.contestant_id] = entry
                entry.total_score += standing.total_score
                entry.total_possible_score += standing.total_possible_score or 0
                entry.categories_participated += 1

        overall = list(totals.values())
        order = rank_descending([t.total_score for t in overall])

        return ContestStandings(
            contest=contest,
            categories=categories if include_breakdown else None,
            contestants=[overall[i] for i in order],
            skipped_categories=skipped,
        )

    async def compute_event_standings(
        self,
        event_id: str,
        caller_role: Role | str = Role.ADMIN,
    ) -> EventStandings:
        """Contest standings for every contest in an event, tolerating per-contest failure."""
        event = await self.store.get_event(event_id)
        contest_ids = await self.store.list_event_contest_ids(event_id)

        results = await asyncio.gather(
            *(self.compute_contest_standings(cid, caller_role, True) for cid in contest_ids),
            return_exceptions=True,
        )

        contests: list[ContestStandings] = []
        skipped: list[str] = []
        for cid, result in zip(contest_ids, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                bt.logging.warning({"winner_aggregation": {
                    "event": "contest_skipped",
                    "event_id": event_id,
                    "contest_id": cid,
                    "error": str(result),
                }})
                skipped.append(cid)
                continue
            contests.append(result)

        return EventStandings(event=event, contests=contests, skipped_contests=skipped)


__all__ = [
    "WinnerAggregator",
    "rank_descending",
    "tabulate_category",
    "total_possible_score",
]
