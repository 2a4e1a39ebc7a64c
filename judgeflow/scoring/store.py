"""Score store: raw per-criterion scores, deductions and catalog lookups.

Every bulk mutation accepts an optional open connection so callers can
compose it with other writes in one transaction.
"""

from __future__ import annotations

import uuid
from typing import Any

import bittensor as bt
from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncConnection
from sqlalchemy.sql import Executable

from judgeflow.database.dbm import DBM, fetch_all
from judgeflow.database.schema import (
    Category,
    Contest,
    Contestant,
    Criterion,
    Event,
    Judge,
    OverallDeduction,
    Score,
)
from judgeflow.determinism import utcnow
from judgeflow.errors import BadRequestError, ConflictError, NotFoundError

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

# ---------------------------------------------------------------------------
# Row mapping
# ---------------------------------------------------------------------------


def _to_category(row: dict[str, Any]) -> CategoryRow:
    return CategoryRow(
        category_id=row["category_id"],
        contest_id=row["contest_id"],
        tenant_id=row["tenant_id"],
        name=row["name"],
        score_cap=row["score_cap"],
        tally_totals_certified=bool(row["tally_totals_certified"]),
    )


def _to_score(row: dict[str, Any]) -> ScoreRow:
    return ScoreRow(
        score_id=row["score_id"],
        judge_id=row["judge_id"],
        contestant_id=row["contestant_id"],
        category_id=row["category_id"],
        criterion_id=row["criterion_id"],
        value=None if row["value"] is None else float(row["value"]),
        comment=row["comment"],
        is_certified=bool(row["is_certified"]),
        certified_by=row["certified_by"],
        certified_at=row["certified_at"],
    )


def _to_deduction(row: dict[str, Any]) -> DeductionRow:
    return DeductionRow(
        deduction_id=row["deduction_id"],
        category_id=row["category_id"],
        contestant_id=row["contestant_id"],
        deduction=float(row["deduction"]),
        reason=row["reason"],
        created_by=row["created_by"],
    )


_SCORE_COLUMNS = (
    Score.score_id,
    Score.judge_id,
    Score.contestant_id,
    Score.category_id,
    Score.criterion_id,
    Score.value,
    Score.comment,
    Score.is_certified,
    Score.certified_by,
    Score.certified_at,
)


class ScoreStore:
    """Reads and bulk mutations over the score tables."""

    def __init__(self, dbm: DBM):
        self.dbm = dbm

    async def _execute(self, stmt: Executable, conn: AsyncConnection | None) -> int:
        if conn is None:
            return await self.dbm.write(stmt)
        result = await conn.execute(stmt)
        return result.rowcount

    async def _read(self, stmt: Executable, conn: AsyncConnection | None) -> list[dict[str, Any]]:
        if conn is None:
            return await self.dbm.read(stmt, mappings=True)
        return await fetch_all(conn, stmt)

    # -- Catalog lookups --

    async def get_category(
        self, category_id: str, *, conn: AsyncConnection | None = None,
    ) -> CategoryRow:
        rows = await self._read(
            select(
                Category.category_id,
                Category.contest_id,
                Category.tenant_id,
                Category.name,
                Category.score_cap,
                Category.tally_totals_certified,
            ).where(Category.category_id == category_id),
            conn,
        )
        if not rows:
            raise NotFoundError("Category", category_id)
        return _to_category(rows[0])

    async def get_contest(self, contest_id: str) -> ContestRow:
        rows = await self._read(
            select(Contest.contest_id, Contest.event_id, Contest.tenant_id, Contest.name)
            .where(Contest.contest_id == contest_id),
            None,
        )
        if not rows:
            raise NotFoundError("Contest", contest_id)
        return ContestRow(**rows[0])

    async def get_event(self, event_id: str) -> EventRow:
        rows = await self._read(
            select(Event.event_id, Event.tenant_id, Event.name).where(Event.event_id == event_id),
            None,
        )
        if not rows:
            raise NotFoundError("Event", event_id)
        return EventRow(**rows[0])

    async def get_judge(self, judge_id: str) -> JudgeRow:
        rows = await self._read(
            select(Judge.judge_id, Judge.tenant_id, Judge.name).where(Judge.judge_id == judge_id),
            None,
        )
        if not rows:
            raise NotFoundError("Judge", judge_id)
        return JudgeRow(**rows[0])

    async def get_contestant(self, contestant_id: str) -> ContestantRow:
        rows = await self._read(
            select(
                Contestant.contestant_id,
                Contestant.tenant_id,
                Contestant.name,
                Contestant.contestant_number,
            ).where(Contestant.contestant_id == contestant_id),
            None,
        )
        if not rows:
            raise NotFoundError("Contestant", contestant_id)
        return ContestantRow(**rows[0])

    async def list_contestants(self, contestant_ids: list[str]) -> dict[str, ContestantRow]:
        if not contestant_ids:
            return {}
        rows = await self._read(
            select(
                Contestant.contestant_id,
                Contestant.tenant_id,
                Contestant.name,
                Contestant.contestant_number,
            ).where(Contestant.contestant_id.in_(contestant_ids)),
            None,
        )
        return {r["contestant_id"]: ContestantRow(**r) for r in rows}

    async def list_criteria(self, category_id: str) -> list[CriterionRow]:
        rows = await self._read(
            select(Criterion.criterion_id, Criterion.category_id, Criterion.name, Criterion.max_score)
            .where(Criterion.category_id == category_id)
            .order_by(Criterion.criterion_id),
            None,
        )
        return [CriterionRow(**r) for r in rows]

    async def list_contest_category_ids(self, contest_id: str) -> list[str]:
        rows = await self._read(
            select(Category.category_id)
            .where(Category.contest_id == contest_id)
            .order_by(Category.created_at, Category.category_id),
            None,
        )
        return [r["category_id"] for r in rows]

    async def list_event_contest_ids(self, event_id: str) -> list[str]:
        rows = await self._read(
            select(Contest.contest_id).where(Contest.event_id == event_id).order_by(Contest.contest_id),
            None,
        )
        return [r["contest_id"] for r in rows]

    # -- Scores --

    async def record_score(
        self,
        *,
        judge_id: str,
        contestant_id: str,
        category_id: str,
        criterion_id: str,
        value: float,
        comment: str | None = None,
    ) -> ScoreRow:
        """Insert a judge's score. A second score for the same tuple is a conflict.

        Corrections go through a removal request followed by a fresh score,
        never through an in-place edit.
        """
        await self.get_category(category_id)
        await self.get_judge(judge_id)
        await self.get_contestant(contestant_id)
        criteria = {c.criterion_id: c for c in await self.list_criteria(category_id)}
        criterion = criteria.get(criterion_id)
        if criterion is None:
            raise NotFoundError("Criterion", criterion_id)
        if value < 0 or value > criterion.max_score:
            raise BadRequestError(
                f"Score must be between 0 and {criterion.max_score}",
                criterion_id=criterion_id,
                value=value,
            )

        score_id = str(uuid.uuid4())
        try:
            await self.dbm.write(insert(Score).values(
                score_id=score_id,
                judge_id=judge_id,
                contestant_id=contestant_id,
                category_id=category_id,
                criterion_id=criterion_id,
                value=value,
                comment=comment,
                is_certified=False,
                created_at=utcnow(),
            ))
        except IntegrityError as e:
            raise ConflictError(
                "Score already recorded for this judge, contestant and criterion",
                judge_id=judge_id,
                contestant_id=contestant_id,
                criterion_id=criterion_id,
            ) from e

        return ScoreRow(
            score_id=score_id,
            judge_id=judge_id,
            contestant_id=contestant_id,
            category_id=category_id,
            criterion_id=criterion_id,
            value=value,
            comment=comment,
        )

    async def list_scores(self, category_id: str, *, scored_only: bool = True) -> list[ScoreRow]:
        """Scores for a category in insertion order (created_at, then id)."""
        stmt = select(*_SCORE_COLUMNS).where(Score.category_id == category_id)
        if scored_only:
            stmt = stmt.where(Score.value.is_not(None))
        stmt = stmt.order_by(Score.created_at, Score.score_id)
        return [_to_score(r) for r in await self._read(stmt, None)]

    async def count_certifiable_scores(
        self, category_id: str, *, conn: AsyncConnection | None = None,
    ) -> int:
        rows = await self._read(
            select(func.count().label("n"))
            .select_from(Score)
            .where(Score.category_id == category_id, Score.value.is_not(None)),
            conn,
        )
        return int(rows[0]["n"]) if rows else 0

    async def certify_judge_scores(
        self,
        category_id: str,
        judge_id: str,
        certified_by: str,
        *,
        conn: AsyncConnection | None = None,
    ) -> int:
        return await self._execute(
            update(Score)
            .where(Score.category_id == category_id, Score.judge_id == judge_id)
            .values(is_certified=True, certified_by=certified_by, certified_at=utcnow()),
            conn,
        )

    async def delete_scores(
        self,
        category_id: str,
        judge_id: str,
        contestant_id: str | None = None,
        *,
        conn: AsyncConnection | None = None,
    ) -> int:
        """Delete every score of ``judge_id`` in the category (optionally one contestant)."""
        stmt = delete(Score).where(Score.category_id == category_id, Score.judge_id == judge_id)
        if contestant_id is not None:
            stmt = stmt.where(Score.contestant_id == contestant_id)
        deleted = await self._execute(stmt, conn)
        bt.logging.info({"score_store": {
            "event": "scores_deleted", "category_id": category_id,
            "judge_id": judge_id, "contestant_id": contestant_id, "count": deleted,
        }})
        return deleted

    async def clear_certification(
        self,
        category_id: str,
        judge_id: str,
        *,
        conn: AsyncConnection | None = None,
    ) -> int:
        """Flip certified scores of a judge back to uncertified."""
        cleared = await self._execute(
            update(Score)
            .where(
                Score.category_id == category_id,
                Score.judge_id == judge_id,
                Score.is_certified.is_(True),
            )
            .values(is_certified=False, certified_by=None, certified_at=None),
            conn,
        )
        bt.logging.info({"score_store": {
            "event": "certification_cleared", "category_id": category_id,
            "judge_id": judge_id, "count": cleared,
        }})
        return cleared

    async def set_tally_totals_certified(
        self, category_id: str, *, conn: AsyncConnection | None = None,
    ) -> int:
        return await self._execute(
            update(Category)
            .where(Category.category_id == category_id)
            .values(tally_totals_certified=True),
            conn,
        )

    # -- Deductions --

    async def record_deduction(
        self,
        *,
        category_id: str,
        contestant_id: str,
        amount: float,
        reason: str | None = None,
        created_by: str | None = None,
    ) -> DeductionRow:
        if amount <= 0:
            raise BadRequestError("Deduction amount must be greater than 0", amount=amount)
        await self.get_category(category_id)
        await self.get_contestant(contestant_id)

        deduction_id = str(uuid.uuid4())
        await self.dbm.write(insert(OverallDeduction).values(
            deduction_id=deduction_id,
            category_id=category_id,
            contestant_id=contestant_id,
            deduction=amount,
            reason=reason,
            created_by=created_by,
            created_at=utcnow(),
        ))
        return DeductionRow(
            deduction_id=deduction_id,
            category_id=category_id,
            contestant_id=contestant_id,
            deduction=amount,
            reason=reason,
            created_by=created_by,
        )

    async def list_deductions(self, category_id: str) -> list[DeductionRow]:
        rows = await self._read(
            select(
                OverallDeduction.deduction_id,
                OverallDeduction.category_id,
                OverallDeduction.contestant_id,
                OverallDeduction.deduction,
                OverallDeduction.reason,
                OverallDeduction.created_by,
            )
            .where(OverallDeduction.category_id == category_id)
            .order_by(OverallDeduction.created_at, OverallDeduction.deduction_id),
            None,
        )
        return [_to_deduction(r) for r in rows]


__all__ = ["ScoreStore"]
