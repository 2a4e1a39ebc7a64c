"""Shared fixtures: a file-backed SQLite store and the full service graph."""

import os
import uuid

import pytest
import pytest_asyncio
from sqlalchemy import insert

from judgeflow.app import build_services
from judgeflow.config.core import DatabaseSettings, Settings
from judgeflow.database.schema import (
    Category,
    Contest,
    Contestant,
    Criterion,
    Event,
    Judge,
)

os.environ.setdefault("JUDGEFLOW_TEST_MODE", "true")


def _id() -> str:
    return str(uuid.uuid4())


class Seed:
    """Inserts catalog rows directly; services under test only read them."""

    def __init__(self, dbm, tenant_id: str = "tenant-1"):
        self.dbm = dbm
        self.tenant_id = tenant_id

    async def event(self, name: str = "Miss State 2026") -> str:
        event_id = _id()
        await self.dbm.write(insert(Event).values(event_id=event_id, tenant_id=self.tenant_id, name=name))
        return event_id

    async def contest(self, event_id: str | None = None, name: str = "Pageant") -> str:
        event_id = event_id or await self.event()
        contest_id = _id()
        await self.dbm.write(insert(Contest).values(
            contest_id=contest_id, event_id=event_id, tenant_id=self.tenant_id, name=name,
        ))
        return contest_id

    async def category(
        self,
        contest_id: str | None = None,
        name: str = "Evening Gown",
        max_scores: tuple[int, ...] = (50, 50),
        tenant_id: str | None = None,
    ) -> tuple[str, list[str]]:
        """Create a category with one criterion per max score. Returns (category_id, criterion_ids)."""
        contest_id = contest_id or await self.contest()
        category_id = _id()
        await self.dbm.write(insert(Category).values(
            category_id=category_id,
            contest_id=contest_id,
            tenant_id=tenant_id or self.tenant_id,
            name=name,
            tally_totals_certified=False,
        ))
        criterion_ids = []
        for i, max_score in enumerate(max_scores):
            criterion_id = _id()
            await self.dbm.write(insert(Criterion).values(
                criterion_id=criterion_id,
                category_id=category_id,
                name=f"criterion-{i}",
                max_score=max_score,
            ))
            criterion_ids.append(criterion_id)
        return category_id, criterion_ids

    async def judge(self, name: str = "Judge A", tenant_id: str | None = None) -> str:
        judge_id = _id()
        await self.dbm.write(insert(Judge).values(
            judge_id=judge_id, tenant_id=tenant_id or self.tenant_id, name=name,
        ))
        return judge_id

    async def contestant(self, name: str = "Contestant", number: int | None = None) -> str:
        contestant_id = _id()
        await self.dbm.write(insert(Contestant).values(
            contestant_id=contestant_id, tenant_id=self.tenant_id, name=name, contestant_number=number,
        ))
        return contestant_id


@pytest.fixture
def settings(tmp_path):
    return Settings(database=DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'judgeflow.db'}"))


@pytest_asyncio.fixture
async def services(settings):
    svc = build_services(settings)
    await svc.dbm.create_schema()
    yield svc
    await svc.close()


@pytest.fixture
def seed(services):
    return Seed(services.dbm)


@pytest_asyncio.fixture
async def scored_category(services, seed):
    """Evening Gown: two 50-point criteria, contestant #007 scored 45 and 48 by Judge A."""
    category_id, (c1, c2) = await seed.category(name="Evening Gown", max_scores=(50, 50))
    judge_id = await seed.judge("Judge A")
    contestant_id = await seed.contestant("Contestant 007", number=7)
    await services.store.record_score(
        judge_id=judge_id, contestant_id=contestant_id, category_id=category_id, criterion_id=c1, value=45,
    )
    await services.store.record_score(
        judge_id=judge_id, contestant_id=contestant_id, category_id=category_id, criterion_id=c2, value=48,
    )
    return {
        "category_id": category_id,
        "criterion_ids": [c1, c2],
        "judge_id": judge_id,
        "contestant_id": contestant_id,
    }
