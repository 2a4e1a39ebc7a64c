"""Composition root.

Builds the service graph once with explicit constructor injection. Callers
(HTTP handlers, the admin CLI, tests) hold the returned ``Services`` and
never look services up globally.
"""

from __future__ import annotations

from dataclasses import dataclass

import bittensor as bt

from judgeflow.certification import CertificationLedger, CertificationWorkflow
from judgeflow.config import Settings, load_settings
from judgeflow.database import DBM
from judgeflow.quorum import JudgeUncertificationService, ScoreRemovalService
from judgeflow.scoring import ScoreStore
from judgeflow.winners import WinnerAggregator


@dataclass
class Services:
    settings: Settings
    dbm: DBM
    store: ScoreStore
    ledger: CertificationLedger
    aggregator: WinnerAggregator
    workflow: CertificationWorkflow
    removals: ScoreRemovalService
    uncertifications: JudgeUncertificationService

    async def close(self) -> None:
        await self.dbm.dispose()


def build_services(settings: Settings | None = None, dbm: DBM | None = None) -> Services:
    settings = settings or load_settings()
    dbm = dbm or DBM(settings.database)

    store = ScoreStore(dbm)
    ledger = CertificationLedger(dbm, store, settings.certification.required_roles)
    aggregator = WinnerAggregator(store, ledger)

    bt.logging.debug({"app": {
        "event": "services_built",
        "database": dbm.engine.url.render_as_string(hide_password=True),
        "required_roles": [r.value for r in ledger.required_roles],
    }})
    return Services(
        settings=settings,
        dbm=dbm,
        store=store,
        ledger=ledger,
        aggregator=aggregator,
        workflow=CertificationWorkflow(ledger, aggregator),
        removals=ScoreRemovalService(dbm, store, ledger),
        uncertifications=JudgeUncertificationService(dbm, store, ledger),
    )


__all__ = ["Services", "build_services"]
