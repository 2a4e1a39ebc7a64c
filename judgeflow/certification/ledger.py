"""Certification ledger: write-once sign-offs per (category, role).

The unique constraint on ``category_certification(category_id, role)`` is
the idempotency boundary. The pre-insert lookup only exists to produce a
friendlier conflict message; a concurrent duplicate still fails at the
store and is reported the same way.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Iterable

import bittensor as bt
from sqlalchemy import and_, case, delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncConnection

from judgeflow.database.dbm import DBM, fetch_one
from judgeflow.database.schema import CategoryCertification, CertificationWorkflow, JudgeCertification
from judgeflow.determinism import utcnow
from judgeflow.errors import BadRequestError, ConflictError, NotFoundError
from judgeflow.roles import REQUIRED_CERTIFICATION_ROLES, Action, Role, require
from judgeflow.scoring.store import ScoreStore

from .models import (
    CertificationProgress,
    CertificationRecord,
    JudgeCertificationRecord,
    RoleCertificationStatus,
    WorkflowRecord,
    WorkflowState,
    WorkflowStatus,
)

# Workflow step reached when a role certifies
_ROLE_STEP: dict[Role, int] = {
    Role.TALLY_MASTER: 2,
    Role.AUDITOR: 3,
    Role.BOARD: 4,
}

_ROLE_FLAG: dict[Role, str] = {
    Role.TALLY_MASTER: "tally_certified",
    Role.AUDITOR: "auditor_certified",
    Role.BOARD: "board_certified",
}

_CERT_COLUMNS = (
    CategoryCertification.certification_id,
    CategoryCertification.category_id,
    CategoryCertification.role,
    CategoryCertification.user_id,
    CategoryCertification.signature_name,
    CategoryCertification.signature,
    CategoryCertification.ip_address,
    CategoryCertification.user_agent,
    CategoryCertification.comments,
    CategoryCertification.certified_at,
)


def _to_certification(row: dict[str, Any]) -> CertificationRecord:
    return CertificationRecord(
        certification_id=row["certification_id"],
        category_id=row["category_id"],
        role=Role(row["role"]),
        user_id=row["user_id"],
        signature_name=row["signature_name"],
        signature=row["signature"],
        ip_address=row["ip_address"],
        user_agent=row["user_agent"],
        comments=row["comments"],
        certified_at=row["certified_at"],
    )


def _to_workflow(row: dict[str, Any]) -> WorkflowRecord:
    return WorkflowRecord(
        workflow_id=row["workflow_id"],
        category_id=row["category_id"],
        status=WorkflowStatus(row["status"]),
        current_step=int(row["current_step"]),
        total_steps=int(row["total_steps"]),
        judge_certified=bool(row["judge_certified"]),
        tally_certified=bool(row["tally_certified"]),
        auditor_certified=bool(row["auditor_certified"]),
        board_certified=bool(row["board_certified"]),
    )


def derive_state(roles_present: Iterable[Role]) -> WorkflowState:
    """Highest conceptual state reached, judged from which roles have signed."""
    present = set(roles_present)
    if Role.BOARD in present:
        return WorkflowState.BOARD_CERTIFIED
    if Role.AUDITOR in present:
        return WorkflowState.AUDITOR_CERTIFIED
    if Role.TALLY_MASTER in present:
        return WorkflowState.TALLY_CERTIFIED
    if Role.JUDGE in present:
        return WorkflowState.JUDGES_CERTIFIED
    return WorkflowState.SCORING


class CertificationLedger:
    """Per-role and per-judge certification facts for categories."""

    def __init__(
        self,
        dbm: DBM,
        store: ScoreStore,
        required_roles: Iterable[Role] = REQUIRED_CERTIFICATION_ROLES,
    ):
        self.dbm = dbm
        self.store = store
        self.required_roles: tuple[Role, ...] = tuple(required_roles)

    # -- Reads --

    async def get_certification(
        self,
        category_id: str,
        role: Role,
        *,
        conn: AsyncConnection | None = None,
    ) -> CertificationRecord | None:
        stmt = select(*_CERT_COLUMNS).where(
            CategoryCertification.category_id == category_id,
            CategoryCertification.role == role.value,
        )
        row = (
            await fetch_one(conn, stmt) if conn is not None
            else next(iter(await self.dbm.read(stmt, mappings=True)), None)
        )
        return _to_certification(row) if row else None

    async def list_certifications(self, category_id: str) -> list[CertificationRecord]:
        rows = await self.dbm.read(
            select(*_CERT_COLUMNS)
            .where(CategoryCertification.category_id == category_id)
            .order_by(CategoryCertification.certified_at, CategoryCertification.certification_id),
            mappings=True,
        )
        return [_to_certification(r) for r in rows]

    async def list_judge_certifications(self, category_id: str) -> list[JudgeCertificationRecord]:
        rows = await self.dbm.read(
            select(
                JudgeCertification.judge_certification_id,
                JudgeCertification.category_id,
                JudgeCertification.judge_id,
                JudgeCertification.user_id,
                JudgeCertification.certified_at,
            )
            .where(JudgeCertification.category_id == category_id)
            .order_by(JudgeCertification.certified_at),
            mappings=True,
        )
        return [JudgeCertificationRecord(**r) for r in rows]

    async def has_board_certified(self, category_id: str) -> bool:
        return await self.get_certification(category_id, Role.BOARD) is not None

    async def get_workflow(self, category_id: str) -> WorkflowRecord | None:
        rows = await self.dbm.read(
            select(CertificationWorkflow.__table__).where(
                CertificationWorkflow.category_id == category_id,
            ),
            mappings=True,
        )
        return _to_workflow(rows[0]) if rows else None

    # -- Writes --

    async def open_workflow(self, category_id: str) -> WorkflowRecord:
        """Create the step-tracking record for a category, or return the existing one."""
        await self.store.get_category(category_id)
        existing = await self.get_workflow(category_id)
        if existing is not None:
            return existing
        try:
            await self.dbm.write(insert(CertificationWorkflow).values(
                workflow_id=str(uuid.uuid4()),
                category_id=category_id,
                status=WorkflowStatus.PENDING.value,
                current_step=1,
                total_steps=4,
                judge_certified=False,
                tally_certified=False,
                auditor_certified=False,
                board_certified=False,
                updated_at=utcnow(),
            ))
        except IntegrityError:
            # Lost a race with another opener; theirs is equivalent
            pass
        workflow = await self.get_workflow(category_id)
        if workflow is None:
            raise NotFoundError("Certification workflow", category_id)
        return workflow

    async def certify(
        self,
        category_id: str,
        user_id: str,
        role: Role | str,
        comments: str | None = None,
        *,
        tally_totals: bool = False,
    ) -> CertificationRecord:
        """Record a role's certification of a category. Write-once per role.

        Raises:
            NotFoundError: category does not exist.
            ForbiddenError: role may not certify categories.
            BadRequestError: category has no scores to certify.
            ConflictError: this role already certified the category.
        """
        await self.store.get_category(category_id)
        parsed = require(Action.CERTIFY_CATEGORY, role)

        if await self.store.count_certifiable_scores(category_id) == 0:
            raise BadRequestError(
                "Cannot certify category with no scores", category_id=category_id,
            )

        return await self._insert_certification(
            category_id=category_id,
            user_id=user_id,
            role=parsed,
            comments=comments,
            tally_totals=tally_totals,
        )

    async def record_signature(
        self,
        category_id: str,
        user_id: str,
        role: Role,
        signature: str,
        *,
        signature_name: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        certified_at: datetime | None = None,
    ) -> CertificationRecord:
        """Write a winners sign-off row carrying its audit fingerprint."""
        await self.store.get_category(category_id)
        return await self._insert_certification(
            category_id=category_id,
            user_id=user_id,
            role=role,
            signature=signature,
            signature_name=signature_name,
            ip_address=ip_address,
            user_agent=user_agent,
            certified_at=certified_at,
        )

    async def _insert_certification(
        self,
        *,
        category_id: str,
        user_id: str,
        role: Role,
        comments: str | None = None,
        signature: str | None = None,
        signature_name: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        certified_at: datetime | None = None,
        tally_totals: bool = False,
    ) -> CertificationRecord:
        existing = await self.get_certification(category_id, role)
        if existing is not None:
            raise self._conflict(existing)
        await self.open_workflow(category_id)

        record = CertificationRecord(
            certification_id=str(uuid.uuid4()),
            category_id=category_id,
            role=role,
            user_id=user_id,
            signature_name=signature_name,
            signature=signature,
            ip_address=ip_address,
            user_agent=user_agent,
            comments=comments,
            certified_at=certified_at or utcnow(),
        )
        try:
            async with self.dbm.transaction() as conn:
                await conn.execute(insert(CategoryCertification).values(
                    **record.model_dump(exclude={"role"}), role=role.value,
                ))
                await self._advance_workflow(conn, category_id, role)
                if tally_totals:
                    await self.store.set_tally_totals_certified(category_id, conn=conn)
        except IntegrityError as e:
            winner = await self.get_certification(category_id, role)
            if winner is None:
                raise
            raise self._conflict(winner) from e

        bt.logging.info({"certification_ledger": {
            "event": "category_certified",
            "category_id": category_id,
            "role": role.value,
            "user_id": user_id,
            "tally_totals": tally_totals,
        }})
        return record

    @staticmethod
    def _conflict(existing: CertificationRecord) -> ConflictError:
        return ConflictError(
            f"Category already certified by {existing.role.value} "
            f"(user {existing.user_id} at {existing.certified_at.isoformat()})",
            category_id=existing.category_id,
            role=existing.role.value,
            certified_by=existing.user_id,
            certified_at=existing.certified_at.isoformat(),
        )

    async def _advance_workflow(self, conn: AsyncConnection, category_id: str, role: Role) -> None:
        """Move the step counter forward for ``role``; never backwards."""
        step = _ROLE_STEP.get(role)
        if step is None:
            return

        wf = CertificationWorkflow
        await conn.execute(
            update(wf)
            .where(wf.category_id == category_id)
            .values(**{
                _ROLE_FLAG[role]: True,
                "current_step": case((wf.current_step < step, step), else_=wf.current_step),
                "status": WorkflowStatus.IN_PROGRESS.value,
                "updated_at": utcnow(),
            })
        )
        await conn.execute(
            update(wf)
            .where(
                wf.category_id == category_id,
                and_(
                    wf.tally_certified.is_(True),
                    wf.auditor_certified.is_(True),
                    wf.board_certified.is_(True),
                ),
            )
            .values(status=WorkflowStatus.CERTIFIED.value)
        )

    async def certify_judge(
        self,
        category_id: str,
        judge_id: str,
        user_id: str,
        role: Role | str = Role.JUDGE,
    ) -> JudgeCertificationRecord:
        """A judge attests their scores for the category are final.

        Marks that judge's scores certified in the same transaction.
        """
        require(Action.CERTIFY_JUDGE, role)
        await self.store.get_category(category_id)
        await self.store.get_judge(judge_id)
        await self.open_workflow(category_id)

        record = JudgeCertificationRecord(
            judge_certification_id=str(uuid.uuid4()),
            category_id=category_id,
            judge_id=judge_id,
            user_id=user_id,
            certified_at=utcnow(),
        )
        try:
            async with self.dbm.transaction() as conn:
                await conn.execute(insert(JudgeCertification).values(**record.model_dump()))
                await self.store.certify_judge_scores(category_id, judge_id, user_id, conn=conn)
                await conn.execute(
                    update(CertificationWorkflow)
                    .where(CertificationWorkflow.category_id == category_id)
                    .values(judge_certified=True, updated_at=utcnow())
                )
        except IntegrityError as e:
            raise ConflictError(
                "Judge has already certified this category",
                category_id=category_id,
                judge_id=judge_id,
            ) from e

        bt.logging.info({"certification_ledger": {
            "event": "judge_certified", "category_id": category_id, "judge_id": judge_id,
        }})
        return record

    async def revoke_judge_certification(
        self, category_id: str, judge_id: str, *, conn: AsyncConnection,
    ) -> bool:
        """Drop a judge's certification so they can certify again.

        Runs inside the caller's transaction. The workflow's judge flag is
        cleared once no judge certification is left for the category.
        """
        result = await conn.execute(
            delete(JudgeCertification).where(
                JudgeCertification.category_id == category_id,
                JudgeCertification.judge_id == judge_id,
            )
        )
        remaining = await fetch_one(
            conn,
            select(func.count().label("n"))
            .select_from(JudgeCertification)
            .where(JudgeCertification.category_id == category_id),
        )
        if not remaining or remaining["n"] == 0:
            await conn.execute(
                update(CertificationWorkflow)
                .where(CertificationWorkflow.category_id == category_id)
                .values(judge_certified=False, updated_at=utcnow())
            )

        revoked = result.rowcount > 0
        bt.logging.info({"certification_ledger": {
            "event": "judge_certification_revoked",
            "category_id": category_id,
            "judge_id": judge_id,
            "revoked": revoked,
        }})
        return revoked

    # -- Progress --

    async def roles_present(self, category_id: str) -> set[Role]:
        """Roles that count as certified, JUDGE meaning any judge certification exists."""
        present = {c.role for c in await self.list_certifications(category_id)}
        present.discard(Role.JUDGE)
        if await self.list_judge_certifications(category_id):
            present.add(Role.JUDGE)
        return present

    async def get_certification_progress(self, category_id: str) -> CertificationProgress:
        category = await self.store.get_category(category_id)
        present = await self.roles_present(category_id)

        certified = [r for r in self.required_roles if r in present]
        remaining = [r for r in self.required_roles if r not in present]
        total = len(self.required_roles)

        return CertificationProgress(
            category_id=category_id,
            roles_certified=certified,
            roles_remaining=remaining,
            percent=round(100 * len(certified) / total) if total else 100,
            fully_certified=not remaining,
            tally_totals_certified=category.tally_totals_certified,
            state=derive_state(present),
        )

    async def get_role_certification_status(
        self, category_id: str, role: Role | str,
    ) -> RoleCertificationStatus:
        parsed = Role.parse(role)
        await self.store.get_category(category_id)

        if parsed is Role.JUDGE:
            judges = await self.list_judge_certifications(category_id)
            if not judges:
                return RoleCertificationStatus(category_id=category_id, role=parsed)
            first = judges[0]
            return RoleCertificationStatus(
                category_id=category_id, role=parsed, certified=True,
                certified_by=first.user_id, certified_at=first.certified_at,
            )

        cert = await self.get_certification(category_id, parsed)
        if cert is None:
            return RoleCertificationStatus(category_id=category_id, role=parsed)
        return RoleCertificationStatus(
            category_id=category_id, role=parsed, certified=True,
            certified_by=cert.user_id, certified_at=cert.certified_at,
        )


__all__ = ["CertificationLedger", "derive_state"]
