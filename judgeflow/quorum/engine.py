"""Three-signer co-signature quorum.

Shared by score-removal and judge-uncertification requests. Each request
row carries one slot per signer role (Auditor, Tally Master, Board)::

    PENDING --sign--> PENDING --(all three slots filled)--> APPROVED --execute--> APPROVED + executed_at
    PENDING --reject--> REJECTED

Every transition is a conditional UPDATE inside one transaction, so the
store decides races: a slot is filled only while it is NULL and the request
is PENDING, the APPROVED flip re-checks all three slots after the write,
and execution claims the request by setting ``executed_at`` only while it
is NULL.
"""

from __future__ import annotations

import uuid
from typing import Any, Awaitable, Callable

import bittensor as bt
from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncConnection

from judgeflow.database.dbm import DBM, fetch_one
from judgeflow.database.schema import JudgeUncertificationRequest, ScoreRemovalRequest
from judgeflow.determinism import utcnow
from judgeflow.errors import BadRequestError, NotFoundError
from judgeflow.roles import Action, Role, is_authorized_for, require
from judgeflow.scoring.store import ScoreStore

from .models import (
    ExecutionResult,
    QuorumRequest,
    RequestKind,
    RequestStatus,
    SignatureSlot,
    SignResult,
)

# Column prefix of each signer role's slot
_SLOT_PREFIX: dict[Role, str] = {
    Role.AUDITOR: "auditor",
    Role.TALLY_MASTER: "tally",
    Role.BOARD: "board",
}

RequestTable = type[ScoreRemovalRequest] | type[JudgeUncertificationRequest]

# Applies an approved request to the score store inside the execution transaction
Effect = Callable[[AsyncConnection, QuorumRequest], Awaitable[int]]


def _slot(row: dict[str, Any], prefix: str) -> SignatureSlot:
    return SignatureSlot(
        signature=row[f"{prefix}_signature"],
        signed_at=row[f"{prefix}_signed_at"],
        signed_by=row[f"{prefix}_signed_by"],
    )


def _to_request(row: dict[str, Any], kind: RequestKind) -> QuorumRequest:
    return QuorumRequest(
        request_id=row["request_id"],
        kind=kind,
        tenant_id=row["tenant_id"],
        judge_id=row["judge_id"],
        category_id=row["category_id"],
        contestant_id=row.get("contestant_id"),
        reason=row["reason"],
        requested_by=row["requested_by"],
        status=RequestStatus(row["status"]),
        auditor=_slot(row, "auditor"),
        tally=_slot(row, "tally"),
        board=_slot(row, "board"),
        rejected_by=row["rejected_by"],
        rejected_at=row["rejected_at"],
        rejection_reason=row["rejection_reason"],
        executed_at=row["executed_at"],
        affected_count=row["affected_count"],
        created_at=row["created_at"],
    )


class SignatureQuorum:
    """Create, sign, reject and execute requests of one kind."""

    def __init__(self, dbm: DBM, store: ScoreStore, table: RequestTable, kind: RequestKind):
        self.dbm = dbm
        self.store = store
        self.table = table
        self.kind = kind

    def _log(self, event: str, **fields: Any) -> None:
        bt.logging.info({"signature_quorum": {"event": event, "kind": self.kind.value, **fields}})

    # -- Reads --

    async def get(self, request_id: str, *, conn: AsyncConnection | None = None) -> QuorumRequest:
        stmt = select(self.table.__table__).where(self.table.request_id == request_id)
        if conn is not None:
            row = await fetch_one(conn, stmt)
        else:
            rows = await self.dbm.read(stmt, mappings=True)
            row = rows[0] if rows else None
        if row is None:
            raise NotFoundError("Request", request_id)
        return _to_request(row, self.kind)

    async def list_requests(self, status: RequestStatus | str | None = None) -> list[QuorumRequest]:
        """All requests, newest first, optionally narrowed to one status.

        Raises:
            BadRequestError: status is not a known request status.
        """
        stmt = select(self.table.__table__)
        if status is not None:
            try:
                parsed = RequestStatus(status)
            except ValueError as e:
                raise BadRequestError(
                    f"Unknown request status: {status}",
                    allowed=[s.value for s in RequestStatus],
                ) from e
            stmt = stmt.where(self.table.status == parsed.value)
        stmt = stmt.order_by(self.table.created_at.desc(), self.table.request_id)
        return [_to_request(r, self.kind) for r in await self.dbm.read(stmt, mappings=True)]

    # -- Transitions --

    async def create(
        self,
        *,
        judge_id: str,
        category_id: str,
        reason: str,
        requester_id: str,
        requester_role: Role | str,
        contestant_id: str | None = None,
    ) -> QuorumRequest:
        """Open a PENDING request against a judge's scores in a category.

        Raises:
            BadRequestError: judge, category or reason missing.
            ForbiddenError: requester is neither Board nor Admin.
            NotFoundError: judge, category or contestant does not exist in the category's tenant.
        """
        reason = (reason or "").strip()
        if not judge_id or not category_id or not reason:
            raise BadRequestError("Judge ID, category ID, and reason are required")
        require(
            Action.CREATE_QUORUM_REQUEST,
            requester_role,
            f"Only Board and Admin can initiate {self.kind.noun}",
        )

        category = await self.store.get_category(category_id)
        judge = await self.store.get_judge(judge_id)
        if judge.tenant_id != category.tenant_id:
            raise NotFoundError("Judge", judge_id)
        if contestant_id is not None:
            contestant = await self.store.get_contestant(contestant_id)
            if contestant.tenant_id != category.tenant_id:
                raise NotFoundError("Contestant", contestant_id)

        request_id = str(uuid.uuid4())
        values: dict[str, Any] = {
            "request_id": request_id,
            "tenant_id": category.tenant_id,
            "judge_id": judge_id,
            "category_id": category_id,
            "reason": reason,
            "requested_by": requester_id,
            "status": RequestStatus.PENDING.value,
            "created_at": utcnow(),
        }
        if contestant_id is not None:
            values["contestant_id"] = contestant_id
        await self.dbm.write(insert(self.table).values(**values))

        self._log("request_created", request_id=request_id, judge_id=judge_id, category_id=category_id)
        return await self.get(request_id)

    async def sign(
        self,
        request_id: str,
        role: Role | str,
        signer_id: str,
        signature_name: str,
    ) -> SignResult:
        """Fill the signer role's slot; approve once all three slots are filled.

        One slot per role: a second user of the same role cannot sign again.

        Raises:
            BadRequestError: no signature name, request already approved or
                rejected, or the role's slot is taken or does not exist.
            NotFoundError: request does not exist.
        """
        signature_name = (signature_name or "").strip()
        if not signature_name:
            raise BadRequestError("Signature name is required")

        prefix = None
        if is_authorized_for(Action.SIGN_QUORUM_REQUEST, role):
            prefix = _SLOT_PREFIX[Role.parse(role)]

        t = self.table
        async with self.dbm.transaction() as conn:
            filled = 0
            if prefix is not None:
                result = await conn.execute(
                    update(t)
                    .where(
                        t.request_id == request_id,
                        t.status == RequestStatus.PENDING.value,
                        getattr(t, f"{prefix}_signature").is_(None),
                    )
                    .values(**{
                        f"{prefix}_signature": signature_name,
                        f"{prefix}_signed_at": utcnow(),
                        f"{prefix}_signed_by": signer_id,
                    })
                )
                filled = result.rowcount

            if filled == 0:
                current = await self.get(request_id, conn=conn)
                if current.status is RequestStatus.APPROVED:
                    raise BadRequestError("Request has already been approved", request_id=request_id)
                if current.status is RequestStatus.REJECTED:
                    raise BadRequestError("Request has been rejected", request_id=request_id)
                raise BadRequestError(
                    "You have already signed this request or your signature is not required",
                    request_id=request_id,
                    role=str(getattr(role, "value", role)),
                )

            # Re-check the merged row: whichever signer completes the set flips it
            await conn.execute(
                update(t)
                .where(
                    t.request_id == request_id,
                    t.status == RequestStatus.PENDING.value,
                    t.auditor_signature.is_not(None),
                    t.tally_signature.is_not(None),
                    t.board_signature.is_not(None),
                )
                .values(status=RequestStatus.APPROVED.value)
            )
            request = await self.get(request_id, conn=conn)

        self._log("request_signed", request_id=request_id, role=prefix, status=request.status.value)
        if request.status is RequestStatus.APPROVED:
            self._log("request_approved", request_id=request_id)
        return SignResult(request=request, all_signed=request.status is RequestStatus.APPROVED)

    async def reject(
        self,
        request_id: str,
        rejecter_id: str,
        role: Role | str,
        reason: str,
    ) -> QuorumRequest:
        """Move a PENDING request to the terminal REJECTED state.

        Raises:
            BadRequestError: reason missing, or request is no longer pending.
            ForbiddenError: role may not reject.
            NotFoundError: request does not exist.
        """
        require(Action.REJECT_QUORUM_REQUEST, role)
        reason = (reason or "").strip()
        if not reason:
            raise BadRequestError("Rejection reason is required")

        t = self.table
        async with self.dbm.transaction() as conn:
            result = await conn.execute(
                update(t)
                .where(t.request_id == request_id, t.status == RequestStatus.PENDING.value)
                .values(
                    status=RequestStatus.REJECTED.value,
                    rejected_by=rejecter_id,
                    rejected_at=utcnow(),
                    rejection_reason=reason,
                )
            )
            request = await self.get(request_id, conn=conn)
            if result.rowcount == 0:
                raise BadRequestError(
                    f"Cannot reject {request.status.value.lower()} request", request_id=request_id,
                )

        self._log("request_rejected", request_id=request_id, rejected_by=rejecter_id)
        return request

    async def execute(self, request_id: str, effect: Effect) -> ExecutionResult:
        """Apply an APPROVED request exactly once.

        The claim on ``executed_at``, the effect and the recorded count share a
        transaction, so a failed effect leaves the request unexecuted and a
        retry runs it again. Retrying after success is a no-op reporting 0.

        Raises:
            BadRequestError: request is not APPROVED.
            NotFoundError: request does not exist.
        """
        t = self.table
        async with self.dbm.transaction() as conn:
            claimed = await conn.execute(
                update(t)
                .where(
                    t.request_id == request_id,
                    t.status == RequestStatus.APPROVED.value,
                    t.executed_at.is_(None),
                )
                .values(executed_at=utcnow())
            )
            request = await self.get(request_id, conn=conn)

            if claimed.rowcount == 0:
                if request.status is not RequestStatus.APPROVED:
                    raise BadRequestError(
                        "Request must be approved before execution",
                        request_id=request_id,
                        status=request.status.value,
                    )
                self._log("request_already_executed", request_id=request_id)
                return ExecutionResult(request=request, affected_count=0, already_executed=True)

            affected = await effect(conn, request)
            await conn.execute(
                update(t).where(t.request_id == request_id).values(affected_count=affected)
            )
            request = request.model_copy(update={"affected_count": affected})

        self._log("request_executed", request_id=request_id, affected_count=affected)
        return ExecutionResult(request=request, affected_count=affected)


__all__ = ["Effect", "SignatureQuorum"]
