"""Score removal: a co-signed wipe of one judge's scores in a category."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncConnection

from judgeflow.certification.ledger import CertificationLedger
from judgeflow.database.dbm import DBM
from judgeflow.database.schema import ScoreRemovalRequest
from judgeflow.roles import Role
from judgeflow.scoring.store import ScoreStore

from .engine import SignatureQuorum
from .models import QuorumRequest, RemovalResult, RequestKind, RequestStatus, SignResult


class ScoreRemovalService:
    """Removal requests over the shared quorum engine.

    Execution deletes every score the judge entered in the category, or
    only those for one contestant when the request names one.
    """

    def __init__(self, dbm: DBM, store: ScoreStore, ledger: CertificationLedger):
        self.store = store
        self.ledger = ledger
        self.quorum = SignatureQuorum(dbm, store, ScoreRemovalRequest, RequestKind.SCORE_REMOVAL)

    async def create_request(
        self,
        judge_id: str,
        category_id: str,
        reason: str,
        requester_id: str,
        requester_role: Role | str,
        contestant_id: str | None = None,
    ) -> QuorumRequest:
        return await self.quorum.create(
            judge_id=judge_id,
            category_id=category_id,
            reason=reason,
            requester_id=requester_id,
            requester_role=requester_role,
            contestant_id=contestant_id,
        )

    async def sign_request(
        self, request_id: str, role: Role | str, signer_id: str, signature_name: str,
    ) -> SignResult:
        return await self.quorum.sign(request_id, role, signer_id, signature_name)

    async def reject_request(
        self, request_id: str, rejecter_id: str, role: Role | str, reason: str,
    ) -> QuorumRequest:
        return await self.quorum.reject(request_id, rejecter_id, role, reason)

    async def get_request(self, request_id: str) -> QuorumRequest:
        return await self.quorum.get(request_id)

    async def list_requests(self, status: RequestStatus | str | None = None) -> list[QuorumRequest]:
        return await self.quorum.list_requests(status)

    async def _delete(self, conn: AsyncConnection, request: QuorumRequest) -> int:
        deleted = await self.store.delete_scores(
            request.category_id, request.judge_id, request.contestant_id, conn=conn,
        )
        # Re-entered scores need a fresh judge certification
        await self.ledger.revoke_judge_certification(request.category_id, request.judge_id, conn=conn)
        return deleted

    async def execute_removal(self, request_id: str) -> RemovalResult:
        """Delete the targeted scores. Safe to retry; a retry deletes nothing."""
        result = await self.quorum.execute(request_id, self._delete)
        return RemovalResult(
            request_id=request_id,
            deleted_count=result.affected_count,
            already_executed=result.already_executed,
        )


__all__ = ["ScoreRemovalService"]
