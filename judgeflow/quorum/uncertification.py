"""Judge uncertification: a co-signed reversal of a judge's score certification."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncConnection

from judgeflow.certification.ledger import CertificationLedger
from judgeflow.database.dbm import DBM
from judgeflow.database.schema import JudgeUncertificationRequest
from judgeflow.roles import Role
from judgeflow.scoring.store import ScoreStore

from .engine import SignatureQuorum
from .models import QuorumRequest, RequestKind, RequestStatus, SignResult, UncertificationResult


class JudgeUncertificationService:
    """Uncertification requests over the shared quorum engine.

    Execution flips the judge's certified scores in the category back to
    uncertified and drops their judge certification so they can certify
    again. Score values are untouched.
    """

    def __init__(self, dbm: DBM, store: ScoreStore, ledger: CertificationLedger):
        self.store = store
        self.ledger = ledger
        self.quorum = SignatureQuorum(
            dbm, store, JudgeUncertificationRequest, RequestKind.JUDGE_UNCERTIFICATION,
        )

    async def create_request(
        self,
        judge_id: str,
        category_id: str,
        reason: str,
        requester_id: str,
        requester_role: Role | str,
    ) -> QuorumRequest:
        return await self.quorum.create(
            judge_id=judge_id,
            category_id=category_id,
            reason=reason,
            requester_id=requester_id,
            requester_role=requester_role,
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

    async def _clear(self, conn: AsyncConnection, request: QuorumRequest) -> int:
        cleared = await self.store.clear_certification(request.category_id, request.judge_id, conn=conn)
        await self.ledger.revoke_judge_certification(request.category_id, request.judge_id, conn=conn)
        return cleared

    async def execute_uncertification(self, request_id: str) -> UncertificationResult:
        """Clear ``is_certified`` on the judge's scores. Safe to retry."""
        result = await self.quorum.execute(request_id, self._clear)
        return UncertificationResult(
            request_id=request_id,
            uncertified_count=result.affected_count,
            already_executed=result.already_executed,
        )


__all__ = ["JudgeUncertificationService"]
