"""Certification workflow orchestrator.

The entry point HTTP handlers drive. It composes the ledger with the winner
aggregator and owns the visibility boundary: the aggregator always computes
full standings, and this class redacts them for callers who may not see
winners yet.

Per-category progression (derived from ledger rows, never stored)::

    SCORING -> JUDGES_CERTIFIED -> TALLY_CERTIFIED -> AUDITOR_CERTIFIED -> BOARD_CERTIFIED
"""

from __future__ import annotations

import bittensor as bt

from judgeflow.determinism import utcnow
from judgeflow.errors import ConflictError
from judgeflow.roles import Action, Role, require
from judgeflow.winners.aggregation import WinnerAggregator
from judgeflow.winners.models import CategoryStandings

from .ledger import CertificationLedger
from .models import (
    CertificationProgress,
    JudgeCertificationRecord,
    RoleCertificationStatus,
    SignatureStatus,
    SignWinnersResult,
    WorkflowState,
)
from .signer import generate_signature


class CertificationWorkflow:
    """Role-gated certification and sign-off operations for categories."""

    def __init__(self, ledger: CertificationLedger, aggregator: WinnerAggregator):
        self.ledger = ledger
        self.aggregator = aggregator

    async def certify_scores(
        self,
        category_id: str,
        user_id: str,
        role: Role | str,
        comments: str | None = None,
    ) -> CertificationProgress:
        """Certify a category for ``role`` and return the progress after the write.

        Progress is re-read after the insert so pollers never see a stale view
        of their own certification.
        """
        await self.ledger.certify(category_id, user_id, role, comments)
        return await self.ledger.get_certification_progress(category_id)

    async def certify_totals(
        self,
        category_id: str,
        user_id: str,
        role: Role | str,
        comments: str | None = None,
    ) -> CertificationProgress:
        """Tally Master sign-off on totals; also sets the category's own totals flag.

        An Admin acting here fills the Tally Master's ledger row.
        """
        require(Action.CERTIFY_TOTALS, role, "Only the Tally Master or Admin can certify totals")
        await self.ledger.certify(category_id, user_id, Role.TALLY_MASTER, comments, tally_totals=True)
        return await self.ledger.get_certification_progress(category_id)

    async def certify_judge(
        self,
        category_id: str,
        judge_id: str,
        user_id: str,
        role: Role | str = Role.JUDGE,
    ) -> JudgeCertificationRecord:
        return await self.ledger.certify_judge(category_id, judge_id, user_id, role)

    async def sign_winners(
        self,
        category_id: str,
        user_id: str,
        role: Role | str,
        ip_address: str | None = None,
        user_agent: str | None = None,
        signature_name: str | None = None,
    ) -> SignWinnersResult:
        """Leave an audit fingerprint on the category's winners.

        Raises:
            NotFoundError: category does not exist.
            ConflictError: this user already signed in this role, or the role slot is taken.
        """
        parsed = require(Action.SIGN_WINNERS, role)
        existing = await self.ledger.get_certification(category_id, parsed)
        if existing is not None and existing.user_id == user_id:
            raise ConflictError(
                "You have already signed the winners for this category",
                category_id=category_id,
                user_id=user_id,
                role=parsed.value,
                certified_at=existing.certified_at.isoformat(),
            )

        signed_at = utcnow()
        signature = generate_signature(
            user_id, category_id, parsed, ip_address, user_agent, timestamp=signed_at,
        )
        record = await self.ledger.record_signature(
            category_id,
            user_id,
            parsed,
            signature,
            signature_name=signature_name,
            ip_address=ip_address,
            user_agent=user_agent,
            certified_at=signed_at,
        )
        bt.logging.info({"certification_workflow": {
            "event": "winners_signed",
            "category_id": category_id,
            "role": parsed.value,
            "certification_id": record.certification_id,
        }})
        return SignWinnersResult(
            category_id=category_id,
            certification_id=record.certification_id,
            signature=signature,
        )

    async def get_certification_progress(self, category_id: str) -> CertificationProgress:
        return await self.ledger.get_certification_progress(category_id)

    async def get_role_certification_status(
        self, category_id: str, role: Role | str,
    ) -> RoleCertificationStatus:
        return await self.ledger.get_role_certification_status(category_id, role)

    async def get_signature_status(self, category_id: str, user_id: str) -> SignatureStatus:
        await self.ledger.store.get_category(category_id)
        for cert in await self.ledger.list_certifications(category_id):
            if cert.user_id == user_id and cert.signature:
                return SignatureStatus(
                    category_id=category_id,
                    user_id=user_id,
                    signed=True,
                    role=cert.role,
                    signature=cert.signature,
                    certified_at=cert.certified_at,
                )
        return SignatureStatus(category_id=category_id, user_id=user_id)

    async def get_workflow_state(self, category_id: str) -> WorkflowState:
        progress = await self.ledger.get_certification_progress(category_id)
        return progress.state

    async def get_visible_standings(
        self, category_id: str, caller_role: Role | str,
    ) -> CategoryStandings:
        """Standings as a caller may see them.

        Same payload shape for everyone; contestants are withheld until the
        Board has certified unless the caller is privileged.
        """
        standings = await self.aggregator.compute_category_standings(category_id, caller_role)
        if standings.can_show_winners:
            return standings
        return standings.model_copy(update={"contestants": []})


__all__ = ["CertificationWorkflow"]
