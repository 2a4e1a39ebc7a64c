"""Tests for the certification workflow orchestrator."""

import pytest

from judgeflow.errors import ConflictError, ForbiddenError, NotFoundError
from judgeflow.roles import Role


class TestCertifyScores:

    @pytest.mark.asyncio
    async def test_returns_progress_after_write(self, services, scored_category):
        progress = await services.workflow.certify_scores(
            scored_category["category_id"], "tally-user", Role.TALLY_MASTER, comments="Totals checked",
        )
        assert Role.TALLY_MASTER in progress.roles_certified
        assert progress.percent == 25


class TestCertifyTotals:

    @pytest.mark.asyncio
    async def test_sets_category_flag_separately_from_verdict(self, services, scored_category):
        cid = scored_category["category_id"]
        progress = await services.workflow.certify_totals(cid, "tally-user", Role.TALLY_MASTER)

        assert progress.tally_totals_certified is True
        assert progress.fully_certified is False
        assert (await services.store.get_category(cid)).tally_totals_certified is True

    @pytest.mark.asyncio
    async def test_admin_fills_tally_master_step(self, services, scored_category):
        cid = scored_category["category_id"]
        progress = await services.workflow.certify_totals(cid, "admin-user", Role.ADMIN)

        assert Role.TALLY_MASTER in progress.roles_certified
        assert Role.TALLY_MASTER not in progress.roles_remaining
        record = await services.ledger.get_certification(cid, Role.TALLY_MASTER)
        assert record.user_id == "admin-user"
        assert await services.ledger.get_certification(cid, Role.ADMIN) is None

    @pytest.mark.asyncio
    async def test_auditor_may_not_certify_totals(self, services, scored_category):
        with pytest.raises(ForbiddenError, match="Tally Master or Admin"):
            await services.workflow.certify_totals(scored_category["category_id"], "aud", Role.AUDITOR)


class TestSignWinners:

    @pytest.mark.asyncio
    async def test_signature_is_sha256_hex(self, services, scored_category):
        result = await services.workflow.sign_winners(
            scored_category["category_id"], "board-user", Role.BOARD,
            ip_address="10.0.0.1", user_agent="pytest", signature_name="B. Member",
        )
        assert len(result.signature) == 64
        int(result.signature, 16)

        status = await services.workflow.get_signature_status(scored_category["category_id"], "board-user")
        assert status.signed
        assert status.signature == result.signature
        assert status.role is Role.BOARD

    @pytest.mark.asyncio
    async def test_same_user_and_role_twice_conflicts(self, services, scored_category):
        cid = scored_category["category_id"]
        await services.workflow.sign_winners(cid, "board-user", Role.BOARD)
        with pytest.raises(ConflictError, match="already signed the winners"):
            await services.workflow.sign_winners(cid, "board-user", Role.BOARD)

    @pytest.mark.asyncio
    async def test_role_slot_taken_by_other_user_conflicts(self, services, scored_category):
        cid = scored_category["category_id"]
        await services.workflow.sign_winners(cid, "board-user", Role.BOARD)
        with pytest.raises(ConflictError, match="already certified by BOARD"):
            await services.workflow.sign_winners(cid, "other-board-user", Role.BOARD)

    @pytest.mark.asyncio
    async def test_unknown_role_forbidden(self, services, scored_category):
        with pytest.raises(ForbiddenError):
            await services.workflow.sign_winners(scored_category["category_id"], "x", "VISITOR")

    @pytest.mark.asyncio
    async def test_missing_category(self, services):
        with pytest.raises(NotFoundError):
            await services.workflow.sign_winners("missing", "board-user", Role.BOARD)

    @pytest.mark.asyncio
    async def test_unsigned_user_status(self, services, scored_category):
        status = await services.workflow.get_signature_status(scored_category["category_id"], "nobody")
        assert not status.signed
        assert status.signature is None


class TestVisibleStandings:

    @pytest.mark.asyncio
    async def test_withheld_from_judge_until_board_certifies(self, services, scored_category):
        cid = scored_category["category_id"]

        hidden = await services.workflow.get_visible_standings(cid, Role.JUDGE)
        assert hidden.can_show_winners is False
        assert hidden.contestants == []
        assert hidden.total_possible_score == 100

        await services.workflow.certify_scores(cid, "board-user", Role.BOARD)
        shown = await services.workflow.get_visible_standings(cid, Role.JUDGE)
        assert shown.can_show_winners is True
        assert [c.total_score for c in shown.contestants] == [93.0]

    @pytest.mark.asyncio
    async def test_admin_always_sees(self, services, scored_category):
        standings = await services.workflow.get_visible_standings(scored_category["category_id"], Role.ADMIN)
        assert standings.can_show_winners is True
        assert len(standings.contestants) == 1

    @pytest.mark.asyncio
    async def test_workflow_state(self, services, scored_category):
        cid = scored_category["category_id"]
        await services.workflow.certify_judge(cid, scored_category["judge_id"], "judge-user")
        assert (await services.workflow.get_workflow_state(cid)).value == "JUDGES_CERTIFIED"
