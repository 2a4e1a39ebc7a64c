"""Tests for co-signed judge uncertification."""

import pytest

from judgeflow.certification import WorkflowState
from judgeflow.errors import BadRequestError, ForbiddenError
from judgeflow.quorum import RequestKind, RequestStatus
from judgeflow.roles import Role


async def _certified_request(services, scored_category):
    cid, jid = scored_category["category_id"], scored_category["judge_id"]
    await services.ledger.certify_judge(cid, jid, "judge-user")
    return await services.uncertifications.create_request(
        jid, cid, "Judge certified before finishing", "admin-user", Role.ADMIN,
    )


class TestJudgeUncertification:

    @pytest.mark.asyncio
    async def test_create(self, services, scored_category):
        request = await _certified_request(services, scored_category)
        assert request.kind is RequestKind.JUDGE_UNCERTIFICATION
        assert request.contestant_id is None
        assert request.status is RequestStatus.PENDING

    @pytest.mark.asyncio
    async def test_forbidden_message_names_request_kind(self, services, scored_category):
        with pytest.raises(ForbiddenError, match="Only Board and Admin can initiate uncertification requests"):
            await services.uncertifications.create_request(
                scored_category["judge_id"], scored_category["category_id"], "why", "t", Role.TALLY_MASTER,
            )

    @pytest.mark.asyncio
    async def test_execution_clears_certification_and_keeps_values(self, services, scored_category):
        cid = scored_category["category_id"]
        request = await _certified_request(services, scored_category)

        with pytest.raises(BadRequestError):
            await services.uncertifications.execute_uncertification(request.request_id)

        for role in (Role.BOARD, Role.AUDITOR, Role.TALLY_MASTER):
            result = await services.uncertifications.sign_request(request.request_id, role, "u", role.value)
        assert result.all_signed

        first = await services.uncertifications.execute_uncertification(request.request_id)
        assert first.uncertified_count == 2
        scores = await services.store.list_scores(cid)
        assert all(not s.is_certified and s.certified_at is None for s in scores)
        assert [s.value for s in scores] == [45.0, 48.0]

        second = await services.uncertifications.execute_uncertification(request.request_id)
        assert second.uncertified_count == 0
        assert second.already_executed

    @pytest.mark.asyncio
    async def test_requests_are_separate_from_removals(self, services, scored_category):
        await _certified_request(services, scored_category)
        assert len(await services.uncertifications.list_requests()) == 1
        assert await services.removals.list_requests() == []

    @pytest.mark.asyncio
    async def test_judge_can_recertify_after_execution(self, services, scored_category):
        cid, jid = scored_category["category_id"], scored_category["judge_id"]
        request = await _certified_request(services, scored_category)
        assert Role.JUDGE in (await services.ledger.get_certification_progress(cid)).roles_certified

        for role in (Role.AUDITOR, Role.TALLY_MASTER, Role.BOARD):
            await services.uncertifications.sign_request(request.request_id, role, "u", role.value)
        await services.uncertifications.execute_uncertification(request.request_id)

        progress = await services.ledger.get_certification_progress(cid)
        assert Role.JUDGE in progress.roles_remaining
        assert progress.state is WorkflowState.SCORING
        assert await services.ledger.list_judge_certifications(cid) == []
        assert (await services.ledger.get_workflow(cid)).judge_certified is False

        await services.ledger.certify_judge(cid, jid, "judge-user")
        assert all(s.is_certified for s in await services.store.list_scores(cid))
        assert Role.JUDGE in (await services.ledger.get_certification_progress(cid)).roles_certified
