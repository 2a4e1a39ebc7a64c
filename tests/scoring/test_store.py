"""Tests for the score store against a real SQLite database."""

import pytest

from judgeflow.errors import BadRequestError, ConflictError, NotFoundError


class TestRecordScore:

    @pytest.mark.asyncio
    async def test_records_and_lists_in_insertion_order(self, services, scored_category):
        scores = await services.store.list_scores(scored_category["category_id"])
        assert [s.value for s in scores] == [45.0, 48.0]
        assert all(not s.is_certified for s in scores)

    @pytest.mark.asyncio
    async def test_second_score_for_same_tuple_conflicts(self, services, scored_category):
        with pytest.raises(ConflictError):
            await services.store.record_score(
                judge_id=scored_category["judge_id"],
                contestant_id=scored_category["contestant_id"],
                category_id=scored_category["category_id"],
                criterion_id=scored_category["criterion_ids"][0],
                value=10,
            )

    @pytest.mark.asyncio
    async def test_value_above_max_rejected(self, services, scored_category, seed):
        other = await seed.contestant("Other")
        with pytest.raises(BadRequestError, match="between 0 and 50"):
            await services.store.record_score(
                judge_id=scored_category["judge_id"],
                contestant_id=other,
                category_id=scored_category["category_id"],
                criterion_id=scored_category["criterion_ids"][0],
                value=51,
            )

    @pytest.mark.asyncio
    async def test_criterion_from_other_category_not_found(self, services, seed, scored_category):
        _, (foreign,) = await seed.category(name="Talent", max_scores=(10,))
        with pytest.raises(NotFoundError):
            await services.store.record_score(
                judge_id=scored_category["judge_id"],
                contestant_id=scored_category["contestant_id"],
                category_id=scored_category["category_id"],
                criterion_id=foreign,
                value=5,
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field,resource", [("judge_id", "Judge"), ("contestant_id", "Contestant")])
    async def test_unknown_judge_or_contestant_not_found(self, services, scored_category, field, resource):
        params = {
            "judge_id": scored_category["judge_id"],
            "contestant_id": scored_category["contestant_id"],
            "category_id": scored_category["category_id"],
            "criterion_id": scored_category["criterion_ids"][0],
            "value": 10,
        }
        params[field] = "ghost"
        with pytest.raises(NotFoundError) as exc:
            await services.store.record_score(**params)
        assert exc.value.details["resource"] == resource

    @pytest.mark.asyncio
    async def test_missing_category_not_found(self, services):
        with pytest.raises(NotFoundError, match="Category"):
            await services.store.get_category("nope")


class TestBulkMutations:

    @pytest.mark.asyncio
    async def test_certify_then_clear(self, services, scored_category):
        cid, jid = scored_category["category_id"], scored_category["judge_id"]
        assert await services.store.certify_judge_scores(cid, jid, "user-1") == 2
        assert all(s.is_certified for s in await services.store.list_scores(cid))

        assert await services.store.clear_certification(cid, jid) == 2
        scores = await services.store.list_scores(cid)
        assert all(not s.is_certified and s.certified_by is None for s in scores)
        # Nothing left to clear
        assert await services.store.clear_certification(cid, jid) == 0

    @pytest.mark.asyncio
    async def test_delete_narrowed_to_contestant(self, services, seed, scored_category):
        cid, jid = scored_category["category_id"], scored_category["judge_id"]
        other = await seed.contestant("Other")
        await services.store.record_score(
            judge_id=jid, contestant_id=other, category_id=cid,
            criterion_id=scored_category["criterion_ids"][0], value=30,
        )
        assert await services.store.delete_scores(cid, jid, other) == 1
        assert await services.store.delete_scores(cid, jid) == 2
        assert await services.store.list_scores(cid) == []

    @pytest.mark.asyncio
    async def test_count_certifiable(self, services, scored_category, seed):
        assert await services.store.count_certifiable_scores(scored_category["category_id"]) == 2
        empty, _ = await seed.category(name="Empty")
        assert await services.store.count_certifiable_scores(empty) == 0


class TestDeductions:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -1.5])
    async def test_non_positive_amount_rejected(self, services, scored_category, amount):
        with pytest.raises(BadRequestError, match="greater than 0"):
            await services.store.record_deduction(
                category_id=scored_category["category_id"],
                contestant_id=scored_category["contestant_id"],
                amount=amount,
            )

    @pytest.mark.asyncio
    async def test_records_and_lists(self, services, scored_category):
        await services.store.record_deduction(
            category_id=scored_category["category_id"],
            contestant_id=scored_category["contestant_id"],
            amount=5,
            reason="Time violation",
            created_by="tally-1",
        )
        (row,) = await services.store.list_deductions(scored_category["category_id"])
        assert row.deduction == 5.0
        assert row.reason == "Time violation"
