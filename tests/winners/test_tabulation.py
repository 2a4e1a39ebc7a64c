"""Tests for the pure tabulation helpers."""

from judgeflow.scoring.models import CriterionRow, DeductionRow, ScoreRow
from judgeflow.winners import rank_descending, tabulate_category, total_possible_score


def _make_score(contestant_id: str, value: float | None, judge_id: str = "j1", n: int = 0) -> ScoreRow:
    return ScoreRow(
        score_id=f"s-{contestant_id}-{judge_id}-{n}",
        judge_id=judge_id,
        contestant_id=contestant_id,
        category_id="cat",
        criterion_id=f"crit-{n}",
        value=value,
    )


def _make_deduction(contestant_id: str, amount: float) -> DeductionRow:
    return DeductionRow(
        deduction_id=f"d-{contestant_id}-{amount}",
        category_id="cat",
        contestant_id=contestant_id,
        deduction=amount,
    )


class TestTotalPossible:

    def test_sums_criteria(self):
        criteria = [
            CriterionRow(criterion_id="a", category_id="cat", name="Poise", max_score=50),
            CriterionRow(criterion_id="b", category_id="cat", name="Presence", max_score=50),
        ]
        assert total_possible_score(criteria) == 100

    def test_no_criteria_is_none(self):
        assert total_possible_score([]) is None


class TestRankDescending:

    def test_orders_high_to_low(self):
        assert rank_descending([10.0, 30.0, 20.0]) == [1, 2, 0]

    def test_ties_keep_input_order(self):
        assert rank_descending([5.0, 9.0, 5.0, 9.0, 5.0]) == [1, 3, 0, 2, 4]

    def test_empty(self):
        assert rank_descending([]) == []


class TestTabulateCategory:

    def test_groups_and_deducts(self):
        scores = [_make_score("007", 45, n=0), _make_score("007", 48, n=1)]
        (standing,) = tabulate_category(scores, [_make_deduction("007", 5)], 100)
        assert standing.raw_total == 93.0
        assert standing.deduction == 5.0
        assert standing.total_score == 88.0
        assert standing.total_possible_score == 100

    def test_deduction_floor_at_zero(self):
        scores = [_make_score("a", 3), _make_score("b", 40, n=1)]
        deductions = [_make_deduction("a", 2), _make_deduction("a", 4.5)]
        by_id = {s.contestant_id: s for s in tabulate_category(scores, deductions, None)}
        assert by_id["a"].total_score == 0.0
        assert by_id["a"].deduction == 6.5
        for standing in by_id.values():
            assert standing.total_score == max(0.0, standing.raw_total - standing.deduction)

    def test_unscored_rows_ignored(self):
        scores = [_make_score("a", None), _make_score("b", 7, n=1)]
        result = tabulate_category(scores, [], 10)
        assert [s.contestant_id for s in result] == ["b"]

    def test_deduction_without_scores_adds_no_contestant(self):
        result = tabulate_category([_make_score("a", 7)], [_make_deduction("ghost", 1)], 10)
        assert [s.contestant_id for s in result] == ["a"]

    def test_tracks_distinct_judges(self):
        scores = [
            _make_score("a", 1, "j1", 0),
            _make_score("a", 2, "j2", 1),
            _make_score("a", 3, "j1", 2),
        ]
        (standing,) = tabulate_category(scores, [], None)
        assert standing.judges_scored == ["j1", "j2"]
        assert len(standing.scores) == 3

    def test_equal_totals_keep_first_seen_order(self):
        scores = [
            _make_score("c", 10, n=0),
            _make_score("a", 10, n=1),
            _make_score("top", 12, n=2),
            _make_score("b", 10, n=3),
        ]
        result = tabulate_category(scores, [], None)
        assert [s.contestant_id for s in result] == ["top", "c", "a", "b"]

    def test_deterministic(self):
        scores = [_make_score(str(i % 4), float(i), n=i) for i in range(12)]
        deductions = [_make_deduction("1", 2.5)]
        first = tabulate_category(scores, deductions, 48)
        second = tabulate_category(scores, deductions, 48)
        assert [s.model_dump() for s in first] == [s.model_dump() for s in second]
