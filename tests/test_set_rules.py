import pytest

from ttchampionship.exceptions import InvalidConfigurationException
from ttchampionship.models import CBTM_RULES, Match, RuleSet, SetResult, sets_from_scores
from ttchampionship.validation import (
    calculate_match_stats,
    get_match_winner,
    get_set_winner,
    is_valid_set,
    validate_match,
)


@pytest.mark.parametrize(
    "score1, score2",
    [(11, 9), (11, 0), (0, 11), (12, 10), (10, 12), (15, 13), (11, 5)],
)
def test_legal_sets(score1, score2):
    assert is_valid_set(score1, score2)


@pytest.mark.parametrize(
    "score1, score2, message",
    [
        (-1, 11, "Scores cannot be negative"),
        (0, 0, "A set cannot end 0-0"),
        (10, 9, "Winner must reach at least 11 points"),
        (11, 10, "Winner must lead by at least 2 points"),
        (13, 10, "From 10-10 the set must end with a 2-point lead"),
        (14, 11, "From 10-10 the set must end with a 2-point lead"),
    ],
)
def test_illegal_sets_explain_why(score1, score2, message):
    result = is_valid_set(score1, score2)
    assert not result
    assert result.error_message == message


def test_set_validity_formula_over_score_grid():
    for a in range(0, 20):
        for b in range(0, 20):
            high, low = max(a, b), min(a, b)
            expected = (
                high >= 11
                and high - low >= 2
                and (low < 10 or high - low == 2)
                and not (a == 0 and b == 0)
            )
            assert bool(is_valid_set(a, b)) == expected, (a, b)


def test_get_set_winner():
    assert get_set_winner(SetResult(11, 7)) == "player1"
    assert get_set_winner(SetResult(9, 11)) == "player2"
    assert get_set_winner(SetResult(5, 5)) is None


class TestMatchWinner:
    def test_best_of_five_needs_three_sets(self):
        sets = sets_from_scores([(11, 9), (9, 11), (11, 7), (11, 5)])
        assert get_match_winner(sets, 5, "a", "b") == "a"

    def test_undecided_match(self):
        sets = sets_from_scores([(11, 9), (9, 11)])
        assert get_match_winner(sets, 5, "a", "b") is None

    def test_invalid_sets_are_skipped(self):
        sets = sets_from_scores([(11, 9), (10, 9), (11, 8)])
        assert get_match_winner(sets, 3, "a", "b") == "a"

    def test_sets_after_the_decision_are_ignored(self):
        sets = sets_from_scores([(5, 11), (7, 11), (11, 3)])
        assert get_match_winner(sets, 3, "a", "b") == "b"

    def test_best_of_seven(self):
        sets = sets_from_scores([(11, 1)] * 3 + [(1, 11)] * 3 + [(12, 10)])
        assert get_match_winner(sets, 7, "a", "b") == "a"

    def test_illegal_format_raises(self):
        with pytest.raises(InvalidConfigurationException):
            get_match_winner([], 4, "a", "b")


class TestValidateMatch:
    def test_reports_set_number(self):
        validation = validate_match(sets_from_scores([(11, 9), (10, 9)]), 3)
        assert not validation
        assert validation.errors == ["Set 2: Winner must reach at least 11 points"]

    def test_too_many_sets(self):
        sets = sets_from_scores([(11, 9)] * 4)
        validation = validate_match(sets, 3)
        assert any("cannot have 4 sets" in e for e in validation.errors)

    def test_illegal_format(self):
        validation = validate_match([], 6)
        assert not validation.is_valid
        assert "best-of-6" in validation.errors[0]

    def test_decided_match(self):
        validation = validate_match(sets_from_scores([(11, 9), (11, 9)]), 3)
        assert validation.is_valid
        assert validation.is_decided
        assert validation.winner == "player1"

    def test_unfinished_match_is_valid(self):
        validation = validate_match(sets_from_scores([(11, 9)]), 5)
        assert validation.is_valid
        assert not validation.is_decided

    def test_sets_after_decision_warn(self):
        sets = sets_from_scores([(11, 9), (11, 9), (3, 11)])
        validation = validate_match(sets, 3)
        assert validation.is_valid
        assert validation.winner == "player1"
        assert validation.warnings == ["Set 3 was played after the match was decided"]


def test_match_stats_count_points_of_every_set():
    match = Match(
        player1_id="a",
        player2_id="b",
        sets=sets_from_scores([(11, 9), (10, 9), (8, 11), (11, 6)]),
    )
    stats = calculate_match_stats(match, 3)
    assert stats.total_sets == 4
    assert stats.valid_sets == 3
    assert (stats.player1_sets, stats.player2_sets) == (2, 1)
    assert stats.player1_points == 40
    assert stats.player2_points == 35
    assert stats.is_completed
    assert stats.winner_id == "a"


def test_match_stats_walkover():
    match = Match(player1_id="a", player2_id="b", is_walkover=True, walkover_winner_id="b")
    stats = calculate_match_stats(match, 5)
    assert stats.winner_id == "b"
    assert stats.total_sets == 0


class TestRuleSet:
    def test_lookup_by_code(self):
        assert RuleSet.from_code("cbtm") is CBTM_RULES
        assert RuleSet.from_code("ITTF").code == "ITTF"

    def test_sets_to_win(self):
        assert [CBTM_RULES.sets_to_win(b) for b in (3, 5, 7)] == [2, 3, 4]

    @pytest.mark.parametrize(
        "athletes, seeds", [(6, 0), (8, 2), (15, 2), (16, 4), (31, 4), (32, 8)]
    )
    def test_recommended_seeds(self, athletes, seeds):
        assert CBTM_RULES.recommended_seeds(athletes) == seeds

    def test_formats(self):
        assert CBTM_RULES.is_valid_best_of(7)
        assert not CBTM_RULES.is_valid_groups_best_of(7)
        assert not CBTM_RULES.is_valid_best_of(4)
