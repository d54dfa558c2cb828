import pytest

from ttchampionship.constants import STATUS_COMPLETED
from ttchampionship.exceptions import (
    InvalidResultException,
    ResultNotFoundException,
    TournamentStateException,
)
from ttchampionship.models import MatchResult, TimeoutsUsed
from ttchampionship.tournament import ResultRecorder

from conftest import make_roster, play_pending, play_to_the_end


@pytest.fixture
def recorder():
    return ResultRecorder()


@pytest.fixture
def first_match(drawn):
    return drawn.groups[0].matches[0]


def test_records_sets_and_winner(recorder, drawn, first_match):
    updated = recorder.record_result(
        drawn, MatchResult.from_scores(first_match.id, [(11, 9), (8, 11), (11, 7), (11, 4)])
    )
    match, _ = updated.find_match(first_match.id)

    assert match.is_completed
    assert match.winner_id == first_match.player1_id
    assert len(match.sets) == 4
    assert match.completed_at is not None
    assert updated.completed_matches == 1


def test_input_championship_is_not_modified(recorder, drawn, first_match):
    recorder.record_result(drawn, MatchResult.from_scores(first_match.id, [(11, 1)] * 3))
    assert not first_match.is_completed
    assert first_match.sets == []
    assert drawn.completed_matches == 0


def test_group_standings_are_refreshed(recorder, drawn, first_match):
    updated = recorder.record_result(
        drawn, MatchResult.from_scores(first_match.id, [(5, 11)] * 3)
    )
    standings = updated.groups[0].standings
    leader = standings[0]

    assert leader.athlete_id == first_match.player2_id
    assert leader.points == 2
    assert leader.sets_won == 3


def test_partial_result_keeps_match_open(recorder, drawn, first_match):
    updated = recorder.record_result(
        drawn, MatchResult.from_scores(first_match.id, [(11, 9), (11, 9)])
    )
    match, _ = updated.find_match(first_match.id)
    assert match.sets
    assert match.winner_id is None
    assert not match.is_completed


def test_unknown_match(recorder, drawn):
    with pytest.raises(ResultNotFoundException):
        recorder.record_result(drawn, MatchResult.from_scores("nope", [(11, 1)] * 3))


def test_illegal_set_is_rejected(recorder, drawn, first_match):
    result = MatchResult.from_scores(first_match.id, [(11, 10), (11, 5), (11, 5)])
    with pytest.raises(InvalidResultException, match="Set 1"):
        recorder.record_result(drawn, result)


def test_too_many_sets_are_rejected(recorder, drawn, first_match):
    result = MatchResult.from_scores(first_match.id, [(11, 5)] * 6)
    with pytest.raises(InvalidResultException):
        recorder.record_result(drawn, result)


def test_walkover(recorder, drawn, first_match):
    updated = recorder.set_walkover(drawn, first_match.id, first_match.player2_id)
    match, _ = updated.find_match(first_match.id)

    assert match.is_walkover
    assert match.sets == []
    assert match.winner_id == first_match.player2_id
    assert match.is_completed


def test_walkover_winner_must_play_the_match(recorder, drawn, first_match):
    with pytest.raises(InvalidResultException):
        recorder.set_walkover(drawn, first_match.id, "ghost")


def test_result_replaces_a_walkover(recorder, drawn, first_match):
    walkover = recorder.set_walkover(drawn, first_match.id, first_match.player2_id)
    updated = recorder.record_result(
        walkover, MatchResult.from_scores(first_match.id, [(11, 3)] * 3)
    )
    match, _ = updated.find_match(first_match.id)

    assert not match.is_walkover
    assert match.walkover_winner_id is None
    assert match.winner_id == first_match.player1_id


def test_timeouts_are_stored(recorder, drawn, first_match):
    result = MatchResult.from_scores(first_match.id, [(11, 3)] * 3)
    result.timeouts_used = TimeoutsUsed(player1=True)
    updated = recorder.record_result(drawn, result)
    match, _ = updated.find_match(first_match.id)

    assert match.timeouts_used.player1
    assert not match.timeouts_used.player2


def test_completed_championship_is_frozen(recorder, drawn, first_match):
    drawn.status = STATUS_COMPLETED
    with pytest.raises(TournamentStateException):
        recorder.record_result(drawn, MatchResult.from_scores(first_match.id, [(11, 3)] * 3))


class TestKnockoutResults:
    @pytest.fixture
    def knockout(self, manager, config):
        championship = manager.create_championship(config, make_roster(12))
        championship = manager.generate_groups(championship, seed=3)
        championship = play_pending(manager, championship)
        return manager.generate_knockout(championship, seed=3)

    def test_bye_match_cannot_take_a_result(self, recorder, knockout):
        bye = next(m for m in knockout.knockout_matches() if m.is_bye)
        with pytest.raises(InvalidResultException):
            recorder.record_result(knockout, MatchResult.from_scores(bye.id, [(11, 3)] * 3))

    def test_winner_moves_to_the_next_round(self, recorder, knockout):
        node = next(
            n
            for n in knockout.knockout_bracket
            if n.match is not None and not n.match.is_bye and not n.is_completed
        )
        winner = node.match.player2_id
        updated = recorder.record_result(
            knockout, MatchResult.from_scores(node.match.id, [(3, 11)] * 3)
        )

        next_node = updated.get_node(node.advances_to)
        assert next_node.match is not None
        assert next_node.match.involves(winner)

    def test_last_final_completes_the_championship(self, manager, knockout):
        championship = play_to_the_end(manager, knockout)

        assert championship.completed_matches == championship.total_matches
        final = championship.get_node("main-r1-p1").match
        with pytest.raises(TournamentStateException):
            manager.record_result(
                championship, MatchResult.from_scores(final.id, [(3, 11)] * 3)
            )

    def test_group_results_are_locked_once_the_bracket_exists(self, recorder, knockout):
        group_match = knockout.groups[0].matches[0]
        with pytest.raises(TournamentStateException, match="locked"):
            recorder.record_result(
                knockout, MatchResult.from_scores(group_match.id, [(5, 11)] * 3)
            )
        with pytest.raises(TournamentStateException):
            recorder.set_walkover(knockout, group_match.id, group_match.player2_id)
