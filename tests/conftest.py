import pytest

from ttchampionship.models import Athlete, MatchResult, TournamentConfig
from ttchampionship.tournament import ChampionshipManager

STRAIGHT_WIN = [(11, 5), (11, 7), (11, 9)]


def make_roster(count):
    """Athletes with letter-only names: Athlete AA, Athlete AB..."""
    return [
        Athlete(name=f"Athlete {chr(65 + i // 26)}{chr(65 + i % 26)}", id=f"a{i + 1:02d}")
        for i in range(count)
    ]


def play_pending(manager, championship, scores=STRAIGHT_WIN):
    """Player 1 wins every pending match; returns the updated championship."""
    pending = [
        m.id for m in championship.all_matches() if not m.is_completed and not m.is_bye
    ]
    for match_id in pending:
        championship = manager.record_result(
            championship, MatchResult.from_scores(match_id, scores)
        )
    return championship


@pytest.fixture
def manager():
    return ChampionshipManager()


@pytest.fixture
def config():
    return TournamentConfig(name="Spring Open")


@pytest.fixture
def drawn(manager, config):
    """Sixteen athletes, four auto seeds, groups drawn."""
    championship = manager.create_championship(config, make_roster(16))
    return manager.generate_groups(championship, seed=7)


@pytest.fixture
def grouped(manager, drawn):
    """All group matches won by the listed first player."""
    return play_pending(manager, drawn)


def play_to_the_end(manager, championship, scores=STRAIGHT_WIN):
    """Play every bracket round until the championship is completed."""
    for _ in range(12):
        if championship.status == "completed":
            return championship
        championship = play_pending(manager, championship, scores)
    raise AssertionError(f"{championship.name} did not complete")
