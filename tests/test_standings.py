from ttchampionship.models import Athlete, Group, GroupStanding, sets_from_scores
from ttchampionship.tournament.group_builder import generate_group_matches
from ttchampionship.tournament.standings import (
    StandingsCalculator,
    compare_standings,
    eliminated_athletes,
    eliminated_entrants,
    qualified_athletes,
    qualified_entrants,
    rank_standings,
)


def _group(names, spots=2, name="Group A"):
    group = Group(
        name=name,
        athletes=[Athlete(name=n, id=n.lower()) for n in names],
        qualification_spots=spots,
    )
    group.matches = generate_group_matches(group)
    return group


def _play(group, id1, id2, scores):
    for match in group.matches:
        if set(match.participant_ids) == {id1, id2}:
            if match.player1_id != id1:
                scores = [(b, a) for a, b in scores]
            match.sets = sets_from_scores(scores)
            winner = 0
            for a, b in scores:
                winner += 1 if a > b else -1
            match.winner_id = match.player1_id if winner > 0 else match.player2_id
            match.is_completed = True
            return match
    raise AssertionError(f"no match {id1} vs {id2}")


def test_points_sets_and_rally_points():
    group = _group(["Ana", "Bia", "Caio"])
    _play(group, "ana", "bia", [(11, 9), (11, 9), (11, 9)])
    _play(group, "bia", "caio", [(11, 5), (5, 11), (11, 5), (11, 5)])

    standings = StandingsCalculator().calculate_group_standings(group, 5)
    rows = {s.athlete_id: s for s in standings}

    assert rows["ana"].points == 2
    assert rows["ana"].sets_won == 3
    assert rows["ana"].points_diff == 6
    assert rows["bia"].wins == 1 and rows["bia"].losses == 1
    assert rows["bia"].sets_won == 3 and rows["bia"].sets_lost == 4
    assert rows["caio"].points == 0
    assert rows["caio"].points_won == 26 and rows["caio"].points_lost == 38


def test_match_and_result_totals_balance():
    group = _group(["Ana", "Bia", "Caio", "Davi"])
    _play(group, "ana", "bia", [(11, 3), (11, 3), (11, 3)])
    _play(group, "caio", "davi", [(3, 11), (11, 3), (11, 3), (11, 3)])
    _play(group, "ana", "davi", [(11, 13), (11, 3), (11, 3), (11, 3)])

    standings = StandingsCalculator().calculate_group_standings(group, 5)

    assert sum(s.matches for s in standings) == 2 * group.completed_matches
    assert sum(s.wins for s in standings) == group.completed_matches
    for standing in standings:
        assert standing.wins + standing.losses <= standing.matches


def test_tie_broken_by_set_difference():
    group = _group(["Ana", "Bia", "Caio"])
    _play(group, "ana", "bia", [(11, 9), (9, 11), (11, 9), (9, 11), (11, 9)])
    _play(group, "bia", "caio", [(11, 1), (11, 1), (11, 1)])
    _play(group, "caio", "ana", [(11, 9), (11, 9), (11, 9)])

    standings = StandingsCalculator().calculate_group_standings(group, 5)

    # everybody 1-1 on points; sets: bia 5:3, caio 3:3, ana 3:5
    assert all(s.points == 2 for s in standings)
    assert [s.athlete_id for s in standings] == ["bia", "caio", "ana"]
    assert [s.sets_diff for s in standings] == [2, 0, -2]
    assert [s.qualified for s in standings] == [True, True, False]


def test_name_breaks_full_tie_ignoring_case_and_accents():
    rows = [
        GroupStanding(athlete=Athlete(name="Élio")),
        GroupStanding(athlete=Athlete(name="bruno")),
        GroupStanding(athlete=Athlete(name="Carla")),
    ]
    ranked = rank_standings(rows, 2)
    assert [r.athlete.name for r in ranked] == ["bruno", "Carla", "Élio"]
    assert [r.qualified for r in ranked] == [True, True, False]


def test_sorting_is_idempotent():
    group = _group(["Ana", "Bia", "Caio", "Davi"])
    _play(group, "ana", "bia", [(11, 3), (11, 3), (11, 3)])
    _play(group, "caio", "davi", [(11, 9), (11, 9), (11, 9)])
    calculator = StandingsCalculator()

    first = calculator.calculate_group_standings(group, 5)
    again = rank_standings(list(first), group.qualification_spots)

    assert [s.athlete_id for s in first] == [s.athlete_id for s in again]
    assert compare_standings(first[0], first[1]) < 0
    assert compare_standings(first[1], first[1]) == 0


def test_walkover_credits_win_without_sets():
    group = _group(["Ana", "Bia", "Caio"])
    match = group.matches[0]
    match.is_walkover = True
    match.walkover_winner_id = match.player2_id
    match.winner_id = match.player2_id
    match.is_completed = True

    standings = StandingsCalculator().calculate_group_standings(group, 5)
    winner = next(s for s in standings if s.athlete_id == match.player2_id)
    loser = next(s for s in standings if s.athlete_id == match.player1_id)

    assert winner.points == 2 and winner.sets_won == 0
    assert loser.losses == 1 and loser.points_lost == 0


def test_points_per_win_is_configurable():
    group = _group(["Ana", "Bia", "Caio"])
    _play(group, "ana", "bia", [(11, 3), (11, 3), (11, 3)])
    calculator = StandingsCalculator(points_per_win=3, points_per_loss=1)
    standings = calculator.calculate_group_standings(group, 5)
    rows = {s.athlete_id: s for s in standings}
    assert rows["ana"].points == 3
    assert rows["bia"].points == 1


def test_winner_derived_from_sets_when_not_stored():
    group = _group(["Ana", "Bia", "Caio"])
    match = _play(group, "ana", "bia", [(11, 3), (11, 3), (11, 3)])
    match.winner_id = None

    standings = StandingsCalculator().calculate_group_standings(group, 5)
    assert standings[0].athlete_id == "ana"


def test_qualified_and_eliminated_entrants():
    group_a = _group(["Ana", "Bia", "Caio"], name="Group A")
    group_b = _group(["Davi", "Eva", "Fred"], name="Group B")
    calculator = StandingsCalculator()
    for group in (group_a, group_b):
        for match in group.matches:
            match.sets = sets_from_scores([(11, 5)] * 3)
            match.winner_id = match.player1_id
            match.is_completed = True
        calculator.refresh_group(group, 5)

    qualified = qualified_entrants([group_a, group_b])
    assert [(a.id, s.source_id, s.position) for a, s in qualified] == [
        ("ana", group_a.id, 1),
        ("davi", group_b.id, 1),
        ("bia", group_a.id, 2),
        ("eva", group_b.id, 2),
    ]
    assert [a.id for a, _ in eliminated_entrants([group_a, group_b])] == ["caio", "fred"]
    assert [a.name for a in eliminated_athletes([group_a, group_b])] == ["Caio", "Fred"]
    assert group_a.get_standing("bia").position == 2
    assert [a.name for a in qualified_athletes([group_a, group_b])] == [
        "Ana",
        "Bia",
        "Davi",
        "Eva",
    ]


def test_refresh_group_marks_completion():
    group = _group(["Ana", "Bia", "Caio"])
    calculator = StandingsCalculator()
    calculator.refresh_group(group, 5)
    assert not group.is_completed

    for match in group.matches:
        match.winner_id = match.player1_id
        match.is_walkover = True
        match.walkover_winner_id = match.player1_id
        match.is_completed = True
    calculator.refresh_group(group, 5)
    assert group.is_completed
    assert len(group.standings) == 3
