"""Group standings calculation.

Standings are rebuilt from a group's matches on every call. Ranking uses
four levels: points, set difference, rally point difference, then name.
"""

# Table Tennis Championship
# Copyright (C) 2025  Table Tennis Championship developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

import unicodedata
from typing import Dict, List, Tuple

from ttchampionship.constants import (
    DEFAULT_POINTS_PER_LOSS,
    DEFAULT_POINTS_PER_WIN,
    PLAYER1,
    PLAYER2,
    SOURCE_GROUP,
)
from ttchampionship.models import (
    CBTM_RULES,
    Athlete,
    Group,
    GroupStanding,
    Match,
    RuleSet,
    SlotSource,
)
from ttchampionship.utils import setup_logger
from ttchampionship.validation.match_rules import get_match_winner, get_set_winner

logger = setup_logger(__name__)

# An athlete with the group slot they advance from
Entrant = Tuple[Athlete, SlotSource]


def name_sort_key(name: str) -> Tuple[str, str]:
    """Case- and accent-insensitive ordering key, exact name as tiebreak."""
    decomposed = unicodedata.normalize("NFKD", name)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold(), name


def standings_sort_key(standing: GroupStanding) -> Tuple:
    """Sort key for the 4-level comparator (best first)."""
    return (
        -standing.points,
        -standing.sets_diff,
        -standing.points_diff,
        name_sort_key(standing.athlete.name),
    )


def compare_standings(a: GroupStanding, b: GroupStanding) -> int:
    """Classic comparator: negative when ``a`` ranks above ``b``."""
    key_a, key_b = standings_sort_key(a), standings_sort_key(b)
    return (key_a > key_b) - (key_a < key_b)


def rank_standings(
    standings: List[GroupStanding], qualification_spots: int
) -> List[GroupStanding]:
    """Sort rows and assign positions and qualification flags in place."""
    standings.sort(key=standings_sort_key)
    for index, standing in enumerate(standings):
        standing.position = index + 1
        standing.qualified = standing.position <= qualification_spots
    return standings


class StandingsCalculator:
    """Builds group tables from match results.

    Walkovers credit the win and its points but no sets or rally points.
    For played matches every set counts for the side with the strictly
    higher score, and all rally points accumulate to both sides.
    """

    def __init__(
        self,
        points_per_win: int = DEFAULT_POINTS_PER_WIN,
        points_per_loss: int = DEFAULT_POINTS_PER_LOSS,
        rules: RuleSet = CBTM_RULES,
    ):
        self.points_per_win = points_per_win
        self.points_per_loss = points_per_loss
        self.rules = rules

    def calculate_group_standings(
        self, group: Group, best_of: int
    ) -> List[GroupStanding]:
        """Recompute a group's table from scratch.

        Args:
            group: The group to rank
            best_of: Match length used to decide winners without a stored one

        Returns:
            Ranked standings, one row per group member
        """
        rows: Dict[str, GroupStanding] = {
            athlete.id: GroupStanding(athlete=athlete) for athlete in group.athletes
        }

        for match in group.matches:
            if not match.is_completed:
                continue
            row1 = rows.get(match.player1_id)
            row2 = rows.get(match.player2_id)
            if row1 is None or row2 is None:
                logger.warning(
                    f"Match {match.id} in {group.name} involves a non-member, skipped"
                )
                continue

            row1.matches += 1
            row2.matches += 1

            if match.is_walkover:
                winner_id = match.walkover_winner_id or match.winner_id
            else:
                self._tally_sets(match, row1, row2)
                winner_id = match.winner_id or get_match_winner(
                    match.sets, best_of, match.player1_id, match.player2_id, self.rules
                )

            if winner_id == match.player1_id:
                self._credit(row1, row2)
            elif winner_id == match.player2_id:
                self._credit(row2, row1)
            else:
                logger.debug(f"Completed match {match.id} has no winner to credit")

        standings = list(rows.values())
        for standing in standings:
            standing.sets_diff = standing.sets_won - standing.sets_lost
            standing.points_diff = standing.points_won - standing.points_lost

        return rank_standings(standings, group.qualification_spots)

    def _tally_sets(self, match: Match, row1: GroupStanding, row2: GroupStanding):
        for set_result in match.sets:
            side = get_set_winner(set_result)
            if side == PLAYER1:
                row1.sets_won += 1
                row2.sets_lost += 1
            elif side == PLAYER2:
                row2.sets_won += 1
                row1.sets_lost += 1

            row1.points_won += set_result.player1_score
            row1.points_lost += set_result.player2_score
            row2.points_won += set_result.player2_score
            row2.points_lost += set_result.player1_score

    def _credit(self, winner: GroupStanding, loser: GroupStanding) -> None:
        winner.wins += 1
        winner.points += self.points_per_win
        loser.losses += 1
        loser.points += self.points_per_loss

    def refresh_group(self, group: Group, best_of: int) -> Group:
        """Recompute standings and completion of ``group`` in place."""
        group.standings = self.calculate_group_standings(group, best_of)
        group.refresh_completion()
        return group


# ========== Group outcome helpers ==========


def are_groups_completed(groups: List[Group]) -> bool:
    return bool(groups) and all(
        g.is_completed or all(m.is_completed for m in g.matches) for g in groups
    )


def qualified_entrants(groups: List[Group]) -> List[Entrant]:
    """Qualifiers ordered by finishing position, then group order.

    Group winners come first, then the runners-up, and so on.
    """
    entrants = [
        (s.athlete, SlotSource(SOURCE_GROUP, g.id, s.position), s.position, index)
        for index, g in enumerate(groups)
        for s in g.standings
        if s.qualified
    ]
    entrants.sort(key=lambda e: (e[2], e[3]))
    return [(athlete, source) for athlete, source, _, _ in entrants]


def eliminated_entrants(groups: List[Group]) -> List[Entrant]:
    """Non-qualified athletes of completed groups, best finishers first."""
    entrants = [
        (s.athlete, SlotSource(SOURCE_GROUP, g.id, s.position), s.position, index)
        for index, g in enumerate(groups)
        if g.is_completed
        for s in g.standings
        if not s.qualified
    ]
    entrants.sort(key=lambda e: (e[2], e[3]))
    return [(athlete, source) for athlete, source, _, _ in entrants]


def qualified_athletes(groups: List[Group]) -> List[Athlete]:
    """Qualified athletes sorted by name."""
    return sorted(
        (athlete for athlete, _ in qualified_entrants(groups)),
        key=lambda a: name_sort_key(a.name),
    )


def eliminated_athletes(groups: List[Group]) -> List[Athlete]:
    return [athlete for athlete, _ in eliminated_entrants(groups)]
