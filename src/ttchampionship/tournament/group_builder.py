"""Group stage construction.

This module splits the roster into round-robin groups, spreading the
seeds across groups, and schedules every pair of each group.
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

import random
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from ttchampionship.constants import PHASE_GROUPS
from ttchampionship.models import Athlete, Championship, Group, Match
from ttchampionship.tournament.standings import StandingsCalculator
from ttchampionship.utils import setup_logger

logger = setup_logger(__name__)


@dataclass
class GroupGenerationResult:
    """Groups produced by a draw, with the number of scheduled matches."""

    groups: List[Group]
    total_matches: int


@dataclass
class ManualGroup:
    """An explicitly composed group: a name and the member athlete ids."""

    name: str = ""
    athlete_ids: List[str] = field(default_factory=list)


def group_name(index: int) -> str:
    """``Group A``, ``Group B``... then numbered past ``Group Z``."""
    if index < 26:
        return f"Group {chr(65 + index)}"
    return f"Group {index + 1}"


def generate_group_matches(group: Group) -> List[Match]:
    """Schedule one match per unordered pair of the group, in (i < j) order."""
    matches = []
    athletes = group.athletes
    for i in range(len(athletes)):
        for j in range(i + 1, len(athletes)):
            matches.append(
                Match.between(
                    athletes[i],
                    athletes[j],
                    phase=PHASE_GROUPS,
                    group_id=group.id,
                )
            )
    return matches


def complete_group_schedule(group: Group) -> List[Match]:
    """Add the matches missing for newly added members, keeping played ones."""
    scheduled = {frozenset(m.participant_ids) for m in group.matches}
    for match in generate_group_matches(group):
        if frozenset(match.participant_ids) not in scheduled:
            group.matches.append(match)
    return group.matches


def plan_group_count(total_athletes: int, group_size: int) -> Tuple[int, bool]:
    """Number of groups for a field, and whether the remainder is absorbed.

    A remainder of 1 or 2 athletes joins the complete groups instead of
    forming an undersized group, provided at least one complete group exists.

    Returns:
        (number of groups, absorb flag)
    """
    max_complete_groups = total_athletes // group_size
    remainder = total_athletes % group_size

    if remainder == 0:
        return max_complete_groups, False
    if remainder < 3 and max_complete_groups > 0:
        return max_complete_groups, True
    return max_complete_groups + 1, False


class GroupBuilder:
    """Draws athletes into groups.

    Randomness only affects where the absorbed remainder lands, and comes
    from a private ``random.Random`` so draws can be replayed with a seed.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        standings_calculator: Optional[StandingsCalculator] = None,
    ):
        self.random = random.Random(seed) if seed is not None else random.Random()
        self.standings_calculator = standings_calculator

    def _calculator(self, championship: Championship) -> StandingsCalculator:
        if self.standings_calculator is not None:
            return self.standings_calculator
        return StandingsCalculator(
            points_per_win=championship.points_per_win, rules=championship.rules
        )

    def generate_groups(self, championship: Championship) -> GroupGenerationResult:
        """Distribute the roster into groups and schedule them.

        Seeds are placed first, by seed number, one per group in turn. The
        remaining athletes then fill the groups in turn, except when the
        remainder is absorbed: complete groups then take up to
        ``group_size - 1`` further athletes each and the leftovers are
        scattered over the groups in shuffled order.

        Args:
            championship: Championship supplying roster and configuration

        Returns:
            GroupGenerationResult with the groups and the match count
        """
        athletes = championship.athletes
        group_size = championship.group_size
        if not athletes:
            logger.warning(f"{championship.name}: no athletes to draw into groups")
            return GroupGenerationResult(groups=[], total_matches=0)

        num_groups, absorb = plan_group_count(len(athletes), group_size)
        max_complete_groups = len(athletes) // group_size
        groups = [
            Group(
                name=group_name(i),
                qualification_spots=championship.qualification_spots_per_group,
            )
            for i in range(num_groups)
        ]

        seeded = sorted(
            (a for a in athletes if a.is_seeded),
            key=lambda a: a.seed_number if a.seed_number is not None else 0,
        )
        unseeded = [a for a in athletes if not a.is_seeded]

        for index, athlete in enumerate(seeded):
            groups[index % num_groups].athletes.append(athlete)

        if absorb:
            split = max_complete_groups * (group_size - 1)
            for index, athlete in enumerate(unseeded[:split]):
                groups[index % max_complete_groups].athletes.append(athlete)

            order = list(range(num_groups))
            self.random.shuffle(order)
            for index, athlete in enumerate(unseeded[split:]):
                groups[order[index % num_groups]].athletes.append(athlete)
        else:
            for index, athlete in enumerate(unseeded):
                groups[index % num_groups].athletes.append(athlete)

        result = self._schedule(groups, championship)
        logger.info(
            f"{championship.name}: drew {len(athletes)} athletes into "
            f"{num_groups} groups ({result.total_matches} matches)"
        )
        return result

    def create_manual_groups(
        self, championship: Championship, manual_groups: Sequence[ManualGroup]
    ) -> GroupGenerationResult:
        """Build groups from explicit rosters, bypassing the draw.

        Ids that do not match a roster athlete are silently dropped.
        """
        roster = {a.id: a for a in championship.athletes}
        groups = []
        for index, manual in enumerate(manual_groups):
            members = [roster[i] for i in manual.athlete_ids if i in roster]
            dropped = len(manual.athlete_ids) - len(members)
            if dropped:
                logger.debug(f"Manual group {index}: dropped {dropped} unknown ids")
            groups.append(
                Group(
                    name=manual.name.strip() or group_name(index),
                    athletes=members,
                    qualification_spots=championship.qualification_spots_per_group,
                )
            )
        return self._schedule(groups, championship)

    def distribute_remaining_athletes(
        self, championship: Championship
    ) -> Tuple[List[Group], bool]:
        """Place roster athletes missing from every group.

        Only one or two stragglers are absorbed, each into a different
        random group. Those groups get the missing pairings scheduled and
        their tables recomputed; results already played are kept.

        Returns:
            (groups, whether anything changed)
        """
        remaining = athletes_without_group(championship)
        if not remaining or not championship.groups or len(remaining) >= 3:
            return championship.groups, False

        groups = championship.groups
        order = list(range(len(groups)))
        self.random.shuffle(order)
        touched = set()
        for index, athlete in enumerate(remaining):
            group = groups[order[index % len(groups)]]
            group.athletes.append(athlete)
            touched.add(group.id)

        calculator = self._calculator(championship)
        for group in groups:
            if group.id in touched:
                complete_group_schedule(group)
                calculator.refresh_group(group, championship.groups_best_of)
        logger.info(f"Absorbed {len(remaining)} late athletes into existing groups")
        return groups, True

    # ========== Scheduling ==========

    def _schedule_group(self, group: Group, championship: Championship) -> int:
        group.matches = generate_group_matches(group)
        self._calculator(championship).refresh_group(
            group, championship.groups_best_of
        )
        return len(group.matches)

    def _schedule(
        self, groups: List[Group], championship: Championship
    ) -> GroupGenerationResult:
        total = sum(self._schedule_group(group, championship) for group in groups)
        return GroupGenerationResult(groups=groups, total_matches=total)


def create_manual_groups(
    championship: Championship, manual_groups: Sequence[ManualGroup]
) -> GroupGenerationResult:
    """Convenience wrapper around :meth:`GroupBuilder.create_manual_groups`."""
    return GroupBuilder().create_manual_groups(championship, manual_groups)


def athletes_without_group(championship: Championship) -> List[Athlete]:
    placed = {a.id for g in championship.groups for a in g.athletes}
    return [a for a in championship.athletes if a.id not in placed]
