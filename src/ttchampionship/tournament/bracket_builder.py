"""Knockout bracket construction and propagation.

Brackets are sized to the next power of two. Empty slots are filled with
virtual BYE athletes, given to the best-ranked entrants (seeds first), and
matches against a BYE complete on the spot. Winners flow from each node to
the one it advances to, and the semifinal losers meet in an optional
detached third-place node. The same builder produces the main draw and the
second division (repechage) draw.
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

import math
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from ttchampionship.constants import (
    DIVISION_MAIN,
    DIVISION_SECOND,
    PHASE_KNOCKOUT,
    ROUND_NAMES,
    SECOND_DIVISION_SUFFIX,
    SLOT_LOSER,
    SLOT_WINNER,
    SOURCE_KNOCKOUT,
    THIRD_PLACE_ROUND,
)
from ttchampionship.exceptions import InvalidConfigurationException
from ttchampionship.models import Athlete, KnockoutNode, Match, SlotSource
from ttchampionship.type_hints import Division
from ttchampionship.utils import setup_logger

logger = setup_logger(__name__)

# An athlete with the slot they come from, if known
BracketEntrant = Tuple[Athlete, Optional[SlotSource]]


# ========== Bracket geometry ==========


def calculate_bracket_size(athletes_count: int) -> int:
    """Smallest power of two holding every athlete (at least 2)."""
    size = 2
    while size < athletes_count:
        size *= 2
    return size


def calculate_bye_count(athletes_count: int) -> int:
    return calculate_bracket_size(athletes_count) - athletes_count


def get_round_name(level: int, division: Division = DIVISION_MAIN) -> str:
    """Name of the round ``level`` steps from the final (the final is 1)."""
    name = ROUND_NAMES.get(level, f"{2 ** (level - 1)}ths of Final")
    if division == DIVISION_SECOND:
        name += SECOND_DIVISION_SUFFIX
    return name


def third_place_name(division: Division = DIVISION_MAIN) -> str:
    if division == DIVISION_SECOND:
        return THIRD_PLACE_ROUND + SECOND_DIVISION_SUFFIX
    return THIRD_PLACE_ROUND


def node_id(division: Division, level: int, position: int) -> str:
    return f"{division}-r{level}-p{position}"


def seed_positions(bracket_size: int) -> List[int]:
    """Ranks in draw order so that rank r meets rank ``size + 1 - r`` first.

    Rank 1 and rank 2 can only meet in the final, ranks 1 to 4 in the
    semifinals, and so on. Example for 8: ``[1, 8, 4, 5, 2, 7, 3, 6]``.
    """
    order = [1, 2]
    while len(order) < bracket_size:
        mirror = 2 * len(order) + 1
        order = [rank for r in order for rank in (r, mirror - r)]
    return order[:bracket_size]


@dataclass
class BracketRound:
    name: str
    level: int
    matches: int


@dataclass
class BracketStructure:
    """Shape of a bracket for a given number of entrants."""

    bracket_size: int
    bye_count: int
    rounds: List[BracketRound] = field(default_factory=list)

    @property
    def needs_bye(self) -> bool:
        return self.bye_count > 0


def bracket_structure(
    athletes_count: int, division: Division = DIVISION_MAIN
) -> BracketStructure:
    """Rounds of a bracket, first round first."""
    size = calculate_bracket_size(athletes_count)
    levels = int(math.log2(size))
    rounds = [
        BracketRound(get_round_name(level, division), level, 2 ** (level - 1))
        for level in range(levels, 0, -1)
    ]
    return BracketStructure(
        bracket_size=size, bye_count=size - athletes_count, rounds=rounds
    )


# ========== Results ==========


@dataclass
class BracketBuildResult:
    """Nodes of a freshly built bracket plus non-blocking warnings."""

    nodes: List[KnockoutNode]
    bracket_size: int
    bye_count: int
    warnings: List[str] = field(default_factory=list)

    @property
    def matches(self) -> List[Match]:
        return [n.match for n in self.nodes if n.match is not None]


def as_entrants(athletes: Sequence[Athlete]) -> List[BracketEntrant]:
    return [(athlete, None) for athlete in athletes]


# ========== Builder ==========


class BracketBuilder:
    """Builds single-elimination brackets.

    Entrants are ranked seeds first, by seed number, then the rest in the
    order given. Passing ``seed`` shuffles the unseeded entrants with a
    private ``random.Random`` instead.
    """

    def __init__(self, seed: Optional[int] = None):
        self.random = random.Random(seed) if seed is not None else None

    def rank_entrants(
        self, entrants: Sequence[BracketEntrant]
    ) -> List[BracketEntrant]:
        seeded = sorted(
            (e for e in entrants if e[0].is_seeded),
            key=lambda e: e[0].seed_number if e[0].seed_number is not None else 999,
        )
        unseeded = [e for e in entrants if not e[0].is_seeded]
        if self.random is not None:
            self.random.shuffle(unseeded)
        return seeded + unseeded

    def build(
        self,
        entrants: Sequence[BracketEntrant],
        division: Division = DIVISION_MAIN,
        has_third_place: bool = True,
    ) -> BracketBuildResult:
        """Create every node of a bracket and play out the BYEs.

        Args:
            entrants: Athletes with their origin slot (group and rank)
            division: ``"main"`` or ``"second"``
            has_third_place: Add the detached third-place node

        Returns:
            BracketBuildResult with nodes ordered first round first

        Raises:
            InvalidConfigurationException: With fewer than two entrants
        """
        if len(entrants) < 2:
            raise InvalidConfigurationException(
                f"A {division} bracket needs at least 2 athletes, got {len(entrants)}"
            )

        ranked = self.rank_entrants(entrants)
        size = calculate_bracket_size(len(ranked))
        bye_count = size - len(ranked)
        levels = int(math.log2(size))
        warnings = []

        seeds = sum(1 for athlete, _ in ranked if athlete.is_seeded)
        if bye_count > seeds:
            warnings.append(
                f"{bye_count} BYEs but only {seeds} seeds: "
                f"{bye_count - seeds} BYEs go to unseeded athletes"
            )

        # rank -> entrant, BYEs fill the ranks past the field
        slots: Dict[int, BracketEntrant] = {
            rank: entrant for rank, entrant in enumerate(ranked, start=1)
        }
        for rank in range(len(ranked) + 1, size + 1):
            slots[rank] = (Athlete.bye(f"{division}-{rank}"), None)

        nodes: List[KnockoutNode] = []
        for level in range(levels, 0, -1):
            for position in range(1, 2 ** (level - 1) + 1):
                nodes.append(self._make_node(division, level, position))

        draw = seed_positions(size)
        first_round = [n for n in nodes if n.level == levels]
        for node in first_round:
            athlete1, source1 = slots[draw[2 * node.position - 2]]
            athlete2, source2 = slots[draw[2 * node.position - 1]]
            node.player1_source = source1
            node.player2_source = source2
            node.match = make_node_match(node, athlete1, athlete2)

        if has_third_place and levels >= 2:
            nodes.append(self._make_third_place_node(division))

        propagate(nodes)

        for message in warnings:
            logger.warning(message)
        logger.info(
            f"Built {division} bracket: {len(ranked)} athletes, size {size}, "
            f"{bye_count} BYEs, {len(nodes)} nodes"
        )
        return BracketBuildResult(
            nodes=nodes, bracket_size=size, bye_count=bye_count, warnings=warnings
        )

    def _make_node(self, division: Division, level: int, position: int) -> KnockoutNode:
        node = KnockoutNode(
            id=node_id(division, level, position),
            round=get_round_name(level, division),
            position=position,
            level=level,
            division=division,
        )
        if level > 1:
            node.advances_to = node_id(division, level - 1, (position + 1) // 2)
        return node

    def _make_third_place_node(self, division: Division) -> KnockoutNode:
        return KnockoutNode(
            id=f"{division}-third-place",
            round=third_place_name(division),
            position=1,
            level=1,
            division=division,
            player1_source=SlotSource(
                SOURCE_KNOCKOUT, node_id(division, 2, 1), SLOT_LOSER
            ),
            player2_source=SlotSource(
                SOURCE_KNOCKOUT, node_id(division, 2, 2), SLOT_LOSER
            ),
            is_third_place=True,
        )



def make_node_match(node: KnockoutNode, athlete1: Athlete, athlete2: Athlete) -> Match:
    return Match.between(
        athlete1,
        athlete2,
        phase=PHASE_KNOCKOUT,
        round=node.round,
        position=node.position,
        is_third_place=node.is_third_place,
    )


def _link_feeders(nodes: List[KnockoutNode]) -> None:
    """Point every later-round slot at the node feeding it."""
    for node in nodes:
        if node.advances_to is None or node.is_third_place:
            continue
        parent = next((n for n in nodes if n.id == node.advances_to), None)
        if parent is None:
            continue
        source = SlotSource(SOURCE_KNOCKOUT, node.id, SLOT_WINNER)
        if node.position % 2 == 1:
            parent.player1_source = source
        else:
            parent.player2_source = source


# ========== Propagation ==========


def _resolve(source: Optional[SlotSource], by_id: Dict[str, KnockoutNode]):
    """Athlete occupying a knockout-sourced slot, None while unknown."""
    if source is None or source.type != SOURCE_KNOCKOUT:
        return None
    feeder = by_id.get(source.source_id)
    if feeder is None or not feeder.is_completed:
        return None
    match = feeder.match
    athlete_id = feeder.loser_id if source.is_loser_slot else feeder.winner_id
    if athlete_id == match.player1_id:
        return match.player1
    if athlete_id == match.player2_id:
        return match.player2
    return None


def complete_bye(match: Match) -> bool:
    """Award a BYE match to its real athlete. Returns True if it changed."""
    athlete = match.real_participant
    if not match.is_bye or athlete is None:
        return False
    if match.is_completed and match.winner_id == athlete.id and not match.sets:
        return False
    match.sets = []
    match.is_walkover = False
    match.walkover_winner_id = None
    match.winner_id = athlete.id
    match.is_completed = True
    match.completed_at = match.completed_at or datetime.now()
    return True


def propagate(nodes: List[KnockoutNode]) -> int:
    """Bring every node in line with the results of its feeders.

    A node gets its match once both occupants are known. A match whose
    occupants no longer match its feeders is rebuilt, dropping its result.
    BYE matches are completed. Running it twice changes nothing.

    Returns:
        Number of nodes changed
    """
    _link_feeders(nodes)
    by_id = {n.id: n for n in nodes}
    changed = 0

    ordered = sorted(nodes, key=lambda n: (n.division, -n.level, n.is_third_place))
    for node in ordered:
        sources = (node.player1_source, node.player2_source)
        fed = all(s is not None and s.type == SOURCE_KNOCKOUT for s in sources)
        if fed:
            athlete1 = _resolve(node.player1_source, by_id)
            athlete2 = _resolve(node.player2_source, by_id)
            if athlete1 is None or athlete2 is None:
                if node.match is not None:
                    logger.warning(f"{node.id}: feeder result withdrawn, match reset")
                    node.match = None
                    changed += 1
                continue

            expected = (athlete1.id, athlete2.id)
            if node.match is None:
                node.match = make_node_match(node, athlete1, athlete2)
                logger.debug(f"{node.id}: {athlete1.name} vs {athlete2.name}")
                changed += 1
            elif node.match.participant_ids != expected:
                if node.match.is_completed:
                    logger.warning(f"{node.id}: occupants changed, result dropped")
                node.match = make_node_match(node, athlete1, athlete2)
                changed += 1

        if node.match is not None and complete_bye(node.match):
            changed += 1

    return changed


# ========== Queries ==========


def division_final(
    nodes: Sequence[KnockoutNode], division: Division = DIVISION_MAIN
) -> Optional[KnockoutNode]:
    return next(
        (
            n
            for n in nodes
            if n.division == division and n.level == 1 and not n.is_third_place
        ),
        None,
    )


def division_third_place(
    nodes: Sequence[KnockoutNode], division: Division = DIVISION_MAIN
) -> Optional[KnockoutNode]:
    return next(
        (n for n in nodes if n.division == division and n.is_third_place), None
    )


def is_division_complete(
    nodes: Sequence[KnockoutNode], division: Division = DIVISION_MAIN
) -> bool:
    """Final decided, and the third-place match too when there is one."""
    final = division_final(nodes, division)
    if final is None or not final.is_completed:
        return False
    third = division_third_place(nodes, division)
    return third is None or third.is_completed


def podium(
    nodes: Sequence[KnockoutNode], division: Division = DIVISION_MAIN
) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """(champion, runner-up, third place) ids of a division, None if undecided."""
    final = division_final(nodes, division)
    third = division_third_place(nodes, division)
    champion = final.winner_id if final else None
    runner_up = final.loser_id if final else None
    third_place = third.winner_id if third else None
    return champion, runner_up, third_place
