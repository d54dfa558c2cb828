"""Set and match legality under CBTM/ITTF rules.

A set is won by the first side to reach 11 points with a margin of at
least 2; from 10-10 on the set continues until one side leads by exactly 2.
A best-of-N match is won by the first side to take ``ceil(N/2)`` sets.
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

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ttchampionship.constants import PLAYER1, PLAYER2
from ttchampionship.exceptions import InvalidConfigurationException
from ttchampionship.models.match import Match, SetResult
from ttchampionship.models.rules import CBTM_RULES, RuleSet
from ttchampionship.type_hints import Side
from ttchampionship.utils.validation import ValidationResult


def is_valid_set(
    score1: int, score2: int, rules: RuleSet = CBTM_RULES
) -> ValidationResult:
    """Check a single set score.

    Args:
        score1: Points of player 1
        score2: Points of player 2
        rules: Federation rules to apply

    Returns:
        ValidationResult, falsy with a reason when the score is illegal

    Example:
        >>> bool(is_valid_set(12, 10))
        True
        >>> is_valid_set(10, 9).error_message
        'Winner must reach at least 11 points'
    """
    if score1 < 0 or score2 < 0:
        return ValidationResult(False, "Scores cannot be negative")

    if score1 == 0 and score2 == 0:
        return ValidationResult(False, "A set cannot end 0-0")

    high, low = max(score1, score2), min(score1, score2)
    difference = high - low

    if high < rules.minimum_points_to_win:
        return ValidationResult(
            False,
            f"Winner must reach at least {rules.minimum_points_to_win} points",
        )

    if difference < rules.minimum_difference_to_win:
        return ValidationResult(
            False,
            f"Winner must lead by at least {rules.minimum_difference_to_win} points",
        )

    deuce_from = rules.minimum_points_to_win - 1
    if low >= deuce_from and difference != rules.deuce_difference:
        return ValidationResult(
            False,
            f"From {deuce_from}-{deuce_from} the set must end with a "
            f"{rules.deuce_difference}-point lead",
        )

    return ValidationResult(True, sanitized_value=f"{score1}-{score2}")


def get_set_winner(set_result: SetResult) -> Optional[Side]:
    """Side with the strictly higher score, ``None`` on a tie."""
    if set_result.player1_score > set_result.player2_score:
        return PLAYER1
    if set_result.player2_score > set_result.player1_score:
        return PLAYER2
    return None


def _check_best_of(best_of: int, rules: RuleSet) -> None:
    if not rules.is_valid_best_of(best_of):
        raise InvalidConfigurationException(
            f"Invalid match format best-of-{best_of}; "
            f"use one of {', '.join(str(b) for b in rules.best_of_options)}"
        )


def get_match_winner(
    sets: Sequence[SetResult],
    best_of: int,
    player1_id: str,
    player2_id: str,
    rules: RuleSet = CBTM_RULES,
) -> Optional[str]:
    """Determine who won a match from its sets.

    Sets are scanned left to right and illegal ones skipped. The first
    athlete to take ``ceil(best_of / 2)`` legal sets wins; sets after the
    clinching one are ignored.

    Args:
        sets: Played sets in order
        best_of: Match length (3, 5 or 7)
        player1_id: ID returned when player 1 wins
        player2_id: ID returned when player 2 wins
        rules: Federation rules to apply

    Returns:
        The winner's id, or None while the match is undecided

    Raises:
        InvalidConfigurationException: If ``best_of`` is not a legal format
    """
    _check_best_of(best_of, rules)
    needed = rules.sets_to_win(best_of)
    player1_sets = player2_sets = 0

    for set_result in sets:
        if not is_valid_set(set_result.player1_score, set_result.player2_score, rules):
            continue
        if get_set_winner(set_result) == PLAYER1:
            player1_sets += 1
        else:
            player2_sets += 1

        if player1_sets >= needed:
            return player1_id
        if player2_sets >= needed:
            return player2_id

    return None


@dataclass
class MatchStats:
    """Read-only projection of a match's sets."""

    total_sets: int = 0
    valid_sets: int = 0
    player1_sets: int = 0
    player2_sets: int = 0
    player1_points: int = 0
    player2_points: int = 0
    is_completed: bool = False
    winner_id: Optional[str] = None


def calculate_match_stats(
    match: Match, best_of: int, rules: RuleSet = CBTM_RULES
) -> MatchStats:
    """Aggregate set and point totals of a match without touching it.

    Set wins count legal sets only, rally points count every set.
    """
    stats = MatchStats(total_sets=len(match.sets))
    for set_result in match.sets:
        stats.player1_points += set_result.player1_score
        stats.player2_points += set_result.player2_score
        if not is_valid_set(set_result.player1_score, set_result.player2_score, rules):
            continue
        stats.valid_sets += 1
        if get_set_winner(set_result) == PLAYER1:
            stats.player1_sets += 1
        else:
            stats.player2_sets += 1

    if match.is_walkover:
        stats.winner_id = match.walkover_winner_id or match.winner_id
    else:
        stats.winner_id = get_match_winner(
            match.sets, best_of, match.player1_id, match.player2_id, rules
        )
    stats.is_completed = stats.winner_id is not None
    return stats


@dataclass
class MatchValidation:
    """Outcome of validating a match's sets.

    A legal but unfinished match is valid with ``winner`` left as None.
    """

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    winner: Optional[Side] = None

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def is_decided(self) -> bool:
        return self.winner is not None

    def __bool__(self) -> bool:
        return self.is_valid


def validate_match(
    sets: Sequence[SetResult], best_of: int, rules: RuleSet = CBTM_RULES
) -> MatchValidation:
    """Validate every set of a match and report the winner side if decided.

    Args:
        sets: Played sets in order
        best_of: Match length
        rules: Federation rules to apply

    Returns:
        MatchValidation with per-set errors (``"Set 2: ..."``)
    """
    result = MatchValidation()
    if not rules.is_valid_best_of(best_of):
        result.errors.append(
            f"Invalid match format best-of-{best_of}; "
            f"use one of {', '.join(str(b) for b in rules.best_of_options)}"
        )
        return result

    if len(sets) > best_of:
        result.errors.append(
            f"A best-of-{best_of} match cannot have {len(sets)} sets"
        )

    for index, set_result in enumerate(sets, start=1):
        check = is_valid_set(set_result.player1_score, set_result.player2_score, rules)
        if not check:
            result.errors.append(f"Set {index}: {check.error_message}")

    if not result.is_valid:
        return result

    needed = rules.sets_to_win(best_of)
    won = {PLAYER1: 0, PLAYER2: 0}
    for index, set_result in enumerate(sets, start=1):
        if result.winner is not None:
            result.warnings.append(
                f"Set {index} was played after the match was decided"
            )
            continue
        side = get_set_winner(set_result)
        won[side] += 1
        if won[side] >= needed:
            result.winner = side

    return result
