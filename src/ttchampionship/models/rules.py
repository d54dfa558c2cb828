"""Federation rule set data class."""

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
from dataclasses import dataclass
from typing import ClassVar, Dict, Tuple

from ttchampionship.constants import (
    DEFAULT_POINTS_PER_LOSS,
    DEFAULT_POINTS_PER_WIN,
    RULES_CBTM,
    RULES_ITTF,
)
from ttchampionship.exceptions import UnknownRulesException


@dataclass(frozen=True, slots=True)
class RuleSet:
    """
    Read-only competition rules of a table tennis federation.

    Parameters
    ----------
    code : str
        Short federation code (e.g. ``"CBTM"``, ``"ITTF"``).
    name : str
        Human-readable federation name.
    minimum_points_to_win : int
        Points needed to take a set.
    minimum_difference_to_win : int
        Minimum margin in a set.
    deuce_difference : int
        Exact margin required once both sides reach 10 points.
    best_of_options : tuple of int
        Legal match lengths.
    groups_best_of_options : tuple of int
        Legal match lengths in the group stage.
    points_per_win : int
        Standings points awarded per match won.
    """

    code: str
    name: str
    minimum_points_to_win: int = 11
    minimum_difference_to_win: int = 2
    deuce_difference: int = 2
    best_of_options: Tuple[int, ...] = (3, 5, 7)
    groups_best_of_options: Tuple[int, ...] = (3, 5)
    default_groups_best_of: int = 5
    default_knockout_best_of: int = 5
    timeouts_per_player: int = 1
    min_athletes_per_group: int = 3
    max_athletes_per_group: int = 5
    min_groups_for_tournament: int = 2
    min_athletes_for_knockout: int = 4
    max_seeds_allowed: int = 16
    points_per_win: int = DEFAULT_POINTS_PER_WIN
    points_per_loss: int = DEFAULT_POINTS_PER_LOSS

    # ---- predefined registry ----
    _REGISTRY: ClassVar[Dict[str, "RuleSet"]] = {}

    def __post_init__(self) -> None:
        """Register the rule set under its code."""
        object.__setattr__(self, "code", self.code.upper())

        if self.code in self._REGISTRY:
            raise ValueError(f"Rule set '{self.code}' already registered")
        self._REGISTRY[self.code] = self

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"RuleSet(code='{self.code}', name='{self.name}')"

    @classmethod
    def from_code(cls, code: str) -> "RuleSet":
        """Lookup a rule set from its code. Codes are: CBTM, ITTF."""
        try:
            return cls._REGISTRY[code.upper()]
        except KeyError as exc:
            raise UnknownRulesException(f"Unknown rule set code: {code}") from exc

    # ---- derived rules ----

    def is_valid_best_of(self, best_of: int) -> bool:
        return best_of in self.best_of_options

    def is_valid_groups_best_of(self, best_of: int) -> bool:
        return best_of in self.groups_best_of_options

    def is_valid_group_size(self, group_size: int) -> bool:
        return self.min_athletes_per_group <= group_size <= self.max_athletes_per_group

    def sets_to_win(self, best_of: int) -> int:
        """Set wins needed to take a best-of-N match (2, 3 or 4)."""
        return math.ceil(best_of / 2)

    def recommended_seeds(self, total_athletes: int) -> int:
        """Recommended number of seeds for a field of the given size."""
        if total_athletes >= 32:
            return 8
        if total_athletes >= 16:
            return 4
        if total_athletes >= 8:
            return 2
        return 0


CBTM_RULES = RuleSet(code=RULES_CBTM, name="Brazilian Table Tennis Confederation")
ITTF_RULES = RuleSet(code=RULES_ITTF, name="International Table Tennis Federation")
