"""TournamentConfig data class."""

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

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from dateutil.parser import isoparse

from ttchampionship.constants import (
    DEFAULT_CHAMPIONSHIP_NAME,
    DEFAULT_POINTS_PER_WIN,
    DEFAULT_RULES,
)
from ttchampionship.models.rules import RuleSet


@dataclass
class TournamentConfig:
    """Championship configuration settings.

    Attributes
    ----------
    name : str
        Championship name.
    date : datetime, optional
        Day of play.
    group_size : int
        Target athletes per group (3 to 5).
    qualification_spots_per_group : int
        Athletes advancing from each group.
    groups_best_of : int
        Match length in the group stage (3 or 5).
    knockout_best_of : int
        Match length in the knockout stage (3, 5 or 7).
    has_third_place : bool
        Play off the semifinal losers.
    has_repechage : bool
        Build a second division from the athletes eliminated in the groups.
    points_per_win : int
        Standings points per match won.
    rules_code : str
        Federation rule set code.
    """

    name: str = DEFAULT_CHAMPIONSHIP_NAME
    date: Optional[datetime] = None
    group_size: int = 4
    qualification_spots_per_group: int = 2
    groups_best_of: int = 5
    knockout_best_of: int = 5
    has_third_place: bool = True
    has_repechage: bool = False
    points_per_win: int = DEFAULT_POINTS_PER_WIN
    rules_code: str = DEFAULT_RULES

    @property
    def rules(self) -> RuleSet:
        return RuleSet.from_code(self.rules_code)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize configuration to dictionary."""
        return {
            "name": self.name,
            "date": self.date.isoformat() if self.date else None,
            "group_size": self.group_size,
            "qualification_spots_per_group": self.qualification_spots_per_group,
            "groups_best_of": self.groups_best_of,
            "knockout_best_of": self.knockout_best_of,
            "has_third_place": self.has_third_place,
            "has_repechage": self.has_repechage,
            "points_per_win": self.points_per_win,
            "rules_code": self.rules_code,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TournamentConfig":
        """Deserialize configuration from dictionary."""
        return cls(
            name=data.get("name", DEFAULT_CHAMPIONSHIP_NAME),
            date=isoparse(data["date"]) if data.get("date") else None,
            group_size=data.get("group_size", 4),
            qualification_spots_per_group=data.get("qualification_spots_per_group", 2),
            groups_best_of=data.get("groups_best_of", 5),
            knockout_best_of=data.get("knockout_best_of", 5),
            has_third_place=data.get("has_third_place", True),
            has_repechage=data.get("has_repechage", False),
            points_per_win=data.get("points_per_win", DEFAULT_POINTS_PER_WIN),
            rules_code=data.get("rules_code", DEFAULT_RULES),
        )
