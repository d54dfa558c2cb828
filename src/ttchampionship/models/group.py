"""Group and group standing data classes."""

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
from typing import Any, Dict, List, Optional

from ttchampionship.exceptions import AthleteNotFoundException
from ttchampionship.models.athlete import Athlete
from ttchampionship.models.match import Match
from ttchampionship.utils import generate_id


@dataclass
class GroupStanding:
    """One athlete's row in a group table. Always recomputed, never patched.

    Attributes
    ----------
    athlete : Athlete
        The athlete this row belongs to.
    matches : int
        Completed matches played.
    wins, losses : int
        Match results.
    points : int
        Standings points.
    sets_won, sets_lost, sets_diff : int
        Set totals.
    points_won, points_lost, points_diff : int
        Rally point totals.
    position : int
        1-based rank within the group.
    qualified : bool
        Whether the rank earns a knockout slot.
    """

    athlete: Athlete
    matches: int = 0
    wins: int = 0
    losses: int = 0
    points: int = 0
    sets_won: int = 0
    sets_lost: int = 0
    sets_diff: int = 0
    points_won: int = 0
    points_lost: int = 0
    points_diff: int = 0
    position: int = 0
    qualified: bool = False

    @property
    def athlete_id(self) -> str:
        return self.athlete.id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "athlete_id": self.athlete_id,
            "matches": self.matches,
            "wins": self.wins,
            "losses": self.losses,
            "points": self.points,
            "sets_won": self.sets_won,
            "sets_lost": self.sets_lost,
            "sets_diff": self.sets_diff,
            "points_won": self.points_won,
            "points_lost": self.points_lost,
            "points_diff": self.points_diff,
            "position": self.position,
            "qualified": self.qualified,
        }


@dataclass
class Group:
    """A round-robin group.

    ``matches`` always holds exactly one match per unordered pair of
    ``athletes``.
    """

    name: str
    athletes: List[Athlete] = field(default_factory=list)
    id: str = field(default_factory=lambda: generate_id("group"))
    matches: List[Match] = field(default_factory=list)
    standings: List[GroupStanding] = field(default_factory=list)
    qualification_spots: int = 2
    is_completed: bool = False

    @property
    def athlete_ids(self) -> List[str]:
        return [a.id for a in self.athletes]

    @property
    def size(self) -> int:
        return len(self.athletes)

    @property
    def completed_matches(self) -> int:
        return sum(1 for m in self.matches if m.is_completed)

    def get_match(self, match_id: str) -> Optional[Match]:
        return next((m for m in self.matches if m.id == match_id), None)

    def get_standing(self, athlete_id: str) -> Optional[GroupStanding]:
        return next((s for s in self.standings if s.athlete_id == athlete_id), None)

    def refresh_completion(self) -> bool:
        """Recompute the completion flag from the matches."""
        self.is_completed = bool(self.matches) and all(
            m.is_completed for m in self.matches
        )
        return self.is_completed

    def __str__(self) -> str:
        return f"{self.name} ({self.size} athletes)"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize group to dictionary; athletes are referenced by id."""
        return {
            "id": self.id,
            "name": self.name,
            "athlete_ids": self.athlete_ids,
            "matches": [m.to_dict() for m in self.matches],
            "standings": [s.to_dict() for s in self.standings],
            "qualification_spots": self.qualification_spots,
            "is_completed": self.is_completed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], athletes: Dict[str, Athlete]) -> "Group":
        """Deserialize group from dictionary, re-linking the roster.

        Raises:
            AthleteNotFoundException: If a member id is not in the roster
        """
        try:
            members = [athletes[athlete_id] for athlete_id in data["athlete_ids"]]
            standings = [
                GroupStanding(
                    athlete=athletes[row["athlete_id"]],
                    **{k: v for k, v in row.items() if k != "athlete_id"},
                )
                for row in data.get("standings", [])
            ]
        except KeyError as exc:
            raise AthleteNotFoundException(
                f"Group {data.get('name')} references unknown athlete {exc}"
            ) from exc
        return cls(
            id=data["id"],
            name=data["name"],
            athletes=members,
            matches=[Match.from_dict(m, athletes) for m in data.get("matches", [])],
            standings=standings,
            qualification_spots=data.get("qualification_spots", 2),
            is_completed=data.get("is_completed", False),
        )
