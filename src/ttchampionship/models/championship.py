"""Championship aggregate root."""

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
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from dateutil.parser import isoparse

from ttchampionship.constants import (
    BYE_ID_PREFIX,
    DEFAULT_POINTS_PER_WIN,
    DEFAULT_RULES,
    DIVISION_MAIN,
    STATUS_CREATED,
    STATUS_ORDER,
)
from ttchampionship.exceptions import TournamentStateException
from ttchampionship.models.athlete import Athlete
from ttchampionship.models.config import TournamentConfig
from ttchampionship.models.group import Group
from ttchampionship.models.knockout import KnockoutNode
from ttchampionship.models.match import Match
from ttchampionship.models.rules import RuleSet
from ttchampionship.type_hints import Status
from ttchampionship.utils import generate_id

MatchOwner = Union[Group, KnockoutNode]


@dataclass
class Championship:
    """A group-stage plus knockout championship.

    Owns its groups and bracket nodes. Athletes are shared by reference
    between the roster, groups and matches. ``total_matches`` and
    ``completed_matches`` are derived by :meth:`refresh_counters`.
    """

    name: str
    id: str = field(default_factory=lambda: generate_id("championship"))
    date: Optional[datetime] = None
    status: Status = STATUS_CREATED
    group_size: int = 4
    qualification_spots_per_group: int = 2
    groups_best_of: int = 5
    knockout_best_of: int = 5
    has_third_place: bool = True
    has_repechage: bool = False
    points_per_win: int = DEFAULT_POINTS_PER_WIN
    rules_code: str = DEFAULT_RULES
    athletes: List[Athlete] = field(default_factory=list)
    groups: List[Group] = field(default_factory=list)
    knockout_bracket: List[KnockoutNode] = field(default_factory=list)
    total_matches: int = 0
    completed_matches: int = 0
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def from_config(
        cls, config: TournamentConfig, athletes: Optional[List[Athlete]] = None
    ) -> "Championship":
        return cls(
            name=config.name,
            date=config.date,
            group_size=config.group_size,
            qualification_spots_per_group=config.qualification_spots_per_group,
            groups_best_of=config.groups_best_of,
            knockout_best_of=config.knockout_best_of,
            has_third_place=config.has_third_place,
            has_repechage=config.has_repechage,
            points_per_win=config.points_per_win,
            rules_code=config.rules_code,
            athletes=list(athletes or []),
        )

    # ========== Properties ==========

    @property
    def config(self) -> TournamentConfig:
        return TournamentConfig(
            name=self.name,
            date=self.date,
            group_size=self.group_size,
            qualification_spots_per_group=self.qualification_spots_per_group,
            groups_best_of=self.groups_best_of,
            knockout_best_of=self.knockout_best_of,
            has_third_place=self.has_third_place,
            has_repechage=self.has_repechage,
            points_per_win=self.points_per_win,
            rules_code=self.rules_code,
        )

    @property
    def rules(self) -> RuleSet:
        return RuleSet.from_code(self.rules_code)

    @property
    def total_athletes(self) -> int:
        return len(self.athletes)

    @property
    def seeded_athletes(self) -> List[Athlete]:
        return sorted(
            (a for a in self.athletes if a.is_seeded),
            key=lambda a: a.seed_number if a.seed_number is not None else 999,
        )

    @property
    def has_knockout(self) -> bool:
        return bool(self.knockout_bracket)

    # ========== Lookups ==========

    def get_athlete(self, athlete_id: str) -> Optional[Athlete]:
        return next((a for a in self.athletes if a.id == athlete_id), None)

    def get_group(self, group_id: str) -> Optional[Group]:
        return next((g for g in self.groups if g.id == group_id), None)

    def get_node(self, node_id: str) -> Optional[KnockoutNode]:
        return next((n for n in self.knockout_bracket if n.id == node_id), None)

    def division_nodes(self, division: str = DIVISION_MAIN) -> List[KnockoutNode]:
        return [n for n in self.knockout_bracket if n.division == division]

    def group_matches(self) -> List[Match]:
        return [m for g in self.groups for m in g.matches]

    def knockout_matches(self, division: Optional[str] = None) -> List[Match]:
        return [
            n.match
            for n in self.knockout_bracket
            if n.match is not None and (division is None or n.division == division)
        ]

    def all_matches(self) -> List[Match]:
        return self.group_matches() + self.knockout_matches()

    def find_match(self, match_id: str) -> Optional[Tuple[Match, MatchOwner]]:
        """Locate a match and the group or bracket node that owns it."""
        for group in self.groups:
            match = group.get_match(match_id)
            if match is not None:
                return match, group
        for node in self.knockout_bracket:
            if node.match is not None and node.match.id == match_id:
                return node.match, node
        return None

    # ========== State ==========

    def refresh_counters(self) -> None:
        """Recompute match totals; BYE matches are not counted."""
        playable = [
            m
            for m in self.all_matches()
            if not m.is_bye and m.player1_id != m.player2_id
        ]
        self.total_matches = len(playable)
        self.completed_matches = sum(1 for m in playable if m.is_completed)

    def advance_status(self, status: Status) -> None:
        """Move the lifecycle forward.

        Raises:
            TournamentStateException: If ``status`` is behind the current one
        """
        if STATUS_ORDER.index(status) < STATUS_ORDER.index(self.status):
            raise TournamentStateException(
                f"Cannot move championship from '{self.status}' back to '{status}'"
            )
        self.status = status
        self.touch()

    def touch(self) -> None:
        self.updated_at = datetime.now()

    def __str__(self) -> str:
        return f"{self.name} [{self.status}] ({self.total_athletes} athletes)"

    # ========== Serialization ==========

    def to_dict(self) -> Dict[str, Any]:
        """Serialize championship to dictionary."""
        data = self.config.to_dict()
        data.update(
            {
                "id": self.id,
                "status": self.status,
                "athletes": [a.to_dict() for a in self.athletes],
                "groups": [g.to_dict() for g in self.groups],
                "knockout_bracket": [n.to_dict() for n in self.knockout_bracket],
                "total_matches": self.total_matches,
                "completed_matches": self.completed_matches,
                "created_at": self.created_at.isoformat(),
                "updated_at": self.updated_at.isoformat(),
            }
        )
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Championship":
        """Deserialize championship from dictionary, re-linking shared athletes."""
        config = TournamentConfig.from_dict(data)
        athletes = [Athlete.from_dict(a) for a in data.get("athletes", [])]
        lookup = {a.id: a for a in athletes}
        lookup.update(_bye_athletes(data.get("knockout_bracket", [])))

        championship = cls.from_config(config, athletes)
        championship.id = data["id"]
        championship.status = data.get("status", STATUS_CREATED)
        championship.groups = [Group.from_dict(g, lookup) for g in data.get("groups", [])]
        championship.knockout_bracket = [
            KnockoutNode.from_dict(n, lookup) for n in data.get("knockout_bracket", [])
        ]
        if data.get("created_at"):
            championship.created_at = isoparse(data["created_at"])
        if data.get("updated_at"):
            championship.updated_at = isoparse(data["updated_at"])
        championship.refresh_counters()
        return championship


def _bye_athletes(nodes: List[Dict[str, Any]]) -> Dict[str, Athlete]:
    """Recreate the virtual athletes referenced by serialized bracket nodes."""
    prefix = f"{BYE_ID_PREFIX}-"
    byes = {}
    for node in nodes:
        match = node.get("match") or {}
        for key in ("player1_id", "player2_id"):
            athlete_id = match.get(key) or ""
            if athlete_id.startswith(prefix):
                byes[athlete_id] = Athlete.bye(athlete_id[len(prefix) :])
    return byes
