"""Knockout bracket node data classes."""

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
from typing import Any, Dict, Optional

from ttchampionship.constants import DIVISION_MAIN, SLOT_LOSER, SOURCE_KNOCKOUT
from ttchampionship.models.athlete import Athlete
from ttchampionship.models.match import Match
from ttchampionship.type_hints import Division, SourceType


@dataclass
class SlotSource:
    """Where the occupant of a bracket slot comes from.

    For group sources ``position`` is the finishing rank in the group.
    For knockout sources 1 means the winner and 2 the loser of the source
    node.
    """

    type: SourceType
    source_id: str
    position: int

    @property
    def is_loser_slot(self) -> bool:
        return self.type == SOURCE_KNOCKOUT and self.position == SLOT_LOSER

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "source_id": self.source_id, "position": self.position}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["SlotSource"]:
        if not data:
            return None
        return cls(
            type=data["type"], source_id=data["source_id"], position=data["position"]
        )


@dataclass
class KnockoutNode:
    """One slot pair in a knockout bracket.

    Attributes
    ----------
    id : str
        Deterministic identifier (``"main-r2-p1"``).
    round : str
        Round label.
    position : int
        1-based position within the round.
    level : int
        Distance from the final, the final being 1.
    division : str
        ``"main"`` or ``"second"`` (repechage).
    match : Match, optional
        Filled once both occupants are known.
    advances_to : str, optional
        Node receiving this node's winner.
    player1_source, player2_source : SlotSource, optional
        Origin of each slot's occupant.
    is_third_place : bool
        Detached play-off between the semifinal losers.
    """

    id: str
    round: str
    position: int
    level: int
    division: Division = DIVISION_MAIN
    match: Optional[Match] = None
    advances_to: Optional[str] = None
    player1_source: Optional[SlotSource] = None
    player2_source: Optional[SlotSource] = None
    is_third_place: bool = False

    @property
    def is_completed(self) -> bool:
        return self.match is not None and self.match.is_completed

    @property
    def winner_id(self) -> Optional[str]:
        return self.match.winner_id if self.is_completed else None

    @property
    def loser_id(self) -> Optional[str]:
        return self.match.loser_id if self.is_completed else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "round": self.round,
            "position": self.position,
            "level": self.level,
            "division": self.division,
            "match": self.match.to_dict() if self.match else None,
            "advances_to": self.advances_to,
            "player1_source": self.player1_source.to_dict()
            if self.player1_source
            else None,
            "player2_source": self.player2_source.to_dict()
            if self.player2_source
            else None,
            "is_third_place": self.is_third_place,
        }

    @classmethod
    def from_dict(
        cls, data: Dict[str, Any], athletes: Dict[str, Athlete]
    ) -> "KnockoutNode":
        match_data = data.get("match")
        return cls(
            id=data["id"],
            round=data["round"],
            position=data["position"],
            level=data["level"],
            division=data.get("division", DIVISION_MAIN),
            match=Match.from_dict(match_data, athletes) if match_data else None,
            advances_to=data.get("advances_to"),
            player1_source=SlotSource.from_dict(data.get("player1_source")),
            player2_source=SlotSource.from_dict(data.get("player2_source")),
            is_third_place=data.get("is_third_place", False),
        )
