"""Match, set and match-result data classes."""

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
from typing import Any, Dict, List, Optional, Tuple

from dateutil.parser import isoparse

from ttchampionship.constants import PHASE_GROUPS
from ttchampionship.models.athlete import Athlete
from ttchampionship.type_hints import Phase, ScoreLines
from ttchampionship.utils import generate_id


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    return isoparse(value) if value else None


def _format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class SetResult:
    """Score of a single set.

    Legality is a pure function of the two scores, see
    :func:`ttchampionship.validation.match_rules.is_valid_set`.

    Attributes
    ----------
    player1_score : int
        Points scored by player 1.
    player2_score : int
        Points scored by player 2.
    winner_id : str, optional
        Explicit winner id, informational only.
    """

    player1_score: int
    player2_score: int
    winner_id: Optional[str] = None

    @property
    def scores(self) -> Tuple[int, int]:
        return self.player1_score, self.player2_score

    def __str__(self) -> str:
        return f"{self.player1_score}-{self.player2_score}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player1_score": self.player1_score,
            "player2_score": self.player2_score,
            "winner_id": self.winner_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SetResult":
        return cls(
            player1_score=data["player1_score"],
            player2_score=data["player2_score"],
            winner_id=data.get("winner_id"),
        )


def sets_from_scores(scores: ScoreLines) -> List[SetResult]:
    """Build set results from plain ``(player1, player2)`` score tuples."""
    return [SetResult(p1, p2) for p1, p2 in scores]


@dataclass
class TimeoutsUsed:
    """Whether each player has used their timeout in a match."""

    player1: bool = False
    player2: bool = False

    def to_dict(self) -> Dict[str, bool]:
        return {"player1": self.player1, "player2": self.player2}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "TimeoutsUsed":
        data = data or {}
        return cls(
            player1=data.get("player1", False), player2=data.get("player2", False)
        )


@dataclass
class Match:
    """A single match between two athletes.

    A walkover carries no sets. A completed match has either a walkover
    winner or a winner derived from its sets.

    Attributes
    ----------
    player1_id : str
        ID of the first athlete.
    player2_id : str
        ID of the second athlete.
    phase : str
        ``"groups"`` or ``"knockout"``.
    id : str
        Unique identifier.
    player1, player2 : Athlete, optional
        Resolved athlete references.
    sets : list of SetResult
        Played sets in order.
    winner_id : str, optional
        Winner once decided.
    is_walkover : bool
        Whether the match was decided without play.
    walkover_winner_id : str, optional
        Athlete awarded the walkover.
    is_completed : bool
        Completion flag.
    group_id : str, optional
        Owning group for group-stage matches.
    round : str, optional
        Round label for knockout matches (e.g. ``"Semifinal"``).
    position : int, optional
        Position within the knockout round.
    is_third_place : bool
        Whether this is a third-place play-off.
    timeouts_used : TimeoutsUsed
        Timeout flags per player.
    created_at, completed_at : datetime
        Timestamps.
    """

    player1_id: str
    player2_id: str
    phase: Phase = PHASE_GROUPS
    id: str = field(default_factory=lambda: generate_id("match"))
    player1: Optional[Athlete] = None
    player2: Optional[Athlete] = None
    sets: List[SetResult] = field(default_factory=list)
    winner_id: Optional[str] = None
    is_walkover: bool = False
    walkover_winner_id: Optional[str] = None
    is_completed: bool = False
    group_id: Optional[str] = None
    round: Optional[str] = None
    position: Optional[int] = None
    is_third_place: bool = False
    timeouts_used: TimeoutsUsed = field(default_factory=TimeoutsUsed)
    created_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @classmethod
    def between(cls, player1: Athlete, player2: Athlete, **kwargs: Any) -> "Match":
        """Create a match with resolved athlete references."""
        return cls(
            player1_id=player1.id,
            player2_id=player2.id,
            player1=player1,
            player2=player2,
            **kwargs,
        )

    # ========== Properties ==========

    @property
    def participant_ids(self) -> Tuple[str, str]:
        return self.player1_id, self.player2_id

    @property
    def loser_id(self) -> Optional[str]:
        """Loser once the match has a winner."""
        if not self.winner_id or not self.involves(self.winner_id):
            return None
        return self.opponent_of(self.winner_id)

    @property
    def is_bye(self) -> bool:
        """Whether one side is a virtual BYE athlete."""
        return bool(
            (self.player1 and self.player1.is_virtual)
            or (self.player2 and self.player2.is_virtual)
        )

    @property
    def real_participant(self) -> Optional[Athlete]:
        """The non-virtual side of a BYE match."""
        if self.player1 and not self.player1.is_virtual:
            return self.player1
        if self.player2 and not self.player2.is_virtual:
            return self.player2
        return None

    def involves(self, athlete_id: str) -> bool:
        return athlete_id in self.participant_ids

    def opponent_of(self, athlete_id: str) -> str:
        if athlete_id == self.player1_id:
            return self.player2_id
        if athlete_id == self.player2_id:
            return self.player1_id
        raise ValueError(f"Athlete {athlete_id} does not play match {self.id}")

    def __str__(self) -> str:
        name1 = self.player1.name if self.player1 else self.player1_id
        name2 = self.player2.name if self.player2 else self.player2_id
        score = " ".join(str(s) for s in self.sets)
        if self.is_walkover:
            score = "W.O."
        return f"{name1} vs {name2}" + (f" [{score}]" if score else "")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize match to dictionary; athletes are referenced by id."""
        return {
            "id": self.id,
            "player1_id": self.player1_id,
            "player2_id": self.player2_id,
            "phase": self.phase,
            "sets": [s.to_dict() for s in self.sets],
            "winner_id": self.winner_id,
            "is_walkover": self.is_walkover,
            "walkover_winner_id": self.walkover_winner_id,
            "is_completed": self.is_completed,
            "group_id": self.group_id,
            "round": self.round,
            "position": self.position,
            "is_third_place": self.is_third_place,
            "timeouts_used": self.timeouts_used.to_dict(),
            "created_at": _format_datetime(self.created_at),
            "completed_at": _format_datetime(self.completed_at),
        }

    @classmethod
    def from_dict(
        cls, data: Dict[str, Any], athletes: Optional[Dict[str, Athlete]] = None
    ) -> "Match":
        """Deserialize match from dictionary.

        Args:
            data: Serialized match
            athletes: Optional roster (id -> Athlete) used to re-link references
        """
        athletes = athletes or {}
        return cls(
            id=data["id"],
            player1_id=data["player1_id"],
            player2_id=data["player2_id"],
            player1=athletes.get(data["player1_id"]),
            player2=athletes.get(data["player2_id"]),
            phase=data.get("phase", PHASE_GROUPS),
            sets=[SetResult.from_dict(s) for s in data.get("sets", [])],
            winner_id=data.get("winner_id"),
            is_walkover=data.get("is_walkover", False),
            walkover_winner_id=data.get("walkover_winner_id"),
            is_completed=data.get("is_completed", False),
            group_id=data.get("group_id"),
            round=data.get("round"),
            position=data.get("position"),
            is_third_place=data.get("is_third_place", False),
            timeouts_used=TimeoutsUsed.from_dict(data.get("timeouts_used")),
            created_at=_parse_datetime(data.get("created_at")) or datetime.now(),
            completed_at=_parse_datetime(data.get("completed_at")),
        )


@dataclass
class MatchResult:
    """A result submitted for recording.

    Attributes
    ----------
    match_id : str
        Match the result belongs to.
    sets : list of SetResult
        Played sets, empty for a walkover.
    is_walkover : bool
        Whether the match was decided without play.
    walkover_winner_id : str, optional
        Athlete awarded the walkover.
    timeouts_used : TimeoutsUsed, optional
        Timeout flags; left untouched when omitted.
    """

    match_id: str
    sets: List[SetResult] = field(default_factory=list)
    is_walkover: bool = False
    walkover_winner_id: Optional[str] = None
    timeouts_used: Optional[TimeoutsUsed] = None

    @classmethod
    def from_scores(cls, match_id: str, scores: ScoreLines) -> "MatchResult":
        return cls(match_id=match_id, sets=sets_from_scores(scores))

    @classmethod
    def walkover(cls, match_id: str, winner_id: str) -> "MatchResult":
        return cls(match_id=match_id, is_walkover=True, walkover_winner_id=winner_id)
