"""Athlete data class."""

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
from typing import Any, Dict, Optional

from ttchampionship.constants import BYE_ID_PREFIX, BYE_NAME
from ttchampionship.utils import generate_id


@dataclass
class Athlete:
    """A championship entrant.

    Attributes
    ----------
    name : str
        Display name.
    id : str
        Unique identifier.
    is_seeded : bool
        Whether the athlete is a seed (cabeça de chave).
    seed_number : int, optional
        1-based seed rank, unique and contiguous among seeded athletes.
    is_virtual : bool
        Placeholder filling an empty bracket slot (a BYE). Never a real
        contestant.
    """

    name: str
    id: str = field(default_factory=lambda: generate_id("athlete"))
    is_seeded: bool = False
    seed_number: Optional[int] = None
    is_virtual: bool = False

    @classmethod
    def bye(cls, tag: str) -> "Athlete":
        """Create the virtual opponent for an empty bracket slot."""
        return cls(name=BYE_NAME, id=f"{BYE_ID_PREFIX}-{tag}", is_virtual=True)

    @property
    def seed_label(self) -> str:
        return f"#{self.seed_number}" if self.is_seeded and self.seed_number else ""

    def __str__(self) -> str:
        if self.seed_label:
            return f"{self.name} ({self.seed_label})"
        return self.name

    def to_dict(self) -> Dict[str, Any]:
        """Serialize athlete to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "is_seeded": self.is_seeded,
            "seed_number": self.seed_number,
            "is_virtual": self.is_virtual,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Athlete":
        """Deserialize athlete from dictionary."""
        return cls(
            id=data["id"],
            name=data["name"],
            is_seeded=data.get("is_seeded", False),
            seed_number=data.get("seed_number"),
            is_virtual=data.get("is_virtual", False),
        )
