"""Domain models for Table Tennis Championship."""

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

from ttchampionship.models.athlete import Athlete
from ttchampionship.models.championship import Championship, MatchOwner
from ttchampionship.models.config import TournamentConfig
from ttchampionship.models.group import Group, GroupStanding
from ttchampionship.models.knockout import KnockoutNode, SlotSource
from ttchampionship.models.match import (
    Match,
    MatchResult,
    SetResult,
    TimeoutsUsed,
    sets_from_scores,
)
from ttchampionship.models.rules import CBTM_RULES, ITTF_RULES, RuleSet

__all__ = [
    "Athlete",
    "CBTM_RULES",
    "Championship",
    "Group",
    "GroupStanding",
    "ITTF_RULES",
    "KnockoutNode",
    "Match",
    "MatchOwner",
    "MatchResult",
    "RuleSet",
    "SetResult",
    "SlotSource",
    "TimeoutsUsed",
    "TournamentConfig",
    "sets_from_scores",
]
