"""Championship management for Table Tennis Championship.

Group draw, standings, knockout brackets, result recording and the
lifecycle manager tying them together.
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

from ttchampionship.tournament.bracket_builder import (
    BracketBuilder,
    BracketBuildResult,
    bracket_structure,
    calculate_bracket_size,
    calculate_bye_count,
    get_round_name,
    propagate,
)
from ttchampionship.tournament.championship_manager import (
    ChampionshipManager,
    Podium,
    SecondDivisionReport,
    TournamentStats,
)
from ttchampionship.tournament.group_builder import (
    GroupBuilder,
    GroupGenerationResult,
    ManualGroup,
    generate_group_matches,
)
from ttchampionship.tournament.result_recorder import ResultRecorder
from ttchampionship.tournament.standings import StandingsCalculator

__all__ = [
    "ChampionshipManager",
    "ResultRecorder",
    "StandingsCalculator",
    "GroupBuilder",
    "GroupGenerationResult",
    "ManualGroup",
    "generate_group_matches",
    "BracketBuilder",
    "BracketBuildResult",
    "bracket_structure",
    "calculate_bracket_size",
    "calculate_bye_count",
    "get_round_name",
    "propagate",
    "Podium",
    "SecondDivisionReport",
    "TournamentStats",
]
