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

# --- Constants ---
DEFAULT_CHAMPIONSHIP_NAME = "Untitled Championship"

# Championship lifecycle (forward only)
STATUS_CREATED = "created"
STATUS_GROUPS = "groups"
STATUS_KNOCKOUT = "knockout"
STATUS_COMPLETED = "completed"
STATUS_ORDER = [STATUS_CREATED, STATUS_GROUPS, STATUS_KNOCKOUT, STATUS_COMPLETED]

# Match phases
PHASE_GROUPS = "groups"
PHASE_KNOCKOUT = "knockout"

# Set sides
PLAYER1 = "player1"
PLAYER2 = "player2"

# Knockout divisions
DIVISION_MAIN = "main"
DIVISION_SECOND = "second"
SECOND_DIVISION_SUFFIX = " - Second Division"

# Slot sources
SOURCE_GROUP = "group"
SOURCE_KNOCKOUT = "knockout"
SLOT_WINNER = 1  # knockout source position: winner of the source node
SLOT_LOSER = 2  # knockout source position: loser of the source node

# Round names, keyed by distance from the final (1 = final)
ROUND_NAMES = {
    1: "Final",
    2: "Semifinal",
    3: "Quarterfinal",
    4: "Round of 16",
    5: "Round of 32",
    6: "Round of 64",
}
THIRD_PLACE_ROUND = "Third Place"

# Virtual athletes filling empty bracket slots
BYE_NAME = "BYE"
BYE_ID_PREFIX = "bye"

# Standings points (see DESIGN.md, "Points per win")
DEFAULT_POINTS_PER_WIN = 2
DEFAULT_POINTS_PER_LOSS = 0

# Automatic seeding on championship creation
MAX_AUTO_SEEDS = 4
AUTO_SEED_RATIO = 4  # one seed per this many athletes

# Federation codes
RULES_CBTM = "CBTM"
RULES_ITTF = "ITTF"
DEFAULT_RULES = RULES_CBTM
