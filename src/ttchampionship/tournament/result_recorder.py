"""Result recording for championships.

This module folds submitted match results into a championship: it
validates the result, stores it on the match, then rebuilds the owning
group's table or moves the bracket forward.
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

import copy
from datetime import datetime

from ttchampionship.constants import (
    DIVISION_MAIN,
    DIVISION_SECOND,
    PHASE_GROUPS,
    STATUS_COMPLETED,
    STATUS_KNOCKOUT,
)
from ttchampionship.exceptions import (
    InvalidResultException,
    ResultNotFoundException,
    TournamentStateException,
)
from ttchampionship.models import Championship, Group, Match, MatchResult
from ttchampionship.tournament.bracket_builder import is_division_complete, propagate
from ttchampionship.tournament.standings import StandingsCalculator
from ttchampionship.utils import setup_logger
from ttchampionship.validation.match_rules import get_match_winner, validate_match

logger = setup_logger(__name__)


class ResultRecorder:
    """Handles recording and validating match results.

    This class is responsible for:
    - Rejecting results that break the set rules or name a stranger as winner
    - Storing sets, walkovers and timeouts on the match
    - Recomputing the owning group's standings
    - Moving winners (and semifinal losers) through the bracket
    - Closing the championship once every final is decided

    The championship passed in is never modified; a new one is returned.
    """

    def record_result(
        self, championship: Championship, result: MatchResult
    ) -> Championship:
        """Record a match result.

        Args:
            championship: Current championship state
            result: Submitted result

        Returns:
            Updated copy of the championship

        Raises:
            ResultNotFoundException: If the match does not exist
            InvalidResultException: If the result is not legal for the match
            TournamentStateException: If the championship is already completed,
                or the match is a group match and the knockout is drawn
        """
        if championship.status == STATUS_COMPLETED:
            raise TournamentStateException(
                f"{championship.name} is completed, results are frozen"
            )

        updated = copy.deepcopy(championship)
        found = updated.find_match(result.match_id)
        if found is None:
            raise ResultNotFoundException(f"Match not found: {result.match_id}")
        match, owner = found
        if match.phase == PHASE_GROUPS and updated.has_knockout:
            raise TournamentStateException(
                f"Group results are locked once the knockout is drawn: {match.id}"
            )

        best_of = (
            updated.groups_best_of
            if match.phase == PHASE_GROUPS
            else updated.knockout_best_of
        )
        self._apply(match, result, best_of, updated)

        if isinstance(owner, Group):
            calculator = StandingsCalculator(
                points_per_win=updated.points_per_win, rules=updated.rules
            )
            calculator.refresh_group(owner, updated.groups_best_of)
            logger.debug(f"{owner.name}: standings recomputed")
        else:
            propagate(updated.knockout_bracket)
            self._check_completion(updated)

        updated.refresh_counters()
        updated.touch()
        return updated

    def set_walkover(
        self, championship: Championship, match_id: str, winner_id: str
    ) -> Championship:
        """Award a match without play."""
        return self.record_result(
            championship, MatchResult.walkover(match_id, winner_id)
        )

    def _apply(
        self,
        match: Match,
        result: MatchResult,
        best_of: int,
        championship: Championship,
    ) -> None:
        if match.is_bye:
            raise InvalidResultException(
                f"Match {match.id} is a BYE and cannot take a result"
            )

        if result.is_walkover:
            winner_id = result.walkover_winner_id
            if not winner_id or not match.involves(winner_id):
                raise InvalidResultException(
                    f"Walkover winner {winner_id!r} does not play match {match.id}"
                )
            match.sets = []
            match.is_walkover = True
            match.walkover_winner_id = winner_id
        else:
            validation = validate_match(result.sets, best_of, championship.rules)
            if not validation:
                raise InvalidResultException(
                    f"Invalid result for match {match.id}: "
                    + "; ".join(validation.errors)
                )
            for message in validation.warnings:
                logger.warning(f"Match {match.id}: {message}")
            match.sets = list(result.sets)
            match.is_walkover = False
            match.walkover_winner_id = None
            winner_id = get_match_winner(
                match.sets,
                best_of,
                match.player1_id,
                match.player2_id,
                championship.rules,
            )

        if result.timeouts_used is not None:
            match.timeouts_used = result.timeouts_used

        match.winner_id = winner_id
        match.is_completed = winner_id is not None
        match.completed_at = datetime.now() if match.is_completed else None
        logger.info(f"Recorded {match}" + ("" if match.is_completed else " (partial)"))

    def _check_completion(self, championship: Championship) -> None:
        """Complete the championship once every division is decided."""
        if championship.status != STATUS_KNOCKOUT:
            return
        nodes = championship.knockout_bracket
        divisions = [DIVISION_MAIN]
        if championship.division_nodes(DIVISION_SECOND):
            divisions.append(DIVISION_SECOND)
        if all(is_division_complete(nodes, division) for division in divisions):
            championship.advance_status(STATUS_COMPLETED)
            logger.info(f"{championship.name} completed")
