"""Championship lifecycle - orchestrates every championship operation.

The manager is stateless: each call takes a championship and returns an
updated copy, leaving the argument untouched.
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
import math
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from ttchampionship.constants import (
    AUTO_SEED_RATIO,
    DIVISION_MAIN,
    DIVISION_SECOND,
    MAX_AUTO_SEEDS,
    STATUS_CREATED,
    STATUS_GROUPS,
    STATUS_KNOCKOUT,
)
from ttchampionship.exceptions import (
    AthleteNotFoundException,
    DuplicateAthleteException,
    InvalidConfigurationException,
    TournamentStateException,
)
from ttchampionship.models import Athlete, Championship, MatchResult, TournamentConfig
from ttchampionship.tournament.bracket_builder import BracketBuilder, podium, propagate
from ttchampionship.tournament.group_builder import (
    GroupBuilder,
    ManualGroup,
    athletes_without_group,
)
from ttchampionship.tournament.result_recorder import ResultRecorder
from ttchampionship.tournament.standings import (
    StandingsCalculator,
    are_groups_completed,
    eliminated_entrants,
    qualified_entrants,
)
from ttchampionship.utils import setup_logger
from ttchampionship.utils.validation import (
    ValidationReport,
    validate_name_strict,
    validate_non_empty,
    validate_positive_integer,
)
from ttchampionship.validation.championship import (
    FixResult,
    apply_automatic_fixes,
    validate_bracket_formation,
    validate_config,
    validate_full_championship,
)

logger = setup_logger(__name__)


# ========== Report types ==========


@dataclass
class TournamentStats:
    """Progress counters of a championship. BYE matches are not counted."""

    total_athletes: int = 0
    total_matches: int = 0
    completed_matches: int = 0
    completion_percentage: float = 0.0
    groups_phase_complete: bool = False
    knockout_phase_started: bool = False
    group_matches: int = 0
    group_matches_completed: int = 0
    knockout_matches: int = 0
    knockout_matches_completed: int = 0
    main_knockout_matches: int = 0
    second_division_matches: int = 0
    total_groups: int = 0
    groups_completed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Podium:
    """Top three of a division; ``None`` where not yet decided."""

    champion: Optional[Athlete] = None
    runner_up: Optional[Athlete] = None
    third_place: Optional[Athlete] = None

    @property
    def is_decided(self) -> bool:
        return self.champion is not None

    def names(self) -> Dict[str, Optional[str]]:
        return {
            "champion": self.champion.name if self.champion else None,
            "runner_up": self.runner_up.name if self.runner_up else None,
            "third_place": self.third_place.name if self.third_place else None,
        }


@dataclass
class RoundProgress:
    total: int = 0
    completed: int = 0


@dataclass
class SecondDivisionReport:
    """State of the repechage bracket.

    Attributes
    ----------
    is_enabled : bool
        Whether the championship runs a second division.
    total_matches, completed_matches : int
        Playable second-division matches (BYEs excluded).
    progress_percentage : float
        Completed share of ``total_matches``, 0 to 100.
    eliminated_count : int
        Athletes knocked out in the groups.
    active_athletes : int
        Eliminated athletes drawn into the second-division bracket.
    rounds : dict
        Round name to :class:`RoundProgress`.
    medalists : Podium
        Second-division top three.
    """

    is_enabled: bool = False
    total_matches: int = 0
    completed_matches: int = 0
    progress_percentage: float = 0.0
    eliminated_count: int = 0
    active_athletes: int = 0
    rounds: Dict[str, RoundProgress] = field(default_factory=dict)
    medalists: Podium = field(default_factory=Podium)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_enabled": self.is_enabled,
            "total_matches": self.total_matches,
            "completed_matches": self.completed_matches,
            "progress_percentage": self.progress_percentage,
            "eliminated_count": self.eliminated_count,
            "active_athletes": self.active_athletes,
            "rounds": {name: asdict(p) for name, p in self.rounds.items()},
            "medalists": self.medalists.names(),
        }


# ========== Manager ==========


class ChampionshipManager:
    """Coordinates championship operations.

    This class is responsible for:
    - Creating championships and keeping the roster and settings valid
    - Drawing the groups and the knockout brackets
    - Forwarding results to the :class:`ResultRecorder`
    - Running the validator and the automatic fixer

    Every public method returns a new championship.
    """

    def __init__(self, recorder: Optional[ResultRecorder] = None):
        self.recorder = recorder or ResultRecorder()

    # ========== Creation and roster ==========

    def create_championship(
        self,
        config: TournamentConfig,
        athletes: Optional[Sequence[Athlete]] = None,
        auto_seed: bool = True,
    ) -> Championship:
        """Create a championship in ``created`` status.

        Args:
            config: Championship settings
            athletes: Initial roster, copied
            auto_seed: Seed the first athletes when nobody is seeded

        Returns:
            The new championship

        Raises:
            InvalidConfigurationException: If the settings break the rules
            NameValidationException: If an athlete name is invalid
            DuplicateAthleteException: If two athletes share a name
        """
        name = validate_non_empty(config.name, "Championship name")
        if not name:
            raise InvalidConfigurationException(name.error_message)

        roster: List[Athlete] = []
        for athlete in copy.deepcopy(list(athletes or [])):
            athlete.name = validate_name_strict(athlete.name)
            self._check_unique_name(roster, athlete.name)
            roster.append(athlete)

        self._validate_config(config, len(roster))

        championship = Championship.from_config(config, roster)
        championship.name = name.sanitized_value
        if auto_seed and not championship.seeded_athletes:
            _seed_first(championship)

        logger.info(
            f"Created {championship.name}: {len(roster)} athletes, "
            f"{len(championship.seeded_athletes)} seeds"
        )
        return championship

    def add_athlete(
        self,
        championship: Championship,
        name: str,
        is_seeded: bool = False,
        seed_number: Optional[int] = None,
    ) -> Championship:
        """Register a new athlete. Only allowed before the groups are drawn."""
        self._require_status(championship, STATUS_CREATED, "add athletes")
        clean_name = validate_name_strict(name)
        self._check_unique_name(championship.athletes, clean_name)

        updated = copy.deepcopy(championship)
        athlete = Athlete(name=clean_name, is_seeded=is_seeded)
        if is_seeded:
            athlete.seed_number = seed_number or len(updated.seeded_athletes) + 1
        updated.athletes.append(athlete)
        updated.touch()
        logger.info(f"Added athlete {athlete}")
        return updated

    def remove_athlete(self, championship: Championship, athlete_id: str) -> Championship:
        """Drop an athlete; the remaining seeds are renumbered."""
        self._require_status(championship, STATUS_CREATED, "remove athletes")
        updated = copy.deepcopy(championship)
        athlete = self._get_athlete(updated, athlete_id)
        updated.athletes.remove(athlete)
        _renumber_seeds(updated)
        updated.touch()
        logger.info(f"Removed athlete {athlete.name}")
        return updated

    def update_athlete(
        self,
        championship: Championship,
        athlete_id: str,
        *,
        name: Optional[str] = None,
        is_seeded: Optional[bool] = None,
        seed_number: Optional[int] = None,
    ) -> Championship:
        """Change an athlete's name or seeding.

        Names can change at any time; seeding only before the draw.

        Raises:
            AthleteNotFoundException: If the athlete does not exist
            TournamentStateException: If seeding changes after the draw
            InvalidConfigurationException: If the seed number is not positive
        """
        updated = copy.deepcopy(championship)
        athlete = self._get_athlete(updated, athlete_id)

        if name is not None:
            clean_name = validate_name_strict(name)
            others = [a for a in updated.athletes if a.id != athlete_id]
            self._check_unique_name(others, clean_name)
            athlete.name = clean_name

        if is_seeded is not None or seed_number is not None:
            self._require_status(championship, STATUS_CREATED, "change seeding")
            if seed_number is not None:
                number = validate_positive_integer(seed_number, "Seed number")
                if not number:
                    raise InvalidConfigurationException(number.error_message)
            if is_seeded is not None:
                athlete.is_seeded = is_seeded
            if not athlete.is_seeded:
                athlete.seed_number = None
            elif seed_number is not None:
                athlete.seed_number = seed_number
            elif athlete.seed_number is None:
                athlete.seed_number = len(updated.seeded_athletes)

        updated.touch()
        return updated

    def update_championship_settings(
        self,
        championship: Championship,
        *,
        name: Optional[str] = None,
        date: Optional[datetime] = None,
        group_size: Optional[int] = None,
        qualification_spots_per_group: Optional[int] = None,
        groups_best_of: Optional[int] = None,
        knockout_best_of: Optional[int] = None,
        has_third_place: Optional[bool] = None,
        has_repechage: Optional[bool] = None,
        points_per_win: Optional[int] = None,
        rules_code: Optional[str] = None,
    ) -> Championship:
        """Change settings, re-validating the resulting configuration.

        Settings shaping the groups can only change before the draw, and
        settings shaping the knockout only before the bracket exists.

        Raises:
            TournamentStateException: If a setting is locked by the status
            InvalidConfigurationException: If the new settings break the rules
        """
        group_settings = {
            "group_size": group_size,
            "qualification_spots_per_group": qualification_spots_per_group,
            "groups_best_of": groups_best_of,
            "points_per_win": points_per_win,
            "rules_code": rules_code,
        }
        knockout_settings = {
            "knockout_best_of": knockout_best_of,
            "has_third_place": has_third_place,
            "has_repechage": has_repechage,
        }
        if any(v is not None for v in group_settings.values()):
            self._require_status(championship, STATUS_CREATED, "change group settings")
        if any(v is not None for v in knockout_settings.values()):
            if championship.has_knockout:
                raise TournamentStateException(
                    "Knockout settings are locked once the bracket exists"
                )

        updated = copy.deepcopy(championship)
        if name is not None:
            result = validate_non_empty(name, "Championship name")
            if not result:
                raise InvalidConfigurationException(result.error_message)
            updated.name = result.sanitized_value
        if date is not None:
            updated.date = date
        for attribute, value in {**group_settings, **knockout_settings}.items():
            if value is not None:
                setattr(updated, attribute, value)

        self._validate_config(updated.config, updated.total_athletes)
        updated.touch()
        return updated

    def auto_seed(self, championship: Championship) -> Championship:
        """Seed the first ``min(4, ceil(n / 4))`` athletes if nobody is seeded."""
        self._require_status(championship, STATUS_CREATED, "seed athletes")
        updated = copy.deepcopy(championship)
        if not updated.seeded_athletes:
            _seed_first(updated)
            updated.touch()
        return updated

    # ========== Groups ==========

    def generate_groups(
        self, championship: Championship, seed: Optional[int] = None
    ) -> Championship:
        """Draw the groups and schedule their matches.

        Raises:
            TournamentStateException: If the groups were already drawn
            InvalidConfigurationException: If the roster cannot form groups
        """
        self._require_status(championship, STATUS_CREATED, "draw groups")
        self._validate_config(championship.config, championship.total_athletes)
        if not championship.athletes:
            raise InvalidConfigurationException("No athletes to draw into groups")

        updated = copy.deepcopy(championship)
        result = GroupBuilder(seed=seed).generate_groups(updated)
        return self._start_groups(updated, result.groups)

    def create_manual_groups(
        self, championship: Championship, manual_groups: Sequence[ManualGroup]
    ) -> Championship:
        """Use explicitly composed groups instead of a draw."""
        self._require_status(championship, STATUS_CREATED, "create groups")
        updated = copy.deepcopy(championship)
        result = GroupBuilder().create_manual_groups(updated, manual_groups)
        if not result.groups:
            raise InvalidConfigurationException("No groups given")

        updated = self._start_groups(updated, result.groups)
        missing = athletes_without_group(updated)
        if missing:
            logger.warning(
                f"{len(missing)} athletes are in no group: "
                + ", ".join(a.name for a in missing)
            )
        return updated

    def distribute_remaining_athletes(
        self, championship: Championship, seed: Optional[int] = None
    ) -> Championship:
        """Absorb up to two athletes left out of the groups."""
        self._require_status(championship, STATUS_GROUPS, "place late athletes")
        updated = copy.deepcopy(championship)
        _, changed = GroupBuilder(seed=seed).distribute_remaining_athletes(updated)
        if changed:
            updated.refresh_counters()
            updated.touch()
        return updated

    def _start_groups(self, championship: Championship, groups) -> Championship:
        championship.groups = groups
        championship.advance_status(STATUS_GROUPS)
        championship.refresh_counters()
        logger.info(
            f"{championship.name}: {len(groups)} groups, "
            f"{championship.total_matches} matches"
        )
        return championship

    # ========== Results ==========

    def record_result(
        self, championship: Championship, result: MatchResult
    ) -> Championship:
        return self.recorder.record_result(championship, result)

    def set_walkover(
        self, championship: Championship, match_id: str, winner_id: str
    ) -> Championship:
        return self.recorder.set_walkover(championship, match_id, winner_id)

    # ========== Knockout ==========

    def generate_knockout(
        self, championship: Championship, seed: Optional[int] = None
    ) -> Championship:
        """Draw the knockout from the group results.

        The main bracket takes the qualifiers; with repechage enabled and at
        least two athletes eliminated, a second division takes the rest.

        Raises:
            TournamentStateException: If a group is unfinished or the bracket
                already exists
            InvalidConfigurationException: If too few athletes qualify
        """
        if championship.has_knockout:
            raise TournamentStateException("The knockout has already been generated")
        self._require_status(championship, STATUS_GROUPS, "generate the knockout")
        if not are_groups_completed(championship.groups):
            raise TournamentStateException(
                "Every group match must be completed before the knockout"
            )

        updated = copy.deepcopy(championship)
        calculator = StandingsCalculator(
            points_per_win=updated.points_per_win, rules=updated.rules
        )
        for group in updated.groups:
            calculator.refresh_group(group, updated.groups_best_of)

        entrants = qualified_entrants(updated.groups)
        report = validate_bracket_formation(
            [athlete for athlete, _ in entrants], updated
        )
        if not report:
            raise InvalidConfigurationException("; ".join(report.errors))
        for message in report.warnings:
            logger.warning(f"Bracket: {message}")

        main = BracketBuilder(seed=seed).build(
            entrants, DIVISION_MAIN, updated.has_third_place
        )
        nodes = list(main.nodes)

        if updated.has_repechage:
            eliminated = eliminated_entrants(updated.groups)
            if len(eliminated) >= 2:
                second = BracketBuilder(seed=seed).build(
                    eliminated, DIVISION_SECOND, updated.has_third_place
                )
                nodes.extend(second.nodes)
            else:
                logger.info(
                    f"Second division skipped: {len(eliminated)} eliminated athlete(s)"
                )

        updated.knockout_bracket = nodes
        updated.advance_status(STATUS_KNOCKOUT)
        updated.refresh_counters()
        return updated

    # ========== Validation ==========

    def validate(self, championship: Championship) -> ValidationReport:
        return validate_full_championship(championship)

    def apply_fixes(self, championship: Championship) -> FixResult:
        """Run the automatic fixer, then rebuild standings and the bracket."""
        result = apply_automatic_fixes(championship)
        fixed = result.championship
        calculator = StandingsCalculator(
            points_per_win=fixed.points_per_win, rules=fixed.rules
        )
        for group in fixed.groups:
            calculator.refresh_group(group, fixed.groups_best_of)
        moved = propagate(fixed.knockout_bracket)
        if moved:
            logger.info(f"Bracket: {moved} node(s) updated after fixes")
        fixed.refresh_counters()
        return result

    # ========== Reports ==========

    def tournament_stats(self, championship: Championship) -> TournamentStats:
        return tournament_stats(championship)

    def second_division_report(
        self, championship: Championship
    ) -> SecondDivisionReport:
        return second_division_report(championship)

    def final_ranking(self, championship: Championship) -> Podium:
        return final_ranking(championship)

    def group_report(self, championship: Championship) -> str:
        return group_report(championship)

    # ========== Helpers ==========

    @staticmethod
    def _require_status(championship: Championship, status: str, action: str):
        if championship.status != status:
            raise TournamentStateException(
                f"Cannot {action} while the championship is '{championship.status}'"
            )

    @staticmethod
    def _get_athlete(championship: Championship, athlete_id: str) -> Athlete:
        athlete = championship.get_athlete(athlete_id)
        if athlete is None:
            raise AthleteNotFoundException(f"Athlete not found: {athlete_id}")
        return athlete

    @staticmethod
    def _check_unique_name(athletes: Sequence[Athlete], name: str) -> None:
        key = name.casefold()
        if any(a.name.strip().casefold() == key for a in athletes):
            raise DuplicateAthleteException(f"An athlete named {name} already exists")

    @staticmethod
    def _validate_config(config: TournamentConfig, athletes_count: int) -> None:
        report = validate_config(config, athletes_count)
        if not report:
            raise InvalidConfigurationException("; ".join(report.errors))
        for message in report.warnings:
            logger.warning(f"Configuration: {message}")


def _seed_first(championship: Championship) -> None:
    count = min(
        MAX_AUTO_SEEDS, math.ceil(championship.total_athletes / AUTO_SEED_RATIO)
    )
    for number, athlete in enumerate(championship.athletes[:count], start=1):
        athlete.is_seeded = True
        athlete.seed_number = number


def _renumber_seeds(championship: Championship) -> None:
    for number, athlete in enumerate(championship.seeded_athletes, start=1):
        athlete.seed_number = number


# ========== Reporting ==========


def _percentage(done: int, total: int) -> float:
    return round(done / total * 100, 1) if total else 0.0


def tournament_stats(championship: Championship) -> TournamentStats:
    """Count matches per phase and division."""
    group_matches = [m for m in championship.group_matches() if not m.is_bye]
    knockout = [m for m in championship.knockout_matches() if not m.is_bye]
    main = [m for m in championship.knockout_matches(DIVISION_MAIN) if not m.is_bye]
    second = [
        m for m in championship.knockout_matches(DIVISION_SECOND) if not m.is_bye
    ]
    total = len(group_matches) + len(knockout)
    completed = sum(1 for m in group_matches + knockout if m.is_completed)

    return TournamentStats(
        total_athletes=championship.total_athletes,
        total_matches=total,
        completed_matches=completed,
        completion_percentage=_percentage(completed, total),
        groups_phase_complete=are_groups_completed(championship.groups),
        knockout_phase_started=championship.has_knockout,
        group_matches=len(group_matches),
        group_matches_completed=sum(1 for m in group_matches if m.is_completed),
        knockout_matches=len(knockout),
        knockout_matches_completed=sum(1 for m in knockout if m.is_completed),
        main_knockout_matches=len(main),
        second_division_matches=len(second),
        total_groups=len(championship.groups),
        groups_completed=sum(1 for g in championship.groups if g.is_completed),
    )


def _podium(championship: Championship, division: str) -> Podium:
    champion, runner_up, third = podium(championship.knockout_bracket, division)
    return Podium(
        champion=championship.get_athlete(champion) if champion else None,
        runner_up=championship.get_athlete(runner_up) if runner_up else None,
        third_place=championship.get_athlete(third) if third else None,
    )


def final_ranking(championship: Championship) -> Podium:
    """Champion, runner-up and third place of the main draw."""
    return _podium(championship, DIVISION_MAIN)


def second_division_report(championship: Championship) -> SecondDivisionReport:
    """Progress and medalists of the second division."""
    nodes = championship.division_nodes(DIVISION_SECOND)
    rounds: Dict[str, RoundProgress] = {}
    playing = set()
    total = completed = 0

    for node in nodes:
        match = node.match
        progress = rounds.setdefault(node.round, RoundProgress())
        if match is None or match.is_bye:
            if match is not None:
                playing.update(match.participant_ids)
            continue
        playing.update(match.participant_ids)
        progress.total += 1
        total += 1
        if match.is_completed:
            progress.completed += 1
            completed += 1

    eliminated = eliminated_entrants(championship.groups)
    return SecondDivisionReport(
        is_enabled=championship.has_repechage,
        total_matches=total,
        completed_matches=completed,
        progress_percentage=_percentage(completed, total),
        eliminated_count=len(eliminated),
        active_athletes=sum(1 for athlete, _ in eliminated if athlete.id in playing),
        rounds=rounds,
        medalists=_podium(championship, DIVISION_SECOND),
    )


def group_report(championship: Championship) -> str:
    """Plain-text listing of every group: members, matches and table."""
    if not championship.groups:
        return "No groups found"

    date = championship.date.strftime("%Y-%m-%d") if championship.date else "-"
    lines = [
        f"GROUP REPORT - {championship.name}",
        f"Date: {date}",
        "=" * 37,
        "",
    ]

    for group in championship.groups:
        lines.append(group.name.upper())
        lines.append("-" * 20)
        if group.athletes:
            for index, athlete in enumerate(group.athletes, start=1):
                lines.append(f"{index}. {athlete}")
        else:
            lines.append("No athletes in this group")

        lines.append("")
        lines.append("MATCHES:")
        if group.matches:
            for match in group.matches:
                player1 = match.player1.name if match.player1 else "TBD"
                player2 = match.player2.name if match.player2 else "TBD"
                if match.is_walkover and match.is_completed:
                    winner = championship.get_athlete(match.walkover_winner_id)
                    outcome = f"W.O. {winner.name if winner else '?'}"
                elif match.is_completed:
                    outcome = ", ".join(str(s) for s in match.sets)
                else:
                    outcome = "Pending"
                lines.append(f"{player1} vs {player2} - {outcome}")
        else:
            lines.append("No matches scheduled")

        if group.standings:
            lines.append("")
            lines.append("STANDINGS:")
            for standing in group.standings:
                mark = "*" if standing.qualified else " "
                lines.append(
                    f"{mark}{standing.position}. {standing.athlete.name} "
                    f"{standing.points} pts, {standing.wins}-{standing.losses}, "
                    f"sets {standing.sets_diff:+d}, points {standing.points_diff:+d}"
                )
        lines.append("")

    return "\n".join(lines) + "\n"
