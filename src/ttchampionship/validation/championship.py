"""Championship-wide validation and automatic fixes.

Validators never raise for rule violations. They return a
:class:`ValidationReport` whose errors block progression and whose
warnings are recommendations. The fixer returns the corrected copy
together with one :class:`Correction` record per change.
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
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from ttchampionship.constants import (
    PLAYER1,
    STATUS_COMPLETED,
    STATUS_KNOCKOUT,
)
from ttchampionship.models import (
    CBTM_RULES,
    Athlete,
    Championship,
    Match,
    RuleSet,
    TournamentConfig,
)
from ttchampionship.utils import setup_logger
from ttchampionship.utils.validation import ValidationReport
from ttchampionship.validation.match_rules import validate_match

logger = setup_logger(__name__)


# ========== Configuration ==========


def validate_config(
    config: TournamentConfig, athletes_count: int, rules: Optional[RuleSet] = None
) -> ValidationReport:
    """Check a championship configuration against federation rules.

    Args:
        config: Configuration to check
        athletes_count: Size of the roster
        rules: Rules to apply, defaults to the configuration's own

    Returns:
        ValidationReport
    """
    rules = rules or config.rules
    report = ValidationReport()

    if not rules.is_valid_group_size(config.group_size):
        report.add_error(
            f"Groups must have between {rules.min_athletes_per_group} and "
            f"{rules.max_athletes_per_group} athletes, got {config.group_size}"
        )

    if config.qualification_spots_per_group >= config.group_size:
        report.add_error(
            "Qualification spots per group must be lower than the group size"
        )
    if config.qualification_spots_per_group < 1:
        report.add_error("At least 1 athlete per group must qualify")

    if not rules.is_valid_groups_best_of(config.groups_best_of):
        report.add_error(
            f"Invalid group match format best-of-{config.groups_best_of}; use one "
            f"of {', '.join(str(b) for b in rules.groups_best_of_options)}"
        )
    if not rules.is_valid_best_of(config.knockout_best_of):
        report.add_error(
            f"Invalid knockout match format best-of-{config.knockout_best_of}; use "
            f"one of {', '.join(str(b) for b in rules.best_of_options)}"
        )

    if athletes_count > 0 and config.group_size > 0:
        groups_count = math.ceil(athletes_count / config.group_size)
        qualified = groups_count * config.qualification_spots_per_group
        if qualified < rules.min_athletes_for_knockout:
            report.add_error(
                f"Configuration qualifies only {qualified} athletes, "
                f"the knockout needs {rules.min_athletes_for_knockout}"
            )

    if config.groups_best_of != rules.default_groups_best_of:
        report.add_warning(
            f"{rules.code} recommends best-of-{rules.default_groups_best_of} "
            "in the group stage"
        )
    if config.knockout_best_of != rules.default_knockout_best_of:
        report.add_warning(
            f"{rules.code} recommends best-of-{rules.default_knockout_best_of} "
            "in the knockout stage"
        )
    if not config.has_third_place:
        report.add_warning(
            f"{rules.code} recommends a third-place match in official events"
        )

    return report


def validate_seeding(
    total_athletes: int, seeds_count: int, rules: RuleSet = CBTM_RULES
) -> ValidationReport:
    """Check the number of seeds for a field and recommend one."""
    report = ValidationReport()
    if seeds_count < 0:
        report.add_error("Number of seeds cannot be negative")
    elif seeds_count > total_athletes:
        report.add_error("Number of seeds cannot exceed the number of athletes")
    elif seeds_count > rules.max_seeds_allowed:
        report.add_error(f"At most {rules.max_seeds_allowed} seeds are allowed")
    else:
        recommended = rules.recommended_seeds(total_athletes)
        if recommended and recommended != seeds_count:
            report.add_warning(
                f"{recommended} seeds recommended for {total_athletes} athletes, "
                f"got {seeds_count}"
            )
    return report


def _seed_number_issues(seeded: Sequence[Athlete], report: ValidationReport) -> None:
    """Report seeds without a number, duplicates and gaps in numbering."""
    numbers = [a.seed_number for a in seeded if a.seed_number is not None]
    for athlete in seeded:
        if athlete.seed_number is None:
            report.add_error(f"Seed {athlete.name} has no seed number")

    duplicates = sorted(n for n, count in Counter(numbers).items() if count > 1)
    for number in duplicates:
        report.add_error(f"Seed number {number} is used more than once")

    ordered = sorted(
        seeded, key=lambda a: a.seed_number if a.seed_number is not None else 999
    )
    for index, athlete in enumerate(ordered, start=1):
        if athlete.seed_number is not None and athlete.seed_number != index:
            report.add_error(
                f"Seed {athlete.name} has number {athlete.seed_number}, "
                f"expected {index}"
            )


# ========== Bracket ==========


def validate_bracket_formation(
    qualified: Sequence[Athlete], championship: Championship
) -> ValidationReport:
    """Check that a knockout can be drawn from the qualified athletes.

    Seed numbers among qualifiers may have gaps (a seed can fall in the
    groups); only missing and duplicated numbers are errors here.
    """
    rules = championship.rules
    report = ValidationReport()

    if len(qualified) < rules.min_athletes_for_knockout:
        report.add_error(
            f"The knockout needs at least {rules.min_athletes_for_knockout} "
            f"athletes, got {len(qualified)}"
        )

    seeded = [a for a in qualified if a.is_seeded]
    report.merge(validate_seeding(len(qualified), len(seeded), rules), "Seeding: ")

    for athlete in seeded:
        if athlete.seed_number is None:
            report.add_error(f"Seed {athlete.name} has no seed number")
    numbers = [a.seed_number for a in seeded if a.seed_number is not None]
    for number in sorted(n for n, count in Counter(numbers).items() if count > 1):
        report.add_error(f"Seed number {number} is used more than once")
    if numbers and sorted(numbers) != list(range(1, len(numbers) + 1)):
        report.add_warning(
            "Qualified seeds are not numbered 1.."
            f"{len(numbers)}: {', '.join(str(n) for n in sorted(numbers))}"
        )

    if not rules.is_valid_best_of(championship.knockout_best_of):
        report.add_error(
            f"Invalid knockout match format best-of-{championship.knockout_best_of}"
        )
    if not rules.is_valid_groups_best_of(championship.groups_best_of):
        report.add_error(
            f"Invalid group match format best-of-{championship.groups_best_of}"
        )

    bracket_size = 2
    while bracket_size < len(qualified):
        bracket_size *= 2
    bye_count = bracket_size - len(qualified)
    if bye_count > len(seeded):
        report.add_warning(
            f"{bye_count} BYEs needed but only {len(seeded)} seeds available; "
            "some unseeded athletes will receive a BYE"
        )

    return report


# ========== Matches ==========


def _winner_consistency(match: Match, best_of: int, rules: RuleSet) -> List[str]:
    errors = []
    validation = validate_match(match.sets, best_of, rules)
    errors.extend(validation.errors)
    if validation.winner is not None and match.winner_id:
        expected = (
            match.player1_id if validation.winner == PLAYER1 else match.player2_id
        )
        if match.winner_id != expected:
            errors.append("Winner is inconsistent with the set scores")
    if validation.is_valid and validation.winner is None and match.is_completed:
        errors.append("Marked completed but no side has won enough sets")
    return errors


def validate_matches(
    matches: Iterable[Match],
    best_of: int,
    rules: RuleSet = CBTM_RULES,
    label: str = "Match",
) -> ValidationReport:
    """Check participants, scores, winners and walkovers of a set of matches."""
    report = ValidationReport()
    for match in matches:
        prefix = f"{label} {match.id}: "
        if not match.player1_id or not match.player2_id:
            report.add_error(prefix + "players are not defined")
            continue
        if match.player1_id == match.player2_id:
            report.add_error(prefix + "an athlete cannot play against themselves")
            continue

        if match.is_walkover:
            winner = match.walkover_winner_id
            if not winner:
                report.add_error(prefix + "walkover without a winner")
            elif not match.involves(winner):
                report.add_error(prefix + "walkover winner must be one of the players")
            if match.sets:
                report.add_warning(prefix + "walkover should not have sets")
            continue

        if match.is_bye:
            continue

        if match.is_completed and match.sets:
            for message in _winner_consistency(match, best_of, rules):
                report.add_error(prefix + message)
        elif match.is_completed and not match.winner_id:
            report.add_error(prefix + "completed without sets or winner")
    return report


def validate_knockout_matches(
    matches: Iterable[Match], best_of: int, rules: RuleSet = CBTM_RULES
) -> ValidationReport:
    return validate_matches(matches, best_of, rules, label="Knockout match")


# ========== Whole championship ==========


def validate_full_championship(championship: Championship) -> ValidationReport:
    """Run every check on a championship.

    Covers configuration, roster, seeding, groups, group matches and, once
    the knockout has started, the bracket matches.
    """
    rules = championship.rules
    report = validate_config(
        championship.config, championship.total_athletes, rules
    )

    if not championship.athletes:
        report.add_error("The championship needs at least 1 athlete")

    names = Counter(a.name.strip().casefold() for a in championship.athletes)
    for name, count in sorted(names.items()):
        if count > 1:
            report.add_error(f"Duplicate athlete name: {name} ({count} entries)")

    seeded = [a for a in championship.athletes if a.is_seeded]
    if seeded:
        _seed_number_issues(seeded, report)
        if len(seeded) > rules.max_seeds_allowed:
            report.add_error(f"At most {rules.max_seeds_allowed} seeds are allowed")

    if not championship.groups:
        report.add_warning("No groups have been generated yet")
    else:
        if len(championship.groups) < rules.min_groups_for_tournament:
            report.add_warning(
                f"Only {len(championship.groups)} group(s); "
                f"{rules.min_groups_for_tournament} or more are recommended"
            )
        for group in championship.groups:
            if group.size != championship.group_size:
                report.add_warning(
                    f"{group.name} has {group.size} athletes, "
                    f"expected {championship.group_size}"
                )

    if rules.is_valid_best_of(championship.groups_best_of):
        report.merge(
            validate_matches(
                championship.group_matches(),
                championship.groups_best_of,
                rules,
                label="Group match",
            )
        )

    if championship.status in (STATUS_KNOCKOUT, STATUS_COMPLETED):
        if rules.is_valid_best_of(championship.knockout_best_of):
            report.merge(
                validate_knockout_matches(
                    championship.knockout_matches(),
                    championship.knockout_best_of,
                    rules,
                )
            )

    logger.debug(
        f"Validated {championship.name}: {len(report.errors)} errors, "
        f"{len(report.warnings)} warnings"
    )
    return report


# ========== Automatic fixes ==========


@dataclass
class Correction:
    """One change made by the automatic fixer.

    Attributes
    ----------
    kind : str
        ``"best_of"``, ``"seed_number"``, ``"third_place"``,
        ``"walkover_sets"`` or ``"completion"``.
    target : str
        What was changed (a field name, athlete id or match id).
    before, after : object
        Old and new values.
    message : str
        Human-readable description.
    """

    kind: str
    target: str
    before: object
    after: object
    message: str


@dataclass
class FixResult:
    championship: Championship
    corrections: List[Correction] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.corrections)


def apply_automatic_fixes(championship: Championship) -> FixResult:
    """Repair what the federation rules allow to be repaired automatically.

    - illegal best-of values snap to the federation defaults
    - seeds are renumbered 1..n in their current order
    - the third-place match is enabled, while the bracket is not drawn
    - walkovers lose any recorded sets
    - matches with a winner are marked completed

    The input is not modified. Applying the fixer to its own output yields
    no further corrections.

    Args:
        championship: Championship to repair

    Returns:
        FixResult with the repaired copy and the list of corrections
    """
    fixed = copy.deepcopy(championship)
    rules = fixed.rules
    corrections: List[Correction] = []

    if not rules.is_valid_groups_best_of(fixed.groups_best_of):
        corrections.append(
            Correction(
                "best_of",
                "groups_best_of",
                fixed.groups_best_of,
                rules.default_groups_best_of,
                f"Group match format {fixed.groups_best_of} -> "
                f"{rules.default_groups_best_of}",
            )
        )
        fixed.groups_best_of = rules.default_groups_best_of

    if not rules.is_valid_best_of(fixed.knockout_best_of):
        corrections.append(
            Correction(
                "best_of",
                "knockout_best_of",
                fixed.knockout_best_of,
                rules.default_knockout_best_of,
                f"Knockout match format {fixed.knockout_best_of} -> "
                f"{rules.default_knockout_best_of}",
            )
        )
        fixed.knockout_best_of = rules.default_knockout_best_of

    for number, athlete in enumerate(fixed.seeded_athletes, start=1):
        if athlete.seed_number != number:
            corrections.append(
                Correction(
                    "seed_number",
                    athlete.id,
                    athlete.seed_number,
                    number,
                    f"Seed {athlete.name}: #{athlete.seed_number} -> #{number}",
                )
            )
            athlete.seed_number = number

    if not fixed.has_third_place and not fixed.has_knockout:
        corrections.append(
            Correction(
                "third_place",
                "has_third_place",
                False,
                True,
                "Third-place match enabled",
            )
        )
        fixed.has_third_place = True

    for match in fixed.all_matches():
        if match.is_walkover and match.sets:
            corrections.append(
                Correction(
                    "walkover_sets",
                    match.id,
                    len(match.sets),
                    0,
                    f"Removed {len(match.sets)} sets from walkover {match.id}",
                )
            )
            match.sets = []

        if match.winner_id and not match.is_completed:
            corrections.append(
                Correction(
                    "completion",
                    match.id,
                    False,
                    True,
                    f"Match {match.id} has a winner, marked completed",
                )
            )
            match.is_completed = True
            match.completed_at = datetime.now()

    for correction in corrections:
        logger.info(f"[fix] {correction.message}")
    if corrections:
        fixed.refresh_counters()
        fixed.touch()
    return FixResult(championship=fixed, corrections=corrections)
