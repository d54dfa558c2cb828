"""Championship Simulator - internal testing system for the championship engine.

This module plays out whole championships with random but legal results:
a roster with hidden strengths, group draw, every group match, knockout
draw and every bracket match up to the final.
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

import argparse
import itertools
import json
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ttchampionship.constants import DEFAULT_RULES, PHASE_GROUPS, STATUS_COMPLETED
from ttchampionship.models import (
    Athlete,
    Championship,
    Match,
    MatchResult,
    RuleSet,
    SetResult,
    TournamentConfig,
)
from ttchampionship.tournament.championship_manager import ChampionshipManager, Podium
from ttchampionship.utils import setup_logger
from ttchampionship.utils.validation import ValidationReport

logger = setup_logger(__name__)

FIRST_NAMES = [
    "Ana", "Bruno", "Carla", "Diego", "Elisa", "Fábio", "Gabriela", "Hugo",
    "Irene", "João", "Karina", "Lucas", "Marta", "Nuno", "Olívia", "Paulo",
]  # fmt: skip
LAST_NAMES = [
    "Almeida", "Barbosa", "Cardoso", "Duarte", "Esteves", "Ferreira", "Gomes",
    "Henriques", "Lima", "Moreira", "Nogueira", "Oliveira", "Pereira",
    "Queiroz", "Ribeiro", "Simões",
]  # fmt: skip


class StrengthDistribution(Enum):
    """How hidden athlete strengths are spread."""

    UNIFORM = "uniform"
    NORMAL = "normal"
    CLUB = "club"


class ResultPattern(Enum):
    """How strengths turn into set results."""

    REALISTIC = "realistic"
    BALANCED = "balanced"
    UPSET_FRIENDLY = "upset_friendly"
    RANDOM = "random"


@dataclass
class SimulatorConfig:
    """Configuration for the championship simulator."""

    num_athletes: int = 16
    group_size: int = 4
    qualification_spots_per_group: int = 2
    groups_best_of: int = 5
    knockout_best_of: int = 5
    has_third_place: bool = True
    has_repechage: bool = False
    num_seeds: Optional[int] = None
    strength_distribution: StrengthDistribution = StrengthDistribution.NORMAL
    strength_range: Tuple[int, int] = (800, 2200)
    result_pattern: ResultPattern = ResultPattern.REALISTIC
    walkover_rate: float = 0.0  # percent of matches
    deuce_rate: float = 20.0  # percent of sets
    rules_code: str = DEFAULT_RULES
    seed: Optional[int] = None

    def tournament_config(self) -> TournamentConfig:
        return TournamentConfig(
            name="Simulated Championship",
            group_size=self.group_size,
            qualification_spots_per_group=self.qualification_spots_per_group,
            groups_best_of=self.groups_best_of,
            knockout_best_of=self.knockout_best_of,
            has_third_place=self.has_third_place,
            has_repechage=self.has_repechage,
            rules_code=self.rules_code,
        )


@dataclass
class SimulationRun:
    """Outcome of a simulated championship."""

    championship: Championship
    strengths: Dict[str, int] = field(default_factory=dict)
    matches_played: int = 0
    walkovers: int = 0
    validation: Optional[ValidationReport] = None
    podium: Podium = field(default_factory=Podium)

    @property
    def is_completed(self) -> bool:
        return self.championship.status == STATUS_COMPLETED


class AthleteFactory:
    """Factory for creating rosters with hidden strengths."""

    def __init__(self, config: SimulatorConfig):
        self.config = config
        self.random = (
            random.Random(config.seed) if config.seed is not None else random.Random()
        )

    def create_athletes(self) -> Tuple[List[Athlete], Dict[str, int]]:
        """Create the roster, strongest athletes seeded when asked.

        Returns:
            (athletes, strength per athlete id)
        """
        names = self._generate_names(self.config.num_athletes)
        athletes = [Athlete(name=name) for name in names]
        strengths = {a.id: self._generate_strength() for a in athletes}

        if self.config.num_seeds:
            ranked = sorted(athletes, key=lambda a: strengths[a.id], reverse=True)
            for number, athlete in enumerate(ranked[: self.config.num_seeds], start=1):
                athlete.is_seeded = True
                athlete.seed_number = number

        logger.info(
            f"Created {len(athletes)} athletes with "
            f"{self.config.strength_distribution.value} strengths"
        )
        return athletes, strengths

    def _generate_names(self, count: int) -> List[str]:
        combos = [
            f"{first} {last}" for first, last in itertools.product(FIRST_NAMES, LAST_NAMES)
        ]
        if count > len(combos):
            raise ValueError(f"At most {len(combos)} athletes can be simulated")
        return self.random.sample(combos, count)

    def _generate_strength(self) -> int:
        low, high = self.config.strength_range
        distribution = self.config.strength_distribution
        if distribution == StrengthDistribution.UNIFORM:
            return self.random.randint(low, high)
        if distribution == StrengthDistribution.CLUB:
            base = self.random.choice([1000, 1200, 1400, 1600])
            return max(low, min(high, self.random.randint(base - 100, base + 100)))
        mean = (low + high) / 2
        std_dev = (high - low) / 6
        return max(low, min(high, int(self.random.gauss(mean, std_dev))))


class ResultSimulator:
    """Simulates legal set scores between two athletes."""

    def __init__(self, config: SimulatorConfig):
        self.config = config
        self.rules = RuleSet.from_code(config.rules_code)
        self.random = (
            random.Random(config.seed) if config.seed is not None else random.Random()
        )

    def simulate_set(self, player1_wins: bool) -> SetResult:
        """One legal set: 11 to 0..9, or a deuce finish won by two."""
        target = self.rules.minimum_points_to_win
        if self.random.random() * 100 < self.config.deuce_rate:
            extra = self.random.randint(0, 4)
            winner = target + 1 + extra
            loser = winner - self.rules.deuce_difference
        else:
            winner = target
            loser = self.random.randint(0, target - self.rules.minimum_difference_to_win)
        if player1_wins:
            return SetResult(winner, loser)
        return SetResult(loser, winner)

    def simulate_sets(
        self, strength1: int, strength2: int, best_of: int
    ) -> List[SetResult]:
        """Play sets until one side reaches the best-of threshold."""
        needed = self.rules.sets_to_win(best_of)
        probability = self._set_win_probability(strength1, strength2)
        sets: List[SetResult] = []
        won1 = won2 = 0
        while won1 < needed and won2 < needed:
            player1_wins = self.random.random() < probability
            sets.append(self.simulate_set(player1_wins))
            if player1_wins:
                won1 += 1
            else:
                won2 += 1
        return sets

    def walkover_occurs(self) -> bool:
        if self.config.walkover_rate <= 0:
            return False
        return self.random.random() * 100 < self.config.walkover_rate

    def pick_walkover_winner(self, match: Match) -> str:
        return self.random.choice([match.player1_id, match.player2_id])

    def _set_win_probability(self, strength1: int, strength2: int) -> float:
        pattern = self.config.result_pattern
        diff = strength1 - strength2
        if pattern == ResultPattern.RANDOM:
            return 0.5
        if pattern == ResultPattern.BALANCED:
            return max(0.05, min(0.95, 0.5 + diff / 2000))
        if pattern == ResultPattern.UPSET_FRIENDLY:
            return max(0.05, min(0.95, 0.5 - diff / 2000))
        return 1.0 / (1.0 + 10 ** (-diff / 400))


class ChampionshipSimulator:
    """Runs a championship from roster to podium."""

    def __init__(
        self, config: SimulatorConfig, manager: Optional[ChampionshipManager] = None
    ):
        self.config = config
        self.manager = manager or ChampionshipManager()
        self.athlete_factory = AthleteFactory(config)
        self.result_simulator = ResultSimulator(config)

    def run(self) -> SimulationRun:
        """Simulate a complete championship."""
        logger.info(
            f"Simulating championship: {self.config.num_athletes} athletes, "
            f"groups of {self.config.group_size}"
        )
        athletes, strengths = self.athlete_factory.create_athletes()
        championship = self.manager.create_championship(
            self.config.tournament_config(),
            athletes,
            auto_seed=self.config.num_seeds is None,
        )
        run = SimulationRun(championship=championship, strengths=strengths)

        run.championship = self.manager.generate_groups(
            run.championship, seed=self.config.seed
        )
        self._play_pending(run)

        run.championship = self.manager.generate_knockout(
            run.championship, seed=self.config.seed
        )
        # each pass plays one bracket round per division
        while run.championship.status != STATUS_COMPLETED:
            if not self._play_pending(run):
                logger.warning("Simulation stalled: no playable match left")
                break

        run.validation = self.manager.validate(run.championship)
        run.podium = self.manager.final_ranking(run.championship)
        logger.info(
            f"Simulation complete: {run.matches_played} matches, "
            f"{run.walkovers} walkovers"
        )
        return run

    def _pending_ids(self, championship: Championship) -> List[str]:
        return [
            m.id
            for m in championship.all_matches()
            if not m.is_completed and not m.is_bye
        ]

    def _play_pending(self, run: SimulationRun) -> int:
        played = 0
        for match_id in self._pending_ids(run.championship):
            found = run.championship.find_match(match_id)
            if found is None:
                continue
            match = found[0]
            run.championship = self.manager.record_result(
                run.championship, self._result_for(match, run)
            )
            played += 1
        run.matches_played += played
        return played

    def _result_for(self, match: Match, run: SimulationRun) -> MatchResult:
        if self.result_simulator.walkover_occurs():
            run.walkovers += 1
            return MatchResult.walkover(
                match.id, self.result_simulator.pick_walkover_winner(match)
            )
        best_of = (
            run.championship.groups_best_of
            if match.phase == PHASE_GROUPS
            else run.championship.knockout_best_of
        )
        sets = self.result_simulator.simulate_sets(
            run.strengths.get(match.player1_id, 0),
            run.strengths.get(match.player2_id, 0),
            best_of,
        )
        return MatchResult(match_id=match.id, sets=sets)

    def export_json_format(self, run: SimulationRun) -> str:
        export_data = {
            "simulator_config": {
                "num_athletes": self.config.num_athletes,
                "group_size": self.config.group_size,
                "strength_distribution": self.config.strength_distribution.value,
                "result_pattern": self.config.result_pattern.value,
                "walkover_rate": self.config.walkover_rate,
                "seed": self.config.seed,
            },
            "strengths": run.strengths,
            "podium": run.podium.names(),
            "championship": run.championship.to_dict(),
        }
        return json.dumps(export_data, indent=2, ensure_ascii=False)


def create_simulator(config: SimulatorConfig) -> ChampionshipSimulator:
    """Create a championship simulator with the given configuration."""
    return ChampionshipSimulator(config)


def create_small_simulation(
    num_athletes: int = 8, seed: Optional[int] = None
) -> ChampionshipSimulator:
    """Two groups of four, best-of-3 everywhere."""
    config = SimulatorConfig(
        num_athletes=num_athletes,
        groups_best_of=3,
        knockout_best_of=3,
        seed=seed,
    )
    return create_simulator(config)


def create_standard_simulation(
    num_athletes: int = 16, seed: Optional[int] = None
) -> ChampionshipSimulator:
    """Federation defaults with automatic seeding."""
    return create_simulator(SimulatorConfig(num_athletes=num_athletes, seed=seed))


def create_repechage_simulation(
    num_athletes: int = 24, seed: Optional[int] = None
) -> ChampionshipSimulator:
    """Second division enabled, a few walkovers."""
    config = SimulatorConfig(
        num_athletes=num_athletes,
        has_repechage=True,
        walkover_rate=5.0,
        seed=seed,
    )
    return create_simulator(config)


def create_large_simulation(
    num_athletes: int = 64, seed: Optional[int] = None
) -> ChampionshipSimulator:
    """Large field with eight strength-ranked seeds."""
    config = SimulatorConfig(
        num_athletes=num_athletes,
        num_seeds=8,
        knockout_best_of=7,
        seed=seed,
    )
    return create_simulator(config)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Championship simulator")
    parser.add_argument(
        "--athletes",
        type=int,
        default=16,
        help="Number of athletes (default: 16)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed for reproducibility (default: 42)",
    )
    parser.add_argument(
        "--type",
        choices=["small", "standard", "repechage", "large"],
        default="standard",
        help="Simulation preset",
    )
    args = parser.parse_args()

    presets = {
        "small": create_small_simulation,
        "standard": create_standard_simulation,
        "repechage": create_repechage_simulation,
        "large": create_large_simulation,
    }
    simulator = presets[args.type](args.athletes, seed=args.seed)
    result = simulator.run()
    print(f"Athletes: {result.championship.total_athletes}")
    print(f"Matches: {result.matches_played} ({result.walkovers} walkovers)")
    print(f"Status: {result.championship.status}")
    for place, name in result.podium.names().items():
        print(f"  {place}: {name or '-'}")
