"""
Evolutionary training loop.

Responsibilities:
- population arena: one stable slot per lander (policy, pilot, simulator)
- evaluate every slot in parallel, one descent each
- rank, clone the better half over the worse half, mutate, inject randoms
- reset landers to orbit, report improvements, poll cancellation between generations
"""
from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import torch

from . import config as C
from .agent import PolicyNetwork
from .lander import DescentResult, DescentSimulator
from .metrics import GenerationSummary, RunMetrics
from .pilots import PolicyPilot


@dataclass
class Member:
    id: int
    policy: PolicyNetwork
    pilot: PolicyPilot
    simulator: DescentSimulator
    score: Optional[int] = None
    result: Optional[DescentResult] = None

    @property
    def impact_speed_mph(self) -> Optional[float]:
        return self.result.impact_speed_mph if self.result else None

    @property
    def fuel_remaining(self) -> Optional[float]:
        return self.result.fuel_remaining if self.result else None

    @property
    def burn_history(self) -> Tuple[float, ...]:
        return self.result.burn_history if self.result else ()


class EvolutionaryTrainer:
    def __init__(
        self,
        population_size: int = C.POPULATION_SIZE,
        channels: C.ObservationChannels = C.DEFAULT_CHANNELS,
        hidden_neurons: int = C.HIDDEN_NEURONS,
        constants: C.DescentConstants = C.DEFAULT_CONSTANTS,
        random_percent: int = C.RANDOM_PERCENT,
        mutation_probability: float = C.MUTATION_PROBABILITY,
        mutation_magnitude: float = C.MUTATION_MAGNITUDE,
        workers: int = C.WORKERS,
        seed: Optional[int] = C.SEED,
        export_formula: bool = True,
    ):
        if population_size < 1:
            raise C.ConfigError(f"Population needs at least one lander (got {population_size})")
        if not 0 <= random_percent <= 100:
            raise C.ConfigError(f"Random percentage must be within 0..100 (got {random_percent})")
        if not 0.0 <= mutation_probability <= 1.0:
            raise C.ConfigError(f"Mutation probability must be within 0..1 (got {mutation_probability})")

        self.channels = channels
        self.hidden_neurons = hidden_neurons
        self.constants = constants
        self.random_percent = random_percent
        self.mutation_probability = mutation_probability
        self.mutation_magnitude = mutation_magnitude
        self.export_formula = export_formula

        self.generator = torch.Generator()
        if seed is not None:
            self.generator.manual_seed(seed)
        else:
            self.generator.seed()

        self.members: List[Member] = [self._make_member(i) for i in range(population_size)]
        self.order: List[int] = list(range(population_size))
        self.generation = 0
        self.best_score: Optional[int] = None
        self.champion_genome: Optional[torch.Tensor] = None
        self._executor = ThreadPoolExecutor(max_workers=workers) if workers > 1 else None

    def _make_member(self, member_id: int) -> Member:
        policy = PolicyNetwork(self.channels.count, self.hidden_neurons, generator=self.generator)
        return Member(
            id=member_id,
            policy=policy,
            pilot=PolicyPilot(policy, self.channels, self.constants),
            simulator=DescentSimulator(self.constants),
        )

    def close(self):
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    @property
    def population_size(self) -> int:
        return len(self.members)

    @property
    def best_member(self) -> Member:
        return self.members[self.order[-1]]

    def seed_genome(self, genome: torch.Tensor, slot: int = 0) -> None:
        """Put a saved champion into the population (resume)."""
        self.members[slot].policy.load_genome(genome)

    # ---------- generation phases ----------
    def evaluate(self):
        # each task touches only its own member; map() joins before returning
        if self._executor is None:
            for member in self.members:
                self._evaluate_member(member)
        else:
            list(self._executor.map(self._evaluate_member, self.members))

    @staticmethod
    def _evaluate_member(member: Member):
        member.result = member.simulator.attempt_landing(member.pilot)
        member.score = member.result.score

    def rank(self) -> List[int]:
        """Slot indices ordered by ascending score; best last."""
        if any(m.score is None for m in self.members):
            raise RuntimeError("rank() called before every lander was evaluated")
        self.order = sorted(range(len(self.members)), key=lambda i: self.members[i].score)
        return self.order

    def breed(self):
        n = len(self.members)
        half = n // 2

        # worst takes a mutated copy of best, second worst of second best, ...
        for k in range(half):
            target = self.members[self.order[k]]
            source = self.members[self.order[n - 1 - k]]
            source.policy.copy_into(target.policy)
            target.policy.mutate_(self.mutation_probability, self.mutation_magnitude, self.generator)

        # a random newcomer could outfly the best; always at least one
        n_random = max(1, n * self.random_percent // 100)
        for slot in self.order[:n_random]:
            self.members[slot].policy.reinitialize_(self.generator)

    def reset(self):
        for member in self.members:
            member.simulator.reset()
            member.score = None
            member.result = None

    def summarize(self) -> GenerationSummary:
        best = self.best_member
        formula = None
        if self.export_formula:
            formula = f"BurnRate = {self.constants.max_burn:g} * " + best.policy.export_formula(self.channels.names)
        return GenerationSummary(
            generation=self.generation,
            best_score=best.score,
            best_impact_speed_mph=best.result.impact_speed_mph,
            best_fuel_remaining_lbs=best.result.fuel_remaining,
            best_burn_history=best.result.burn_history,
            formula=formula,
            rating=best.result.rating.label,
        )

    def step(self, metrics: Optional[RunMetrics] = None) -> Tuple[GenerationSummary, bool]:
        """One full generation. Returns the summary and whether the best score improved."""
        self.generation += 1
        start = time.perf_counter()

        self.evaluate()
        self.rank()
        summary = self.summarize()

        improved = self.best_score is None or summary.best_score > self.best_score
        if improved:
            self.best_score = summary.best_score
            self.champion_genome = self.best_member.policy.genome()

        if metrics is not None:
            metrics.record_generation(
                self.generation,
                scores=[m.score for m in self.members],
                survivable=[m.result.survivable for m in self.members],
                best=self.best_member.result,
                wall_time_sec_generation=time.perf_counter() - start,
            )
            if improved:
                metrics.record_improvement(summary)

        self.breed()
        self.reset()
        return summary, improved

    def run(
        self,
        cancel: threading.Event,
        reporter: Optional[Callable[[GenerationSummary], None]] = None,
        metrics: Optional[RunMetrics] = None,
        max_generations: Optional[int] = None,
    ) -> int:
        """Loop generations until cancel is set (checked between generations) or the cap is hit."""
        ran = 0
        while not cancel.is_set():
            if max_generations is not None and ran >= max_generations:
                break
            summary, improved = self.step(metrics)
            ran += 1
            if improved and reporter is not None:
                reporter(summary)
        return ran
