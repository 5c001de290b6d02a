"""
Mutation system for bacterial evolution simulation.

Each bacterium is exposed to three independent mutation channels per
generation: resistance acquisition, fitness drift and size drift. Any subset
of them can fire for the same bacterium.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Tuple

from .bacterium import (
    Bacterium, RESISTANT_COLOR, MIN_FITNESS, MAX_FITNESS, MIN_SIZE, MAX_SIZE
)
from .random_source import RandomSource, clamp


RESISTANCE_RATE_FACTOR = 0.1
SIZE_RATE_FACTOR = 0.5
RESISTANCE_FITNESS_COST = 0.8
FITNESS_DRIFT_SPREAD = 0.05
SIZE_DRIFT_SPREAD = 0.15


class MutationType(Enum):
    """Types of mutations that can occur."""
    RESISTANCE = "resistance"
    FITNESS = "fitness"
    SIZE = "size"


@dataclass(frozen=True)
class MutationOutcome:
    """Result of running the mutation channels on one bacterium."""
    bacterium: Bacterium
    mutations: Tuple[MutationType, ...] = ()

    @property
    def has_mutated(self) -> bool:
        """True if any channel fired."""
        return bool(self.mutations)


def process_mutations(bacterium: Bacterium, mutation_rate: float, rng: RandomSource) -> MutationOutcome:
    """
    Run all mutation channels on a bacterium.

    Channels:
        resistance: probability mutation_rate * 0.1, sensitive cells only.
            Turns the cell resistant, recolours it and costs 20% fitness
            (clamped to [0.1, 2.0]).
        fitness: probability mutation_rate. Adds U[-0.05, 0.05] to the
            pre-mutation fitness and clamps to [0.1, 2.0].
        size: probability mutation_rate * 0.5. Adds U[-0.15, 0.15] to the
            size and clamps to [2, 8].

    Args:
        bacterium: Bacterium to mutate
        mutation_rate: Base mutation probability
        rng: Random source

    Returns:
        MutationOutcome with the (possibly) new bacterium and fired channels
    """
    changes = {}
    mutations: List[MutationType] = []

    if not bacterium.is_resistant and rng.chance(mutation_rate * RESISTANCE_RATE_FACTOR):
        changes["is_resistant"] = True
        changes["color"] = RESISTANT_COLOR
        changes["fitness"] = clamp(bacterium.fitness * RESISTANCE_FITNESS_COST, MIN_FITNESS, MAX_FITNESS)
        mutations.append(MutationType.RESISTANCE)

    if rng.chance(mutation_rate):
        # Drift starts from the pre-mutation fitness
        changes["fitness"] = rng.perturb(bacterium.fitness, FITNESS_DRIFT_SPREAD, MIN_FITNESS, MAX_FITNESS)
        mutations.append(MutationType.FITNESS)

    if rng.chance(mutation_rate * SIZE_RATE_FACTOR):
        changes["size"] = rng.perturb(bacterium.size, SIZE_DRIFT_SPREAD, MIN_SIZE, MAX_SIZE)
        mutations.append(MutationType.SIZE)

    if not mutations:
        return MutationOutcome(bacterium)
    return MutationOutcome(bacterium.evolve(**changes), tuple(mutations))


def apply_mutations(
    bacteria: Sequence[Bacterium],
    mutation_rate: float,
    rng: RandomSource
) -> Tuple[List[Bacterium], int]:
    """
    Apply mutations across a population.

    Returns:
        Tuple of (mutated population in input order, number of bacteria
        with at least one mutation)
    """
    mutated: List[Bacterium] = []
    mutation_events = 0

    for bacterium in bacteria:
        outcome = process_mutations(bacterium, mutation_rate, rng)
        if outcome.has_mutated:
            mutation_events += 1
        mutated.append(outcome.bacterium)

    return mutated, mutation_events
