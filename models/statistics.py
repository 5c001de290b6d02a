"""
Population statistics aggregation.
"""

from dataclasses import dataclass, replace
from typing import Dict, Any, Sequence
import numpy as np

from .bacterium import Bacterium


@dataclass(frozen=True)
class GenerationStatistics:
    """Aggregate statistics for one population snapshot."""
    total_population: int = 0
    resistant_count: int = 0
    sensitive_count: int = 0
    average_fitness: float = 0.0

    # Per-generation event counters, overlaid by the stepper
    mutation_events: int = 0
    antibiotic_deaths: int = 0
    natural_deaths: int = 0
    reproductions: int = 0

    @property
    def resistance_frequency(self) -> float:
        """Fraction of resistant bacteria (0.0 for an empty population)."""
        if self.total_population == 0:
            return 0.0
        return self.resistant_count / self.total_population

    def with_events(
        self,
        mutation_events: int = 0,
        antibiotic_deaths: int = 0,
        natural_deaths: int = 0,
        reproductions: int = 0
    ) -> 'GenerationStatistics':
        """Return a copy carrying the given event counters."""
        return replace(
            self,
            mutation_events=mutation_events,
            antibiotic_deaths=antibiotic_deaths,
            natural_deaths=natural_deaths,
            reproductions=reproductions,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase wire representation."""
        return {
            "totalPopulation": self.total_population,
            "resistantCount": self.resistant_count,
            "sensitiveCount": self.sensitive_count,
            "averageFitness": self.average_fitness,
            "mutationEvents": self.mutation_events,
            "antibioticDeaths": self.antibiotic_deaths,
            "naturalDeaths": self.natural_deaths,
            "reproductions": self.reproductions,
        }


def calculate_statistics(bacteria: Sequence[Bacterium]) -> GenerationStatistics:
    """
    Calculate statistics from scratch for a population snapshot.

    Event counters are left at zero; callers that know them overlay them
    with ``GenerationStatistics.with_events``.

    Args:
        bacteria: Population snapshot

    Returns:
        GenerationStatistics for the snapshot
    """
    total_population = len(bacteria)
    if total_population == 0:
        return GenerationStatistics()

    resistant_count = sum(1 for b in bacteria if b.is_resistant)
    fitness_values = np.fromiter((b.fitness for b in bacteria), dtype=float, count=total_population)

    return GenerationStatistics(
        total_population=total_population,
        resistant_count=resistant_count,
        sensitive_count=total_population - resistant_count,
        average_fitness=float(np.mean(fitness_values)),
    )
