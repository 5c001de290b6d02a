"""
Generation stepper: the core transition function of the simulation.

One call advances a population by one generation through a fixed pipeline:

    aging -> antibiotic selection -> natural death -> reproduction
          -> mutation -> aggregation

Each stage consumes the previous stage's output. The stepper keeps no state
between calls; the same population, parameters and seeded random source
always produce the same result.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, TYPE_CHECKING

from .bacterium import Bacterium
from .mutation import apply_mutations
from .random_source import RandomSource
from .reproduction import reproduce_population
from .selection import apply_antibiotic_selection, apply_natural_death
from .statistics import GenerationStatistics, calculate_statistics

if TYPE_CHECKING:
    from schemas.simulation import SimulationParameters


@dataclass(frozen=True)
class StepResult:
    """Population and statistics produced by one generation."""
    bacteria: List[Bacterium]
    statistics: GenerationStatistics

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase wire representation."""
        return {
            "bacteria": [b.to_dict() for b in self.bacteria],
            "statistics": self.statistics.to_dict(),
        }


class GenerationStepper:
    """Advances a population by one generation."""

    def __init__(self, rng: RandomSource):
        """
        Initialize the stepper.

        Args:
            rng: Random source drawn from by every stochastic stage
        """
        self.rng = rng

    def step(self, bacteria: Sequence[Bacterium], parameters: 'SimulationParameters') -> StepResult:
        """
        Calculate the next generation.

        Args:
            bacteria: Current population (not modified)
            parameters: Simulation parameters for this generation

        Returns:
            StepResult with survivors followed by offspring, and statistics
            carrying this generation's event counters
        """
        aged = [b.aged() for b in bacteria]

        survivors, antibiotic_deaths = apply_antibiotic_selection(
            aged, parameters.antibiotic_concentration, self.rng
        )
        living, natural_deaths = apply_natural_death(survivors, self.rng)

        offspring, reproductions = reproduce_population(living, parameters, self.rng)

        mutated, mutation_events = apply_mutations(living + offspring, parameters.mutation_rate, self.rng)

        statistics = calculate_statistics(mutated).with_events(
            mutation_events=mutation_events,
            antibiotic_deaths=antibiotic_deaths,
            natural_deaths=natural_deaths,
            reproductions=reproductions,
        )
        return StepResult(bacteria=mutated, statistics=statistics)


def calculate_next_generation(
    bacteria: Sequence[Bacterium],
    parameters: 'SimulationParameters',
    rng: RandomSource
) -> StepResult:
    """Functional shortcut for ``GenerationStepper(rng).step(...)``."""
    return GenerationStepper(rng).step(bacteria, parameters)
