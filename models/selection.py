"""
Selection stages of the generation pipeline.

Two independent culls are applied in order: antibiotic selection, then
natural (age and fitness related) death. Each returns the survivors in input
order together with the number of bacteria removed.
"""

from typing import List, Sequence, Tuple

from .bacterium import Bacterium
from .random_source import (
    RandomSource, antibiotic_survival_probability, natural_survival_probability
)


def survives_antibiotic(bacterium: Bacterium, concentration: float, rng: RandomSource) -> bool:
    """
    Bernoulli survival trial against the antibiotic.

    With no antibiotic present every bacterium survives and no draw is made.
    """
    if concentration == 0:
        return True
    return rng.chance(antibiotic_survival_probability(concentration, bacterium.is_resistant))


def survives_natural_death(bacterium: Bacterium, rng: RandomSource) -> bool:
    """Bernoulli survival trial against age-related death."""
    return rng.chance(natural_survival_probability(bacterium.age, bacterium.fitness))


def apply_antibiotic_selection(
    bacteria: Sequence[Bacterium],
    concentration: float,
    rng: RandomSource
) -> Tuple[List[Bacterium], int]:
    """
    Remove bacteria killed by the antibiotic.

    Args:
        bacteria: Population after aging
        concentration: Antibiotic concentration
        rng: Random source

    Returns:
        Tuple of (survivors, antibiotic deaths)
    """
    survivors = [b for b in bacteria if survives_antibiotic(b, concentration, rng)]
    return survivors, len(bacteria) - len(survivors)


def apply_natural_death(
    bacteria: Sequence[Bacterium],
    rng: RandomSource
) -> Tuple[List[Bacterium], int]:
    """
    Remove bacteria that die of natural causes.

    Returns:
        Tuple of (survivors, natural deaths)
    """
    survivors = [b for b in bacteria if survives_natural_death(b, rng)]
    return survivors, len(bacteria) - len(survivors)
