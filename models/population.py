"""
Population initialization inside a circular Petri dish.
"""

import logging
import time
from typing import List, Tuple, TYPE_CHECKING

from .bacterium import (
    Bacterium, Position, RESISTANT_COLOR, SENSITIVE_COLOR,
    MIN_FITNESS, MAX_FITNESS, MIN_SIZE
)
from .random_source import RandomSource

if TYPE_CHECKING:
    from schemas.simulation import SimulationParameters

logger = logging.getLogger(__name__)


INITIAL_RESISTANCE_PROBABILITY = 0.1
RESISTANT_BASE_FITNESS = 0.8
SENSITIVE_BASE_FITNESS = 1.0
INITIAL_FITNESS_SPREAD = 0.1
INITIAL_SIZE_RANGE = (MIN_SIZE, 5.0)


def dish_geometry(parameters: 'SimulationParameters') -> Tuple[Position, float]:
    """
    Centre and radius of the dish.

    The dish occupies the square [0, diameter] x [0, diameter], so its centre
    is (radius, radius).
    """
    radius = parameters.dish_radius
    return Position(radius, radius), radius


def random_position_in_circle(center: Position, radius: float, rng: RandomSource) -> Position:
    """
    Draw a uniformly distributed point inside a circle.

    Rejection sampling: draw from the bounding square until the point falls
    inside. The acceptance ratio is pi/4, so the expected number of draws is
    about 1.27.
    """
    while True:
        candidate = Position(
            center.x + (rng.random() - 0.5) * 2 * radius,
            center.y + (rng.random() - 0.5) * 2 * radius,
        )
        if candidate.is_inside_circle(center, radius):
            return candidate


def initial_fitness(is_resistant: bool, rng: RandomSource) -> float:
    """Founding fitness: resistant cells start lower (cost of resistance)."""
    base_fitness = RESISTANT_BASE_FITNESS if is_resistant else SENSITIVE_BASE_FITNESS
    return rng.perturb(base_fitness, INITIAL_FITNESS_SPREAD, MIN_FITNESS, MAX_FITNESS)


def initialize_population(parameters: 'SimulationParameters', rng: RandomSource) -> List[Bacterium]:
    """
    Create the founding population.

    Args:
        parameters: Simulation parameters (initial_population, petri_dish_size)
        rng: Random source

    Returns:
        List of ``initial_population`` bacteria placed inside the dish; empty
        for non-positive counts
    """
    center, radius = dish_geometry(parameters)
    created_at = int(time.time() * 1000)
    bacteria: List[Bacterium] = []

    for index in range(parameters.initial_population):
        position = random_position_in_circle(center, radius, rng)
        is_resistant = rng.chance(INITIAL_RESISTANCE_PROBABILITY)

        bacteria.append(Bacterium(
            id=f"bacteria_{index}_{created_at}_{rng.token()}",
            x=position.x,
            y=position.y,
            is_resistant=is_resistant,
            fitness=initial_fitness(is_resistant, rng),
            age=0,
            generation=0,
            parent_id=None,
            color=RESISTANT_COLOR if is_resistant else SENSITIVE_COLOR,
            size=rng.uniform(*INITIAL_SIZE_RANGE),
        ))

    logger.debug("Initialized population of %d bacteria (radius=%.1f)", len(bacteria), radius)
    return bacteria
