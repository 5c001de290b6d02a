"""
Capacity-gated reproduction for bacterial populations.

The dish supports a fixed density of bacteria. Below that carrying capacity,
young bacteria divide with a probability that shrinks as the population
approaches capacity; at or above it nobody divides.
"""

import math
import time
from typing import List, Optional, Sequence, Tuple, TYPE_CHECKING

from .bacterium import Bacterium, Position, MIN_FITNESS, MAX_FITNESS, MIN_SIZE, MAX_SIZE
from .population import dish_geometry
from .random_source import RandomSource

if TYPE_CHECKING:
    from schemas.simulation import SimulationParameters


DENSITY_FACTOR = 0.003  # bacteria per unit area
MIN_REPRODUCTION_AGE = 1
MAX_REPRODUCTION_AGE = 10
MAX_OFFSPRING_DISTANCE = 20.0
MAX_PLACEMENT_ATTEMPTS = 10
INHERITED_FITNESS_SPREAD = 0.05
INHERITED_SIZE_SPREAD = 0.25


def carrying_capacity(parameters: 'SimulationParameters') -> int:
    """
    Maximum population the dish supports.

    K = floor(pi * radius^2 * 0.003)
    """
    area = math.pi * parameters.dish_radius ** 2
    return math.floor(area * DENSITY_FACTOR)


def is_reproductive_age(bacterium: Bacterium) -> bool:
    """Only bacteria aged 1 to 10 may divide."""
    return MIN_REPRODUCTION_AGE <= bacterium.age <= MAX_REPRODUCTION_AGE


def reproduction_probability(
    bacterium: Bacterium,
    growth_rate: float,
    current_population: int,
    capacity: int
) -> float:
    """
    Probability that a bacterium divides this generation.

    The base rate growth_rate * fitness is scaled by the remaining headroom
    (1 - N/K). Bacteria outside the reproductive age window get 0.
    """
    if not is_reproductive_age(bacterium):
        return 0.0
    population_pressure = 1 - current_population / capacity
    return growth_rate * bacterium.fitness * population_pressure


def find_offspring_position(
    parent: Bacterium,
    center: Position,
    radius: float,
    rng: RandomSource
) -> Optional[Position]:
    """
    Find a spot for a daughter cell near its parent.

    Tries up to ten random angle/distance samples within 20 units of the
    parent and returns the first one inside the dish, or None when all fall
    outside.
    """
    for _ in range(MAX_PLACEMENT_ATTEMPTS):
        angle = rng.angle()
        distance = rng.random() * MAX_OFFSPRING_DISTANCE
        candidate = Position(
            parent.x + math.cos(angle) * distance,
            parent.y + math.sin(angle) * distance,
        )
        if candidate.is_inside_circle(center, radius):
            return candidate
    return None


def create_offspring(parent: Bacterium, position: Position, rng: RandomSource) -> Bacterium:
    """
    Create a daughter cell.

    Resistance and colour are inherited unchanged; fitness and size drift
    slightly from the parent's values.
    """
    return Bacterium(
        id=f"bacteria_{int(time.time() * 1000)}_{rng.token()}",
        x=position.x,
        y=position.y,
        is_resistant=parent.is_resistant,
        fitness=rng.perturb(parent.fitness, INHERITED_FITNESS_SPREAD, MIN_FITNESS, MAX_FITNESS),
        age=0,
        generation=parent.generation + 1,
        parent_id=parent.id,
        color=parent.color,
        size=rng.perturb(parent.size, INHERITED_SIZE_SPREAD, MIN_SIZE, MAX_SIZE),
    )


def reproduce_population(
    bacteria: Sequence[Bacterium],
    parameters: 'SimulationParameters',
    rng: RandomSource
) -> Tuple[List[Bacterium], int]:
    """
    Run the reproduction stage for one generation.

    Args:
        bacteria: Living bacteria after both selection stages
        parameters: Simulation parameters (growth_rate, petri_dish_size)
        rng: Random source

    Returns:
        Tuple of (offspring in parent order, successful reproductions).
        A reproduction whose daughter cannot be placed inside the dish is
        dropped and not counted.
    """
    capacity = carrying_capacity(parameters)
    current_population = len(bacteria)
    if current_population >= capacity:
        return [], 0

    center, radius = dish_geometry(parameters)
    offspring: List[Bacterium] = []

    for bacterium in bacteria:
        if not is_reproductive_age(bacterium):
            continue
        probability = reproduction_probability(bacterium, parameters.growth_rate, current_population, capacity)
        if not rng.chance(probability):
            continue
        position = find_offspring_position(bacterium, center, radius, rng)
        if position is None:
            continue
        offspring.append(create_offspring(bacterium, position, rng))

    return offspring, len(offspring)
