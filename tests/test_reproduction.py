"""
Tests for capacity-gated reproduction.
"""

import math
import pytest
from models.bacterium import Bacterium, Position, RESISTANT_COLOR
from models.random_source import RandomSource
from models.reproduction import (
    carrying_capacity, reproduction_probability, find_offspring_position,
    create_offspring, reproduce_population
)
from schemas.simulation import SimulationParameters


class _CountingSource(RandomSource):
    """Random source that counts Bernoulli trials."""

    def __init__(self, seed=None):
        super().__init__(seed)
        self.trials = 0

    def chance(self, probability):
        self.trials += 1
        return super().chance(probability)


def _population(count, age=2, fitness=1.0):
    return [Bacterium(id=f"b{i}", x=300.0, y=300.0, age=age, fitness=fitness) for i in range(count)]


class TestCarryingCapacity:
    """Test carrying capacity formula."""

    @pytest.mark.parametrize("size,expected", [(600, 848), (100, 23), (800, 1507)])
    def test_capacity(self, size, expected):
        params = SimulationParameters(petri_dish_size=size)
        assert carrying_capacity(params) == expected
        assert expected == math.floor(math.pi * (size / 2) ** 2 * 0.003)


class TestReproductionProbability:
    """Test per-bacterium reproduction probability."""

    @pytest.mark.parametrize("age", [0, 11, 40])
    def test_ineligible_age(self, age):
        bacterium = Bacterium(id="b", x=0, y=0, age=age)
        assert reproduction_probability(bacterium, 0.5, 10, 848) == 0.0

    def test_density_scaling(self):
        bacterium = Bacterium(id="b", x=0, y=0, age=5, fitness=1.0)
        assert reproduction_probability(bacterium, 0.1, 424, 848) == pytest.approx(0.05)
        assert reproduction_probability(bacterium, 0.1, 0, 848) == pytest.approx(0.1)


class TestOffspring:
    """Test offspring placement and inheritance."""

    def test_position_near_parent(self, rng):
        parent = Bacterium(id="p", x=300, y=300)
        center = Position(300, 300)
        for _ in range(200):
            position = find_offspring_position(parent, center, 300, rng)
            assert position is not None
            assert position.distance_to(parent.position) <= 20.0

    def test_no_position_outside_dish(self, rng):
        """Test placement gives up when every candidate is outside the dish."""
        parent = Bacterium(id="p", x=5000, y=5000)
        assert find_offspring_position(parent, Position(300, 300), 300, rng) is None

    def test_inheritance(self, rng):
        parent = Bacterium(
            id="p", x=300, y=300, is_resistant=True, color=RESISTANT_COLOR,
            fitness=1.2, age=4, generation=3, size=4.0
        )
        child = create_offspring(parent, Position(305, 305), rng)

        assert child.parent_id == "p"
        assert child.generation == 4
        assert child.age == 0
        assert child.is_resistant is True
        assert child.color == RESISTANT_COLOR
        assert abs(child.fitness - 1.2) <= 0.05
        assert abs(child.size - 4.0) <= 0.25
        assert child.id != parent.id
        assert (child.x, child.y) == (305, 305)


class TestReproducePopulation:
    """Test the reproduction stage."""

    def test_at_capacity_no_offspring(self, default_params):
        """Test a population at carrying capacity does not reproduce."""
        rng = _CountingSource(seed=1)
        offspring, count = reproduce_population(_population(848), default_params, rng)

        assert offspring == []
        assert count == 0
        assert rng.trials == 0

    def test_ineligible_bacteria_draw_nothing(self, default_params):
        rng = _CountingSource(seed=1)
        offspring, count = reproduce_population(_population(10, age=0), default_params, rng)

        assert count == 0
        assert rng.trials == 0

    def test_certain_reproduction(self, rng):
        """Test probabilities above 1 make every eligible bacterium divide."""
        params = SimulationParameters(growth_rate=1.0)
        parents = _population(5, age=3, fitness=2.0)
        offspring, count = reproduce_population(parents, params, rng)

        assert count == 5
        assert [child.parent_id for child in offspring] == [p.id for p in parents]

    def test_zero_growth(self, default_params, rng):
        params = default_params.model_copy(update={"growth_rate": 0.0})
        offspring, count = reproduce_population(_population(50), params, rng)
        assert count == 0
        assert offspring == []
