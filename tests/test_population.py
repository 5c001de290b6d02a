"""
Tests for population initialization.
"""

import math
import re
import pytest
from models.bacterium import RESISTANT_COLOR, SENSITIVE_COLOR, Position
from models.population import dish_geometry, initialize_population, random_position_in_circle
from models.random_source import RandomSource
from schemas.simulation import SimulationParameters


class TestDishGeometry:
    """Test dish geometry helpers."""

    def test_center_and_radius(self, default_params):
        center, radius = dish_geometry(default_params)
        assert center == Position(300, 300)
        assert radius == 300

    def test_positions_inside_circle(self, rng):
        center = Position(100, 100)
        for _ in range(500):
            assert random_position_in_circle(center, 100, rng).is_inside_circle(center, 100)


class TestInitializePopulation:
    """Test founding population creation."""

    def test_large_population(self):
        """Test 1000 founders inside a 600px dish with ~10% resistance."""
        params = SimulationParameters(initial_population=1000, petri_dish_size=600)
        bacteria = initialize_population(params, RandomSource(seed=99))

        assert len(bacteria) == 1000
        for bacterium in bacteria:
            assert (bacterium.x - 300) ** 2 + (bacterium.y - 300) ** 2 <= 300 ** 2

        resistant = sum(1 for b in bacteria if b.is_resistant)
        sigma = math.sqrt(1000 * 0.1 * 0.9)
        assert abs(resistant - 100) <= 3 * sigma

    def test_resistance_fraction_across_runs(self):
        """Test the pooled resistant fraction over repeated runs."""
        params = SimulationParameters(initial_population=1000)
        resistant = 0
        for seed in range(1, 6):
            bacteria = initialize_population(params, RandomSource(seed=seed))
            resistant += sum(1 for b in bacteria if b.is_resistant)

        assert abs(resistant - 500) <= 3 * math.sqrt(5000 * 0.1 * 0.9)

    def test_founder_attributes(self, default_params, rng):
        """Test founder fitness, size, colour and lineage fields."""
        bacteria = initialize_population(default_params, rng)

        for bacterium in bacteria:
            assert bacterium.age == 0
            assert bacterium.generation == 0
            assert bacterium.parent_id is None
            assert 2.0 <= bacterium.size < 5.0
            if bacterium.is_resistant:
                assert bacterium.color == RESISTANT_COLOR
                assert 0.7 <= bacterium.fitness <= 0.9
            else:
                assert bacterium.color == SENSITIVE_COLOR
                assert 0.9 <= bacterium.fitness <= 1.1

    def test_unique_ids(self, rng):
        params = SimulationParameters(initial_population=500)
        bacteria = initialize_population(params, rng)

        assert len({b.id for b in bacteria}) == 500
        assert re.fullmatch(r"bacteria_0_\d+_[0-9a-z]{9}", bacteria[0].id)

    @pytest.mark.parametrize("count", [0, -5])
    def test_non_positive_count(self, rng, count):
        """Test non-positive counts produce an empty population."""
        params = SimulationParameters(initial_population=count)
        assert initialize_population(params, rng) == []

    def test_deterministic_with_seed(self, default_params):
        """Test the same seed gives the same founders (ids aside)."""
        first = initialize_population(default_params, RandomSource(seed=5))
        second = initialize_population(default_params, RandomSource(seed=5))

        assert [(b.x, b.y, b.is_resistant, b.fitness, b.size) for b in first] == \
               [(b.x, b.y, b.is_resistant, b.fitness, b.size) for b in second]
