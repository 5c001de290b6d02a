"""
Tests for the generation stepper.
"""

import pytest
from models.bacterium import Bacterium
from models.generation import GenerationStepper, calculate_next_generation
from models.population import initialize_population
from models.random_source import RandomSource
from models.reproduction import carrying_capacity
from schemas.simulation import SimulationParameters


@pytest.fixture
def founders(default_params):
    return initialize_population(default_params, RandomSource(seed=77))


def _run(bacteria, params, generations, seed=1):
    stepper = GenerationStepper(RandomSource(seed=seed))
    results = []
    for _ in range(generations):
        result = stepper.step(bacteria, params)
        results.append(result)
        bacteria = result.bacteria
    return results


class TestGenerationStepper:
    """Test one-generation transitions."""

    def test_input_is_not_modified(self, founders, default_params, rng):
        snapshot = list(founders)
        GenerationStepper(rng).step(founders, default_params)
        assert founders == snapshot

    def test_attribute_bounds(self, antibiotic_params):
        """Test fitness and size stay in range over many generations."""
        founders = initialize_population(antibiotic_params, RandomSource(seed=8))
        for result in _run(founders, antibiotic_params, 40):
            for bacterium in result.bacteria:
                assert 0.1 <= bacterium.fitness <= 2.0
                assert 2.0 <= bacterium.size <= 8.0
                assert (bacterium.x - 300) ** 2 + (bacterium.y - 300) ** 2 <= 300 ** 2 + 1e-6

    def test_resistance_is_monotonic(self, antibiotic_params):
        """Test a resistant id never shows up sensitive later."""
        founders = initialize_population(antibiotic_params, RandomSource(seed=9))
        resistant_ids = set()
        for result in _run(founders, antibiotic_params, 30):
            for bacterium in result.bacteria:
                if bacterium.id in resistant_ids:
                    assert bacterium.is_resistant
                if bacterium.is_resistant:
                    resistant_ids.add(bacterium.id)

    def test_ages_advance_and_lineage(self, founders, default_params):
        """Test survivors age by one and offspring are one generation deeper."""
        previous = {b.id: b for b in founders}
        result = _run(founders, default_params, 1)[0]

        for bacterium in result.bacteria:
            if bacterium.id in previous:
                assert bacterium.age == previous[bacterium.id].age + 1
            else:
                assert bacterium.age == 0
                parent = previous[bacterium.parent_id]
                assert bacterium.generation == parent.generation + 1

    def test_survivors_precede_offspring(self, founders, default_params):
        result = _run(founders, default_params, 1)[0]
        is_offspring = [b.parent_id is not None for b in result.bacteria]
        assert is_offspring == sorted(is_offspring)

    def test_no_growth_without_reproduction(self, founders):
        """Test the population never grows when growth rate is zero."""
        params = SimulationParameters(antibiotic_concentration=0.0, growth_rate=0.0, mutation_rate=0.0)
        size = len(founders)
        for result in _run(founders, params, 30):
            assert len(result.bacteria) <= size
            assert result.statistics.reproductions == 0
            assert result.statistics.mutation_events == 0
            assert result.statistics.antibiotic_deaths == 0
            size = len(result.bacteria)

    def test_population_conservation(self, antibiotic_params):
        """Test N' = N - deaths + reproductions each generation."""
        bacteria = initialize_population(antibiotic_params, RandomSource(seed=10))
        stepper = GenerationStepper(RandomSource(seed=11))
        for _ in range(25):
            result = stepper.step(bacteria, antibiotic_params)
            stats = result.statistics
            assert stats.total_population == (
                len(bacteria) - stats.antibiotic_deaths - stats.natural_deaths + stats.reproductions
            )
            assert stats.total_population == len(result.bacteria)
            assert stats.resistant_count + stats.sensitive_count == stats.total_population
            bacteria = result.bacteria

    def test_capacity_gate(self, default_params, rng):
        """Test a population at capacity produces no offspring."""
        capacity = carrying_capacity(default_params)
        crowded = [Bacterium(id=f"b{i}", x=300, y=300, fitness=2.0, age=1) for i in range(capacity)]
        result = GenerationStepper(rng).step(crowded, default_params)

        assert result.statistics.reproductions == 0
        assert all(b.parent_id is None for b in result.bacteria)

    def test_deterministic_with_seed(self, founders, antibiotic_params):
        """Test same input and seed give identical output (ids aside)."""
        first = _run(founders, antibiotic_params, 10, seed=5)
        second = _run(founders, antibiotic_params, 10, seed=5)

        def shape(results):
            return [
                (r.statistics.to_dict(), [(b.x, b.y, b.fitness, b.size, b.is_resistant) for b in r.bacteria])
                for r in results
            ]

        assert shape(first) == shape(second)

    def test_empty_population(self, default_params, rng):
        result = GenerationStepper(rng).step([], default_params)
        assert result.bacteria == []
        assert result.statistics.total_population == 0

    def test_functional_shortcut(self, founders, default_params):
        result = calculate_next_generation(founders, default_params, RandomSource(seed=3))
        assert result.statistics.total_population == len(result.bacteria)
        assert set(result.to_dict()) == {"bacteria", "statistics"}
