"""
Tests for the mutation system.
"""

import pytest
from models.bacterium import Bacterium, RESISTANT_COLOR, SENSITIVE_COLOR
from models.mutation import MutationType, process_mutations, apply_mutations
from models.random_source import RandomSource


class _ScriptedSource(RandomSource):
    """Random source whose Bernoulli outcomes are scripted in call order."""

    def __init__(self, outcomes, seed=0):
        super().__init__(seed)
        self.outcomes = list(outcomes)

    def chance(self, probability):
        return self.outcomes.pop(0)


class TestProcessMutations:
    """Test mutation channels on a single bacterium."""

    def test_zero_rate_never_mutates(self, rng):
        bacterium = Bacterium(id="b", x=0, y=0)
        for _ in range(200):
            outcome = process_mutations(bacterium, 0.0, rng)
            assert not outcome.has_mutated
            assert outcome.bacterium is bacterium

    def test_resistance_channel(self):
        """Test acquiring resistance recolours and costs 20% fitness."""
        bacterium = Bacterium(id="b", x=0, y=0, fitness=1.0)
        outcome = process_mutations(bacterium, 0.05, _ScriptedSource([True, False, False]))

        assert outcome.mutations == (MutationType.RESISTANCE,)
        assert outcome.bacterium.is_resistant is True
        assert outcome.bacterium.color == RESISTANT_COLOR
        assert outcome.bacterium.fitness == pytest.approx(0.8)
        assert bacterium.is_resistant is False

    def test_resistance_cost_is_clamped(self):
        bacterium = Bacterium(id="b", x=0, y=0, fitness=0.11)
        outcome = process_mutations(bacterium, 0.05, _ScriptedSource([True, False, False]))
        assert outcome.bacterium.fitness == pytest.approx(0.1)

    def test_resistant_bacteria_skip_resistance_channel(self):
        """Test resistant bacteria only run the fitness and size channels."""
        bacterium = Bacterium(id="b", x=0, y=0, is_resistant=True, color=RESISTANT_COLOR)
        outcome = process_mutations(bacterium, 0.05, _ScriptedSource([False, True]))

        assert outcome.mutations == (MutationType.SIZE,)
        assert outcome.bacterium.is_resistant is True

    def test_fitness_drift_from_pre_mutation_value(self):
        """Test drift applies to the original fitness when resistance also fires."""
        bacterium = Bacterium(id="b", x=0, y=0, fitness=1.0)
        outcome = process_mutations(bacterium, 0.05, _ScriptedSource([True, True, False]))

        assert outcome.mutations == (MutationType.RESISTANCE, MutationType.FITNESS)
        assert outcome.bacterium.is_resistant is True
        assert 0.95 <= outcome.bacterium.fitness <= 1.05

    def test_size_drift_bounds(self, rng):
        bacterium = Bacterium(id="b", x=0, y=0, size=7.95)
        for _ in range(200):
            size = process_mutations(bacterium, 1.0, rng).bacterium.size
            assert 7.8 <= size <= 8.0

    def test_all_channels_fire(self, rng):
        bacterium = Bacterium(id="b", x=0, y=0, color=SENSITIVE_COLOR)
        outcome = process_mutations(bacterium, 10.0, rng)
        assert set(outcome.mutations) == {MutationType.RESISTANCE, MutationType.FITNESS, MutationType.SIZE}


class TestApplyMutations:
    """Test population-level mutation."""

    def test_event_count_matches_changed_bacteria(self, rng):
        population = [Bacterium(id=f"b{i}", x=0, y=0) for i in range(500)]
        mutated, events = apply_mutations(population, 0.1, rng)

        changed = sum(1 for before, after in zip(population, mutated) if before != after)
        assert len(mutated) == 500
        assert events >= changed
        assert events > 0

    def test_resistance_never_reverts(self, rng):
        population = [Bacterium(id=f"b{i}", x=0, y=0, is_resistant=True) for i in range(300)]
        mutated, _ = apply_mutations(population, 0.1, rng)
        assert all(b.is_resistant for b in mutated)

    def test_preserves_order_and_ids(self, sample_bacteria, rng):
        mutated, _ = apply_mutations(sample_bacteria, 0.1, rng)
        assert [b.id for b in mutated] == [b.id for b in sample_bacteria]
