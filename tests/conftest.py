"""
Pytest fixtures for engine, worker and API testing.
"""

import pytest
from fastapi.testclient import TestClient
from main import app
from models.bacterium import Bacterium, RESISTANT_COLOR
from models.random_source import RandomSource
from schemas.simulation import SimulationParameters
from services.simulation_worker import SimulationWorker


@pytest.fixture
def client():
    """FastAPI test client fixture."""
    return TestClient(app)


@pytest.fixture
def rng():
    """Seeded random source so every test replays the same draws."""
    return RandomSource(seed=12345)


@pytest.fixture
def default_params():
    """Default simulation parameters (600px dish, no antibiotic)."""
    return SimulationParameters()


@pytest.fixture
def antibiotic_params():
    """Parameters with strong antibiotic pressure."""
    return SimulationParameters(
        initial_population=100,
        antibiotic_concentration=0.8,
        growth_rate=0.15,
        mutation_rate=0.05,
    )


@pytest.fixture
def wire_params():
    """Parameters as a host sends them."""
    return {
        "initialPopulation": 20,
        "growthRate": 0.1,
        "antibioticConcentration": 0.0,
        "mutationRate": 0.02,
        "duration": 100,
        "petriDishSize": 600,
    }


@pytest.fixture
def sample_bacteria():
    """Small mixed population near the dish centre."""
    return [
        Bacterium(id="b1", x=300.0, y=300.0, fitness=1.0, age=2),
        Bacterium(id="b2", x=310.0, y=290.0, fitness=0.9, age=5),
        Bacterium(id="b3", x=280.0, y=305.0, is_resistant=True, color=RESISTANT_COLOR, fitness=0.8, age=1),
        Bacterium(id="b4", x=320.0, y=320.0, fitness=1.1, age=0),
    ]


@pytest.fixture
def outbox():
    """List collecting every message a worker posts."""
    return []


@pytest.fixture
def worker(outbox):
    """Worker session posting into ``outbox`` with a seeded random source."""
    return SimulationWorker(post=outbox.append, rng=RandomSource(seed=2024))
