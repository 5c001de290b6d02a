"""
Random number source and probability primitives for the simulation engine.

Every stochastic stage of the engine draws from a ``RandomSource`` that is
passed in explicitly, so a seeded source replays a run exactly.
"""

import math
import random
import string
from typing import Optional


# Antibiotic model constants
KILL_CONSTANT = 1.5
RESISTANT_FACTOR = 0.9
SENSITIVE_FACTOR = 0.1

# Natural death model constants
BASE_SURVIVAL_RATE = 0.98
AGE_DECAY = 0.99

_TOKEN_ALPHABET = string.digits + string.ascii_lowercase


class RandomSource:
    """
    Injectable, seedable source of uniform draws.

    Wraps its own ``random.Random`` instance so that engine randomness never
    touches the module-level generator.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._rng = random.Random(seed)

    def random(self) -> float:
        """Uniform draw in [0, 1)."""
        return self._rng.random()

    def uniform(self, low: float, high: float) -> float:
        """Uniform draw in [low, high)."""
        return low + (high - low) * self._rng.random()

    def chance(self, probability: float) -> bool:
        """
        Bernoulli trial.

        A draw is always >= 0, so probabilities <= 0 never fire and
        probabilities >= 1 always fire.
        """
        return self._rng.random() < probability

    def perturb(self, value: float, spread: float, low: float, high: float) -> float:
        """
        Add centred uniform noise in [-spread, spread] and clamp to [low, high].

        Args:
            value: Starting value
            spread: Half-width of the noise interval
            low: Lower clamp bound
            high: Upper clamp bound

        Returns:
            Perturbed, clamped value
        """
        return clamp(value + (self._rng.random() - 0.5) * 2 * spread, low, high)

    def angle(self) -> float:
        """Uniform angle in radians, [0, 2π)."""
        return self._rng.random() * 2 * math.pi

    def token(self, length: int = 9) -> str:
        """Short base-36 token used to make entity ids unique."""
        return "".join(self._rng.choice(_TOKEN_ALPHABET) for _ in range(length))

    def __repr__(self) -> str:
        return f"RandomSource(seed={self.seed})"


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def antibiotic_survival_probability(concentration: float, is_resistant: bool) -> float:
    """
    Survival probability under antibiotic exposure.

    S = exp(-k * c * (1 - r)), where r is 0.9 for resistant and 0.1 for
    sensitive bacteria. Resistant cells therefore face a tenth of the
    effective concentration.

    Args:
        concentration: Antibiotic concentration (0.0 to 1.0)
        is_resistant: Whether the bacterium carries resistance

    Returns:
        Survival probability
    """
    resistance_factor = RESISTANT_FACTOR if is_resistant else SENSITIVE_FACTOR
    effective_concentration = concentration * (1 - resistance_factor)
    return math.exp(-KILL_CONSTANT * effective_concentration)


def natural_survival_probability(age: int, fitness: float) -> float:
    """
    Survival probability against age-related natural death.

    0.98 * 0.99^age * fitness. Not clamped: fitness above ~1.02 gives a
    value above 1, which always survives.
    """
    return BASE_SURVIVAL_RATE * (AGE_DECAY ** age) * fitness
