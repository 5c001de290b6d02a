"""
Models package for bacterial evolution simulation.

This package contains the simulation engine:
- Bacterium value type and colour palette
- Seedable random source and survival formulas
- Population initialization inside the Petri dish
- Selection, reproduction and mutation stages
- Statistics aggregation and the generation stepper
"""

from .bacterium import Bacterium, Position, ResistanceStatus, DEFAULT_COLORS
from .random_source import RandomSource
from .population import initialize_population
from .reproduction import carrying_capacity
from .mutation import MutationType, MutationOutcome, process_mutations
from .statistics import GenerationStatistics, calculate_statistics
from .generation import GenerationStepper, StepResult, calculate_next_generation

__all__ = [
    "Bacterium", "Position", "ResistanceStatus", "DEFAULT_COLORS",
    "RandomSource",
    "initialize_population",
    "carrying_capacity",
    "MutationType", "MutationOutcome", "process_mutations",
    "GenerationStatistics", "calculate_statistics",
    "GenerationStepper", "StepResult", "calculate_next_generation",
]
