"""
Pydantic schemas for simulation parameters and results.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import List, Dict, Any, Optional
from models.bacterium import Bacterium, MIN_SIZE, RESISTANT_COLOR, SENSITIVE_COLOR


class CamelModel(BaseModel):
    """Base model that speaks camelCase on the wire and snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        """Dump with camelCase keys."""
        return self.model_dump(by_alias=True)


class SimulationParameters(CamelModel):
    """
    Externally supplied simulation parameters.

    Only types are enforced here. Range checks live in
    ``utils.validation`` so that the engine itself stays permissive.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    initial_population: int = Field(default=50, description="Number of founding bacteria")
    petri_dish_size: float = Field(default=600, description="Dish diameter")
    growth_rate: float = Field(default=0.1, description="Base reproduction probability")
    antibiotic_concentration: float = Field(default=0.0, description="Antibiotic concentration (0.0-1.0)")
    mutation_rate: float = Field(default=0.02, description="Per-generation mutation probability")
    duration: int = Field(default=100, description="Generation budget for a run")

    @property
    def dish_radius(self) -> float:
        """Dish radius (half the diameter)."""
        return self.petri_dish_size / 2

    @classmethod
    def from_preset(cls, name: str) -> 'SimulationParameters':
        """
        Build parameters from a named preset.

        Raises:
            KeyError: If the preset does not exist
        """
        return cls(**SIMULATION_PRESETS[name])


# Preset configurations for common scenarios
SIMULATION_PRESETS: Dict[str, Dict[str, Any]] = {
    "default": {
        "initial_population": 50,
        "growth_rate": 0.1,
        "antibiotic_concentration": 0.0,
        "mutation_rate": 0.02,
        "duration": 100,
        "petri_dish_size": 600,
    },
    "high_pressure": {
        "initial_population": 100,
        "growth_rate": 0.15,
        "antibiotic_concentration": 0.8,
        "mutation_rate": 0.05,
        "duration": 200,
        "petri_dish_size": 600,
    },
    "slow_evolution": {
        "initial_population": 30,
        "growth_rate": 0.05,
        "antibiotic_concentration": 0.3,
        "mutation_rate": 0.001,
        "duration": 500,
        "petri_dish_size": 600,
    },
    "rapid_mutation": {
        "initial_population": 75,
        "growth_rate": 0.2,
        "antibiotic_concentration": 0.5,
        "mutation_rate": 0.08,
        "duration": 150,
        "petri_dish_size": 600,
    },
}


class InitializePayload(CamelModel):
    """Payload of an INITIALIZE request."""

    parameters: SimulationParameters


class BacteriumPayload(CamelModel):
    """
    A bacterium as a host sends it.

    Flags and counters are strict: ``"false"`` is not a boolean and ``1.9``
    is not an age. Missing age and generation default to 0 and a missing
    fitness to 1.0, so partially populated snapshots are still accepted.
    """

    id: str
    x: float
    y: float
    is_resistant: bool = Field(default=False, strict=True)
    fitness: Optional[float] = None
    age: int = Field(default=0, strict=True)
    generation: int = Field(default=0, strict=True)
    parent_id: Optional[str] = None
    color: Optional[str] = None
    size: float = MIN_SIZE

    def to_bacterium(self) -> Bacterium:
        """Build the engine value, filling in fitness and colour defaults."""
        return Bacterium(
            id=self.id,
            x=self.x,
            y=self.y,
            is_resistant=self.is_resistant,
            fitness=1.0 if self.fitness is None else self.fitness,
            age=self.age,
            generation=self.generation,
            parent_id=self.parent_id,
            color=self.color or (RESISTANT_COLOR if self.is_resistant else SENSITIVE_COLOR),
            size=self.size,
        )


class StepPayload(CamelModel):
    """Payload of a STEP request."""

    bacteria: List[BacteriumPayload] = Field(default_factory=list)
    parameters: SimulationParameters


class BatchStepPayload(CamelModel):
    """Payload of a BATCH_STEP request."""

    bacteria: List[BacteriumPayload] = Field(default_factory=list)
    parameters: SimulationParameters
    steps: int
    report_progress: Optional[bool] = True

    @field_validator("report_progress", mode="before")
    @classmethod
    def _null_means_report(cls, value: Any) -> Any:
        return True if value is None else value
