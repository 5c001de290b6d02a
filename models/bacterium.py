"""
Bacterium value type for individual bacterial cells in the simulation.
"""

from typing import Optional, Dict, Any
from dataclasses import dataclass, replace
from enum import Enum
import math


# Colour palette shared with the front end
DEFAULT_COLORS = (
    "#22c55e",  # Green for sensitive
    "#ef4444",  # Red for resistant
    "#3b82f6",  # Blue variant
    "#eab308",  # Yellow variant
    "#a855f7",  # Purple variant
    "#06b6d4",  # Cyan variant
)
SENSITIVE_COLOR = DEFAULT_COLORS[0]
RESISTANT_COLOR = DEFAULT_COLORS[1]

MIN_FITNESS = 0.1
MAX_FITNESS = 2.0
MIN_SIZE = 2.0
MAX_SIZE = 8.0


class ResistanceStatus(Enum):
    """Enum for bacterial resistance status."""
    SENSITIVE = "sensitive"
    RESISTANT = "resistant"


@dataclass(frozen=True)
class Position:
    """2D position inside the Petri dish."""
    x: float
    y: float

    def distance_to(self, other: 'Position') -> float:
        """Calculate Euclidean distance to another position."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def is_inside_circle(self, center: 'Position', radius: float) -> bool:
        """Check if position lies inside (or on) a circle."""
        return (self.x - center.x) ** 2 + (self.y - center.y) ** 2 <= radius ** 2


@dataclass(frozen=True)
class Bacterium:
    """
    Individual bacterium as an immutable per-generation value.

    Every pipeline stage builds a new instance (see ``evolve``) instead of
    mutating an existing one, so a population list handed to the engine is
    never modified.

    Attributes:
        id: Unique identifier, stable for the bacterium's lifetime
        x: Horizontal position in dish coordinates
        y: Vertical position in dish coordinates
        is_resistant: Antibiotic resistance flag (false -> true only)
        fitness: Reproductive fitness in [0.1, 2.0]
        age: Generations alive
        generation: Lineage depth from the founding population
        parent_id: ID of parent bacterium (lookup only, may no longer exist)
        color: Display colour
        size: Display size in [2, 8]
    """

    id: str
    x: float
    y: float
    is_resistant: bool = False
    fitness: float = 1.0
    age: int = 0
    generation: int = 0
    parent_id: Optional[str] = None
    color: str = SENSITIVE_COLOR
    size: float = MIN_SIZE

    @property
    def position(self) -> Position:
        """Position as a value object."""
        return Position(self.x, self.y)

    @property
    def resistance_status(self) -> ResistanceStatus:
        """Resistance flag as a status enum."""
        return ResistanceStatus.RESISTANT if self.is_resistant else ResistanceStatus.SENSITIVE

    def evolve(self, **changes: Any) -> 'Bacterium':
        """Return a copy of this bacterium with the given fields replaced."""
        return replace(self, **changes)

    def aged(self) -> 'Bacterium':
        """Return this bacterium one generation older."""
        return replace(self, age=self.age + 1)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase wire representation."""
        data = {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "isResistant": self.is_resistant,
            "fitness": self.fitness,
            "age": self.age,
            "generation": self.generation,
            "color": self.color,
            "size": self.size,
        }
        if self.parent_id is not None:
            data["parentId"] = self.parent_id
        return data

    def __str__(self) -> str:
        """String representation of bacterium."""
        return (f"Bacterium {self.id}: {self.resistance_status.value}, "
                f"age={self.age}, fitness={self.fitness:.3f}, pos=({self.x:.1f},{self.y:.1f})")
