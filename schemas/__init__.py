"""
Pydantic schemas for worker requests and responses.
"""

from .simulation import (
    SimulationParameters,
    SIMULATION_PRESETS,
    BacteriumPayload,
    InitializePayload,
    StepPayload,
    BatchStepPayload,
)
from .worker_protocol import (
    MessageType,
    WorkerMessage,
    MessageFactory,
    READY_MESSAGE_ID,
)

__all__ = [
    "SimulationParameters",
    "SIMULATION_PRESETS",
    "BacteriumPayload",
    "InitializePayload",
    "StepPayload",
    "BatchStepPayload",
    "MessageType",
    "WorkerMessage",
    "MessageFactory",
    "READY_MESSAGE_ID",
]
