"""
Worker Message Protocol

This module defines the message envelope exchanged between a host and the
simulation worker, the request/response message types, and a factory for
building standardized responses.

Every message is ``{"id": str, "type": str, "payload": dict}``. Responses
echo the id of the request they answer; ``WORKER_READY`` uses the fixed id
``"init"``.
"""

from typing import Dict, List, Optional, Any
from enum import Enum
import time
from pydantic import BaseModel, Field, ValidationError


READY_MESSAGE_ID = "init"


class MessageType(str, Enum):
    """Worker message types."""

    # Host to worker
    INITIALIZE = "INITIALIZE"
    STEP = "STEP"
    BATCH_STEP = "BATCH_STEP"
    TERMINATE = "TERMINATE"

    # Worker to host
    WORKER_READY = "WORKER_READY"
    INITIALIZE_COMPLETE = "INITIALIZE_COMPLETE"
    STEP_COMPLETE = "STEP_COMPLETE"
    BATCH_STEP_PROGRESS = "BATCH_STEP_PROGRESS"
    BATCH_STEP_COMPLETE = "BATCH_STEP_COMPLETE"
    TERMINATE_COMPLETE = "TERMINATE_COMPLETE"
    ERROR = "ERROR"


def epoch_millis() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class WorkerMessage(BaseModel):
    """
    Message envelope.

    ``type`` is kept as a plain string so that unknown request types still
    parse and can be answered with an ERROR naming them.
    """

    id: str = Field(..., description="Correlation id")
    type: str = Field(..., description="Message type identifier")
    payload: Dict[str, Any] = Field(default_factory=dict, description="Message payload")

    @property
    def message_type(self) -> Optional[MessageType]:
        """Known message type, or None for an unrecognised one."""
        try:
            return MessageType(self.type)
        except ValueError:
            return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert message to a plain dictionary."""
        return {"id": self.id, "type": self.type, "payload": self.payload}

    @classmethod
    def from_dict(cls, data: Any) -> 'WorkerMessage':
        """
        Parse an envelope from a decoded message.

        Raises:
            ValidationError: If id or type are missing or malformed
        """
        if isinstance(data, dict) and data.get("payload") is None:
            data = {**data, "payload": {}}
        return cls.model_validate(data)


# Message Factory

class MessageFactory:
    """Factory class for creating standardized worker messages."""

    @staticmethod
    def create_request(message_id: str, message_type: MessageType, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Create a host-to-worker request."""
        return WorkerMessage(id=message_id, type=message_type.value, payload=payload or {}).to_dict()

    @staticmethod
    def create_ready() -> Dict[str, Any]:
        """Create the unsolicited readiness announcement."""
        return WorkerMessage(
            id=READY_MESSAGE_ID,
            type=MessageType.WORKER_READY.value,
            payload={"timestamp": epoch_millis()}
        ).to_dict()

    @staticmethod
    def create_result(message_id: str, message_type: MessageType, bacteria: List[Dict[str, Any]], statistics: Dict[str, Any]) -> Dict[str, Any]:
        """Create a population result (INITIALIZE/STEP/BATCH_STEP completion)."""
        return WorkerMessage(
            id=message_id,
            type=message_type.value,
            payload={"bacteria": bacteria, "statistics": statistics}
        ).to_dict()

    @staticmethod
    def create_progress(
        message_id: str,
        current_step: int,
        total_steps: int,
        bacteria: List[Dict[str, Any]],
        statistics: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Create a batch progress snapshot."""
        return WorkerMessage(
            id=message_id,
            type=MessageType.BATCH_STEP_PROGRESS.value,
            payload={
                "currentStep": current_step,
                "totalSteps": total_steps,
                "progress": current_step / total_steps if total_steps else 1.0,
                "bacteria": bacteria,
                "statistics": statistics,
            }
        ).to_dict()

    @staticmethod
    def create_terminate_complete(message_id: str, performance_history: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Create the termination acknowledgement."""
        return WorkerMessage(
            id=message_id,
            type=MessageType.TERMINATE_COMPLETE.value,
            payload={"performanceHistory": performance_history}
        ).to_dict()

    @staticmethod
    def create_error(message_id: str, error: str, stack: Optional[str] = None) -> Dict[str, Any]:
        """Create error message."""
        payload: Dict[str, Any] = {"error": error}
        if stack:
            payload["stack"] = stack
        return WorkerMessage(id=message_id, type=MessageType.ERROR.value, payload=payload).to_dict()


def describe_validation_error(error: ValidationError) -> str:
    """Flatten a pydantic validation error into one readable line."""
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ()))
        parts.append(f"{location}: {item.get('msg')}" if location else item.get("msg", ""))
    return "; ".join(parts)
