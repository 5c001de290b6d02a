"""
Async client for the simulation worker.

Correlates requests with responses by message id, enforces per-request
timeouts and routes batch progress to a callback. When the worker is
disabled or not ready the client can run the same engine in-process.
"""

import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from config import settings
from models.generation import GenerationStepper
from models.population import initialize_population
from models.random_source import RandomSource
from models.statistics import calculate_statistics
from schemas.simulation import SimulationParameters
from schemas.worker_protocol import MessageType, MessageFactory, epoch_millis
from services.simulation_worker import decode_population, encode_population
from services.worker_host import WorkerHost, WorkerHostError

logger = logging.getLogger(__name__)

FALLBACK_PROGRESS_INTERVAL = 5

ProgressCallback = Callable[[Dict[str, Any]], None]
ParametersInput = Union[SimulationParameters, Dict[str, Any]]


class WorkerError(Exception):
    """Error reported by the worker for a specific request."""

    def __init__(self, message: str, request_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.request_id = request_id


class WorkerTimeoutError(WorkerError):
    """No final response arrived within the request timeout."""


@dataclass
class PendingRequest:
    """A request waiting for its final response."""
    message_type: MessageType
    future: asyncio.Future
    on_progress: Optional[ProgressCallback] = None


class SimulationWorkerClient:
    """Host-side handle on a worker thread."""

    def __init__(
        self,
        enable_worker: bool = True,
        fallback_to_main_thread: bool = True,
        request_timeout: Optional[float] = None,
        batch_timeout: Optional[float] = None,
        **worker_options: Any
    ):
        """
        Initialize the client.

        Args:
            enable_worker: Start a worker thread on ``start``
            fallback_to_main_thread: Run in-process while no worker is ready
            request_timeout: Seconds to wait for INITIALIZE/STEP/TERMINATE
            batch_timeout: Seconds to wait for BATCH_STEP
            **worker_options: Passed through to the worker session
        """
        self.enable_worker = enable_worker
        self.fallback_to_main_thread = fallback_to_main_thread
        self.request_timeout = settings.request_timeout if request_timeout is None else request_timeout
        self.batch_timeout = settings.batch_timeout if batch_timeout is None else batch_timeout
        self.worker_options = worker_options

        self.is_ready = False
        self.last_error: Optional[str] = None

        self._host: Optional[WorkerHost] = None
        self._ready: Optional[asyncio.Event] = None
        self._pending: Dict[str, PendingRequest] = {}
        self._counter = itertools.count(1)
        self._fallback_stepper: Optional[GenerationStepper] = None

    # -- lifecycle --

    async def start(self, ready_timeout: float = 5.0) -> bool:
        """
        Start the worker thread and wait for WORKER_READY.

        Returns:
            True if the worker is ready, False if the client will use the
            in-process fallback
        """
        if not self.enable_worker:
            return False

        self._ready = asyncio.Event()
        self._host = WorkerHost(
            self._handle_message,
            callback_loop=asyncio.get_running_loop(),
            **self.worker_options
        )
        try:
            self._host.start()
            await asyncio.wait_for(self._ready.wait(), ready_timeout)
        except (WorkerHostError, asyncio.TimeoutError) as e:
            self.last_error = f"Failed to start worker: {e}"
            logger.error(self.last_error)
            self._host.stop()
            self._host = None
            return False
        return True

    async def terminate(self) -> Optional[List[Dict[str, Any]]]:
        """
        Send TERMINATE and stop the worker thread.

        Returns:
            The worker's performance history, or None if there was no worker
            or the handshake failed
        """
        if self._host is None:
            return None

        history = None
        try:
            payload = await self._send(MessageType.TERMINATE, {}, self.request_timeout)
            history = payload.get("performanceHistory")
        except WorkerError as e:
            logger.warning(f"Ignoring termination error: {e}")

        self._host.join(self.request_timeout)
        self._host = None
        self.is_ready = False
        self._reject_all("Worker terminated")
        return history

    async def __aenter__(self) -> 'SimulationWorkerClient':
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.terminate()

    # -- operations --

    async def initialize(self, parameters: ParametersInput) -> Dict[str, Any]:
        """Create a founding population. Returns ``{"bacteria", "statistics"}``."""
        parameters = self._coerce_parameters(parameters)
        if not self._worker_available():
            stepper = self._local_stepper()
            bacteria = initialize_population(parameters, stepper.rng)
            return {
                "bacteria": encode_population(bacteria),
                "statistics": calculate_statistics(bacteria).to_dict(),
            }

        return await self._send(
            MessageType.INITIALIZE,
            {"parameters": parameters.to_wire()},
            self.request_timeout
        )

    async def step(self, bacteria: List[Dict[str, Any]], parameters: ParametersInput) -> Dict[str, Any]:
        """Advance one generation."""
        parameters = self._coerce_parameters(parameters)
        if not self._worker_available():
            result = self._local_stepper().step(decode_population(bacteria), parameters)
            return result.to_dict()

        return await self._send(
            MessageType.STEP,
            {"bacteria": bacteria, "parameters": parameters.to_wire()},
            self.request_timeout
        )

    async def batch_step(
        self,
        bacteria: List[Dict[str, Any]],
        parameters: ParametersInput,
        steps: int,
        on_progress: Optional[ProgressCallback] = None
    ) -> Dict[str, Any]:
        """
        Advance ``steps`` generations.

        Args:
            bacteria: Starting population (wire dictionaries)
            parameters: Simulation parameters
            steps: Number of generations
            on_progress: Receives BATCH_STEP_PROGRESS payloads
        """
        parameters = self._coerce_parameters(parameters)
        if not self._worker_available():
            return self._run_batch_locally(bacteria, parameters, steps, on_progress)

        return await self._send(
            MessageType.BATCH_STEP,
            {
                "bacteria": bacteria,
                "parameters": parameters.to_wire(),
                "steps": steps,
                "reportProgress": on_progress is not None,
            },
            self.batch_timeout,
            on_progress
        )

    # -- messaging --

    def _next_message_id(self) -> str:
        return f"msg_{next(self._counter)}_{epoch_millis()}"

    async def _send(
        self,
        message_type: MessageType,
        payload: Dict[str, Any],
        timeout: float,
        on_progress: Optional[ProgressCallback] = None
    ) -> Dict[str, Any]:
        if self._host is None or not self.is_ready:
            raise WorkerError("Worker not ready")

        message_id = self._next_message_id()
        future = asyncio.get_running_loop().create_future()
        self._pending[message_id] = PendingRequest(message_type, future, on_progress)

        try:
            self._host.post_message(MessageFactory.create_request(message_id, message_type, payload))
            return await asyncio.wait_for(future, timeout)
        except WorkerHostError as e:
            raise WorkerError(str(e), message_id) from e
        except asyncio.TimeoutError:
            logger.error(f"{message_type.value} {message_id} timed out after {timeout}s")
            raise WorkerTimeoutError("Worker operation timeout", message_id)
        finally:
            self._pending.pop(message_id, None)

    def _handle_message(self, message: Dict[str, Any]) -> None:
        """Route a worker message to the request it answers."""
        message_id = message.get("id")
        message_type = message.get("type")
        payload = message.get("payload") or {}

        if message_type == MessageType.WORKER_READY.value:
            self.is_ready = True
            self.last_error = None
            if self._ready is not None:
                self._ready.set()
            return

        pending = self._pending.get(message_id)
        if pending is None:
            logger.debug(f"Ignoring {message_type} for unknown request {message_id}")
            return

        if message_type == MessageType.BATCH_STEP_PROGRESS.value:
            if pending.on_progress is not None:
                try:
                    pending.on_progress(payload)
                except Exception as e:
                    logger.error(f"Progress callback failed for {message_id}: {e}")
            return

        if pending.future.done():
            return

        if message_type == MessageType.ERROR.value:
            self.last_error = payload.get("error")
            pending.future.set_exception(WorkerError(payload.get("error", "Unknown worker error"), message_id))
        else:
            pending.future.set_result(payload)

    def _reject_all(self, reason: str) -> None:
        for message_id, pending in list(self._pending.items()):
            if not pending.future.done():
                pending.future.set_exception(WorkerError(reason, message_id))
        self._pending.clear()

    # -- in-process fallback --

    def _worker_available(self) -> bool:
        if self.enable_worker and self.is_ready and self._host is not None:
            return True
        if not self.fallback_to_main_thread:
            raise WorkerError("Worker not available and main thread fallback disabled")
        return False

    def _local_stepper(self) -> GenerationStepper:
        if self._fallback_stepper is None:
            rng = self.worker_options.get("rng") or RandomSource(settings.random_seed)
            self._fallback_stepper = GenerationStepper(rng)
            logger.info("Running simulation on the main thread")
        return self._fallback_stepper

    def _run_batch_locally(
        self,
        bacteria: List[Dict[str, Any]],
        parameters: SimulationParameters,
        steps: int,
        on_progress: Optional[ProgressCallback]
    ) -> Dict[str, Any]:
        """
        Run a batch without a worker.

        Progress is reported after the first step of every block of
        ``FALLBACK_PROGRESS_INTERVAL`` steps and after the last step.
        """
        stepper = self._local_stepper()
        current_bacteria = decode_population(bacteria)

        for step in range(steps):
            result = stepper.step(current_bacteria, parameters)
            current_bacteria = result.bacteria

            if on_progress is not None and (step % FALLBACK_PROGRESS_INTERVAL == 0 or step == steps - 1):
                on_progress({
                    "currentStep": step + 1,
                    "totalSteps": steps,
                    "progress": (step + 1) / steps,
                    "bacteria": encode_population(current_bacteria),
                    "statistics": result.statistics.to_dict(),
                })

        return {
            "bacteria": encode_population(current_bacteria),
            "statistics": calculate_statistics(current_bacteria).to_dict(),
        }

    @staticmethod
    def _coerce_parameters(parameters: ParametersInput) -> SimulationParameters:
        if isinstance(parameters, SimulationParameters):
            return parameters
        return SimulationParameters.model_validate(parameters)
