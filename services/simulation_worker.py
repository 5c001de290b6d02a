"""
Simulation worker: the command protocol handler.

A ``SimulationWorker`` is one isolated worker session. It receives request
envelopes, runs the engine, and posts response envelopes through the
``post`` callable it was given. All cross-request state (run flag,
performance history, random source) lives on the session object.
"""

import asyncio
import logging
import traceback
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Union

from pydantic import ValidationError

from config import settings
from models.bacterium import Bacterium
from models.generation import GenerationStepper
from models.population import initialize_population
from models.random_source import RandomSource
from models.statistics import calculate_statistics
from schemas.simulation import (
    BacteriumPayload, InitializePayload, StepPayload, BatchStepPayload, SimulationParameters
)
from schemas.worker_protocol import (
    MessageType, WorkerMessage, MessageFactory, describe_validation_error
)
from services.batch_runner import BatchRunner, BatchProgress, BatchYield, BatchComplete
from utils.performance import PerformanceHistory, timed
from utils.validation import ensure_valid_parameters

logger = logging.getLogger(__name__)

PostCallable = Callable[[Dict[str, Any]], None]


def decode_population(raw_bacteria: Sequence[Union[BacteriumPayload, Dict[str, Any]]]) -> List[Bacterium]:
    """
    Convert wire bacteria into Bacterium values.

    Entries already validated as ``BacteriumPayload`` are converted as is;
    plain dictionaries are validated first.

    Raises:
        ValueError: If an entry is missing required fields or has values of
            the wrong type
    """
    population = []
    for index, raw in enumerate(raw_bacteria):
        try:
            population.append(BacteriumPayload.model_validate(raw).to_bacterium())
        except ValidationError as e:
            raise ValueError(f"bacterium {index} is malformed: {describe_validation_error(e)}") from e
    return population


def encode_population(bacteria: List[Bacterium]) -> List[Dict[str, Any]]:
    """Convert Bacterium values into wire dictionaries."""
    return [bacterium.to_dict() for bacterium in bacteria]


class SimulationWorker:
    """Dispatches INITIALIZE / STEP / BATCH_STEP / TERMINATE requests."""

    def __init__(
        self,
        post: PostCallable,
        rng: Optional[RandomSource] = None,
        history_size: Optional[int] = None,
        progress_interval: Optional[int] = None,
        yield_interval: Optional[int] = None,
        strict_validation: Optional[bool] = None,
        include_error_stack: Optional[bool] = None
    ):
        """
        Initialize a worker session.

        Args:
            post: Callable receiving every outgoing message dictionary
            rng: Random source for the engine (seeded from settings if omitted)
            history_size: Performance ring buffer capacity
            progress_interval: Steps between batch progress reports
            yield_interval: Step indices between cooperative yields
            strict_validation: Reject out-of-range parameters
            include_error_stack: Attach tracebacks to ERROR payloads
        """
        self.post = post
        self.rng = rng or RandomSource(settings.random_seed)
        self.stepper = GenerationStepper(self.rng)
        self.batch_runner = BatchRunner(
            self.stepper,
            progress_interval=settings.progress_interval if progress_interval is None else progress_interval,
            yield_interval=settings.yield_interval if yield_interval is None else yield_interval,
        )
        self.performance_history = PerformanceHistory(
            settings.performance_history_size if history_size is None else history_size
        )
        self.strict_validation = (
            settings.strict_parameter_validation if strict_validation is None else strict_validation
        )
        self.include_error_stack = (
            settings.include_error_stack if include_error_stack is None else include_error_stack
        )

        self.is_running = False
        self.is_closed = False
        self._terminating = False
        self._batch_tasks: Set[asyncio.Task] = set()

        self._handlers = {
            MessageType.INITIALIZE: self._handle_initialize,
            MessageType.STEP: self._handle_step,
            MessageType.BATCH_STEP: self._handle_batch_step,
            MessageType.TERMINATE: self._handle_terminate,
        }

    # -- lifecycle --

    def announce_ready(self) -> None:
        """Post the unsolicited WORKER_READY message."""
        self.post(MessageFactory.create_ready())
        logger.info("Simulation worker ready")

    async def serve(self, inbox: 'asyncio.Queue[Optional[Dict[str, Any]]]') -> None:
        """
        Process requests from a queue until TERMINATE (or a None sentinel).

        BATCH_STEP requests run as tasks so that requests queued behind them,
        TERMINATE in particular, are handled at the batch's yield points.
        """
        self.announce_ready()
        try:
            while not self.is_closed:
                message = await inbox.get()
                if message is None:
                    break
                if isinstance(message, dict) and message.get("type") == MessageType.BATCH_STEP.value:
                    task = asyncio.create_task(self.handle_message(message))
                    self._batch_tasks.add(task)
                    task.add_done_callback(self._batch_tasks.discard)
                    # Let the batch start before the next request is read
                    await asyncio.sleep(0)
                else:
                    await self.handle_message(message)
        finally:
            self.is_running = False
            await self._wait_for_batches()
            logger.info("Simulation worker stopped")

    # -- dispatch --

    async def handle_message(self, message: Any) -> None:
        """
        Handle one request envelope.

        Protocol errors and anything raised by a handler are converted into
        an ERROR response carrying the request id; nothing propagates.
        """
        try:
            request = WorkerMessage.from_dict(message)
        except ValidationError as e:
            message_id = message.get("id") if isinstance(message, dict) else None
            self._post_error(str(message_id or "unknown"), f"Invalid message format: {describe_validation_error(e)}")
            return

        if self.is_closed:
            self._post_error(request.id, "Worker terminated")
            return

        message_type = request.message_type
        handler = self._handlers.get(message_type) if message_type else None
        if handler is None:
            logger.warning(f"Unknown message type: {request.type}")
            self._post_error(request.id, f"Unknown message type: {request.type}")
            return

        try:
            await handler(request)
        except Exception as e:
            logger.error(f"Error handling {request.type} ({request.id}): {e}")
            logger.debug(traceback.format_exc())
            self._post_error(request.id, f"Error handling {request.type}: {e}", traceback.format_exc())

    # -- handlers --

    async def _handle_initialize(self, request: WorkerMessage) -> None:
        payload = self._parse(InitializePayload, request.payload)
        parameters = self._check_parameters(payload.parameters)

        with timed() as stopwatch:
            bacteria = initialize_population(parameters, self.rng)
            statistics = calculate_statistics(bacteria)
        self.performance_history.record(stopwatch.elapsed_ms, len(bacteria))
        logger.debug(f"INITIALIZE {request.id}: {len(bacteria)} bacteria in {stopwatch.elapsed_ms:.2f}ms")

        self.post(MessageFactory.create_result(
            request.id, MessageType.INITIALIZE_COMPLETE, encode_population(bacteria), statistics.to_dict()
        ))

    async def _handle_step(self, request: WorkerMessage) -> None:
        payload = self._parse(StepPayload, request.payload)
        parameters = self._check_parameters(payload.parameters)
        bacteria = decode_population(payload.bacteria)

        with timed() as stopwatch:
            result = self.stepper.step(bacteria, parameters)
        self.performance_history.record(stopwatch.elapsed_ms, len(result.bacteria))
        logger.debug(f"STEP {request.id}: {len(result.bacteria)} bacteria in {stopwatch.elapsed_ms:.2f}ms")

        self.post(MessageFactory.create_result(
            request.id, MessageType.STEP_COMPLETE, encode_population(result.bacteria), result.statistics.to_dict()
        ))

    async def _handle_batch_step(self, request: WorkerMessage) -> None:
        payload = self._parse(BatchStepPayload, request.payload)
        parameters = self._check_parameters(payload.parameters)
        bacteria = decode_population(payload.bacteria)

        task = asyncio.current_task()
        self._batch_tasks.add(task)
        self.is_running = not self._terminating

        try:
            events = self.batch_runner.run(
                bacteria,
                parameters,
                payload.steps,
                report_progress=payload.report_progress,
                is_running=lambda: self.is_running,
                on_step=self.performance_history.record,
            )
            for event in events:
                if isinstance(event, BatchProgress):
                    self.post(MessageFactory.create_progress(
                        request.id,
                        event.current_step,
                        event.total_steps,
                        encode_population(event.bacteria),
                        event.statistics.to_dict(),
                    ))
                elif isinstance(event, BatchYield):
                    await asyncio.sleep(0)
                elif isinstance(event, BatchComplete):
                    self.post(MessageFactory.create_result(
                        request.id,
                        MessageType.BATCH_STEP_COMPLETE,
                        encode_population(event.bacteria),
                        event.statistics.to_dict(),
                    ))
        except Exception as e:
            logger.error(f"Batch step error ({request.id}): {e}")
            self._post_error(request.id, f"Batch step error: {e}", traceback.format_exc())
        finally:
            self._batch_tasks.discard(task)
            if not self._batch_tasks:
                self.is_running = False

    async def _handle_terminate(self, request: WorkerMessage) -> None:
        self._terminating = True
        self.is_running = False
        await self._wait_for_batches()

        self.post(MessageFactory.create_terminate_complete(request.id, self.performance_history.snapshot()))
        self.is_closed = True
        logger.info(f"Simulation worker terminated ({len(self.performance_history)} performance records)")

    # -- helpers --

    async def _wait_for_batches(self) -> None:
        """Wait for in-flight batches to reach a generation boundary and finish."""
        current = asyncio.current_task()
        pending = [task for task in self._batch_tasks if task is not current]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def _parse(self, model, payload: Dict[str, Any]):
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise ValueError(f"Invalid payload: {describe_validation_error(e)}") from e

    def _check_parameters(self, parameters: SimulationParameters) -> SimulationParameters:
        if self.strict_validation:
            ensure_valid_parameters(parameters)
        return parameters

    def _post_error(self, message_id: str, error: str, stack: Optional[str] = None) -> None:
        self.post(MessageFactory.create_error(
            message_id, error, stack if self.include_error_stack else None
        ))
