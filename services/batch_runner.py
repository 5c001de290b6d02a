"""
Batch runner for multi-generation simulation runs.

A batch is exposed as a generator of events instead of a blocking loop, so
the host decides what a suspension point means: the async worker awaits the
event loop at every ``BatchYield``, a synchronous caller simply keeps
iterating.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Sequence, Union, TYPE_CHECKING

from models.bacterium import Bacterium
from models.generation import GenerationStepper
from models.statistics import GenerationStatistics, calculate_statistics
from utils.performance import timed

if TYPE_CHECKING:
    from schemas.simulation import SimulationParameters

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchProgress:
    """Intermediate snapshot reported during a batch."""
    current_step: int
    total_steps: int
    bacteria: List[Bacterium]
    statistics: GenerationStatistics

    @property
    def progress(self) -> float:
        """Completed fraction (0.0 to 1.0)."""
        return self.current_step / self.total_steps if self.total_steps else 1.0


@dataclass(frozen=True)
class BatchYield:
    """Cooperative suspension point; the host may run other work here."""
    current_step: int


@dataclass(frozen=True)
class BatchComplete:
    """Final event of every batch, including cancelled ones."""
    bacteria: List[Bacterium]
    statistics: GenerationStatistics
    steps_completed: int
    cancelled: bool = False


BatchEvent = Union[BatchProgress, BatchYield, BatchComplete]
StepCallback = Callable[[float, int], None]


class BatchRunner:
    """
    Runs the generation stepper repeatedly with progress reporting,
    cooperative yielding and cancellation between generations.
    """

    def __init__(
        self,
        stepper: GenerationStepper,
        progress_interval: int = 5,
        yield_interval: int = 10
    ):
        """
        Initialize the batch runner.

        Args:
            stepper: Stepper used for every generation
            progress_interval: Report progress every N completed steps
            yield_interval: Suspend after step indices divisible by N
        """
        if progress_interval < 1 or yield_interval < 1:
            raise ValueError("Progress and yield intervals must be positive")
        self.stepper = stepper
        self.progress_interval = progress_interval
        self.yield_interval = yield_interval

    def run(
        self,
        bacteria: Sequence[Bacterium],
        parameters: 'SimulationParameters',
        steps: int,
        report_progress: bool = True,
        is_running: Callable[[], bool] = lambda: True,
        on_step: Optional[StepCallback] = None
    ) -> Iterator[BatchEvent]:
        """
        Run up to ``steps`` generations.

        The run flag is checked before every generation, so cancellation
        takes effect at the next generation boundary; a generation that has
        started always completes.

        Args:
            bacteria: Starting population
            parameters: Simulation parameters
            steps: Number of generations to run
            report_progress: Emit BatchProgress every ``progress_interval``
                steps and after the last one
            is_running: Run flag probe
            on_step: Called with (step time in ms, population size) after
                every generation

        Yields:
            BatchProgress and BatchYield events, then exactly one
            BatchComplete. Its statistics are recomputed from the final
            population and carry no event counters.
        """
        current_bacteria: List[Bacterium] = list(bacteria)
        current_step = 0
        cancelled = False

        for step in range(steps):
            if not is_running():
                cancelled = True
                logger.info(f"Batch cancelled after {current_step}/{steps} steps")
                break

            with timed() as stopwatch:
                result = self.stepper.step(current_bacteria, parameters)

            current_bacteria = result.bacteria
            current_step = step + 1

            if on_step is not None:
                on_step(stopwatch.elapsed_ms, len(current_bacteria))

            if report_progress and (current_step % self.progress_interval == 0 or current_step == steps):
                yield BatchProgress(
                    current_step=current_step,
                    total_steps=steps,
                    bacteria=current_bacteria,
                    statistics=result.statistics,
                )

            if step % self.yield_interval == 0:
                yield BatchYield(current_step=current_step)

        yield BatchComplete(
            bacteria=current_bacteria,
            statistics=calculate_statistics(current_bacteria),
            steps_completed=current_step,
            cancelled=cancelled,
        )

    def run_to_completion(
        self,
        bacteria: Sequence[Bacterium],
        parameters: 'SimulationParameters',
        steps: int,
        on_progress: Optional[Callable[[BatchProgress], None]] = None
    ) -> BatchComplete:
        """
        Drive a batch synchronously, ignoring suspension points.

        Args:
            bacteria: Starting population
            parameters: Simulation parameters
            steps: Number of generations to run
            on_progress: Optional callback for progress snapshots

        Returns:
            The final BatchComplete event
        """
        final_event = None
        for event in self.run(bacteria, parameters, steps, report_progress=on_progress is not None):
            if isinstance(event, BatchProgress) and on_progress is not None:
                on_progress(event)
            elif isinstance(event, BatchComplete):
                final_event = event
        return final_event
