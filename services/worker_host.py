"""
Runs a SimulationWorker on a background thread with its own event loop.

Messages cross the thread boundary by value: requests are deep-copied before
they are queued for the worker, and responses are freshly built dictionaries.
"""

import asyncio
import copy
import logging
import threading
from typing import Any, Callable, Dict, Optional

from services.simulation_worker import SimulationWorker

logger = logging.getLogger(__name__)

MessageCallback = Callable[[Dict[str, Any]], None]


class WorkerHostError(RuntimeError):
    """Raised when the host thread cannot accept messages."""


class WorkerHost:
    """Thread owning one worker session and the loop it runs on."""

    def __init__(
        self,
        on_message: MessageCallback,
        callback_loop: Optional[asyncio.AbstractEventLoop] = None,
        **worker_options: Any
    ):
        """
        Initialize the host.

        Args:
            on_message: Receives every message the worker posts
            callback_loop: If given, ``on_message`` is scheduled on this loop
                instead of being called on the worker thread
            **worker_options: Passed through to SimulationWorker
        """
        self.on_message = on_message
        self.callback_loop = callback_loop
        self.worker_options = worker_options
        self.worker: Optional[SimulationWorker] = None

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._inbox: Optional[asyncio.Queue] = None
        self._thread: Optional[threading.Thread] = None
        self._started = threading.Event()

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, timeout: float = 5.0) -> None:
        """Start the worker thread and wait until its loop accepts messages."""
        if self.is_alive:
            return
        self._started.clear()
        self._thread = threading.Thread(target=self._run, name="simulation-worker", daemon=True)
        self._thread.start()
        if not self._started.wait(timeout):
            raise WorkerHostError("Worker thread did not start")
        logger.info("Worker host started")

    def post_message(self, message: Dict[str, Any]) -> None:
        """Queue a request for the worker."""
        loop = self._loop
        if loop is None or not self.is_alive:
            raise WorkerHostError("Worker is not running")
        try:
            loop.call_soon_threadsafe(self._inbox.put_nowait, copy.deepcopy(message))
        except RuntimeError as e:
            raise WorkerHostError(f"Worker is not running: {e}") from e

    def stop(self, timeout: float = 5.0) -> None:
        """
        Stop the worker without the TERMINATE handshake.

        Pending requests receive no response.
        """
        loop = self._loop
        if loop is not None and self.is_alive:
            try:
                loop.call_soon_threadsafe(self._inbox.put_nowait, None)
            except RuntimeError:
                pass  # loop already closed
        self.join(timeout)

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning("Worker thread did not exit in time")

    def _deliver(self, message: Dict[str, Any]) -> None:
        if self.callback_loop is not None:
            try:
                self.callback_loop.call_soon_threadsafe(self.on_message, message)
            except RuntimeError:
                logger.warning(f"Dropped {message.get('type')} message: callback loop is closed")
        else:
            self.on_message(message)

    def _run(self) -> None:
        """Worker thread main function."""
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self._loop = loop
        self._inbox = asyncio.Queue()
        self.worker = SimulationWorker(post=self._deliver, **self.worker_options)
        self._started.set()

        try:
            loop.run_until_complete(self.worker.serve(self._inbox))
        except Exception as e:
            logger.error(f"Worker thread crashed: {e}")
        finally:
            self._loop = None
            loop.close()
            logger.info("Worker thread exited")
