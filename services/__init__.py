"""
Services package: worker session, batch runner, thread host and client.
"""

from .batch_runner import BatchRunner, BatchProgress, BatchYield, BatchComplete
from .simulation_worker import SimulationWorker
from .worker_host import WorkerHost, WorkerHostError
from .worker_client import SimulationWorkerClient, WorkerError, WorkerTimeoutError

__all__ = [
    'BatchRunner',
    'BatchProgress',
    'BatchYield',
    'BatchComplete',
    'SimulationWorker',
    'WorkerHost',
    'WorkerHostError',
    'SimulationWorkerClient',
    'WorkerError',
    'WorkerTimeoutError'
]
