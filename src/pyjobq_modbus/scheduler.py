"""JobScheduler: FIFO job queue drained in rounds by a single worker thread."""

import logging
import threading
import time
from collections import deque
from concurrent.futures import Future, InvalidStateError
from typing import Any, Callable

from .chunking import JobDispatcher
from .config import EngineConfig
from .connection import ConnectionManager
from .types import Job

logger = logging.getLogger(__name__)


class JobScheduler:
    """
    Serializes jobs so that at most one transport call is outstanding.

    A round is the snapshot of the queue taken when processing starts. Its jobs
    run one after another; afterwards exactly that many entries are dropped from
    the head, so jobs enqueued meanwhile form the next round. Each job's future
    gets its own result or exception, in round order.

    After a round the worker waits `disconnect_debounce` seconds. If nothing new
    arrived the connection is closed and the worker exits; otherwise the next
    round starts on the same connection.
    """

    def __init__(
        self,
        dispatcher: JobDispatcher,
        connection: ConnectionManager,
        config: EngineConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._dispatcher = dispatcher
        self._connection = connection
        self._config = config if config is not None else EngineConfig()
        self._sleep = sleep
        self._queue: deque[Job] = deque()
        self._lock = threading.Lock()
        self._executing = False
        self._idle = threading.Event()
        self._idle.set()
        self._worker: threading.Thread | None = None
        self._rounds = 0

    @property
    def pending(self) -> int:
        """Jobs in the queue, including the round being executed."""
        with self._lock:
            return len(self._queue)

    @property
    def is_busy(self) -> bool:
        with self._lock:
            return self._executing

    @property
    def rounds(self) -> int:
        """Number of rounds completed so far."""
        return self._rounds

    def enqueue(self, job: Job) -> Future:
        """Append `job` to the tail and start the worker if it is idle. Returns the job's future."""
        # Queued jobs are committed: the future can no longer be cancelled.
        if not job.future.set_running_or_notify_cancel():
            logger.debug("Skipping cancelled job %s at %s on %s", job.kind, job.start, job.endpoint)
            return job.future
        with self._lock:
            self._queue.append(job)
            if not self._executing:
                self._executing = True
                self._idle.clear()
                self._worker = threading.Thread(target=self._process, name="pyjobq-worker", daemon=True)
                self._worker.start()
        return job.future

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until the queue is drained and the connection closed. Returns False on timeout."""
        return self._idle.wait(timeout)

    def _process(self) -> None:
        stopped = False
        try:
            while True:
                self._run_round()
                self._sleep(self._config.disconnect_debounce)
                if self._attempt_disconnect():
                    stopped = True
                    return
        finally:
            if not stopped:
                # Leftover jobs stay queued and run when the next enqueue starts a worker.
                logger.error("Worker stopped unexpectedly with %d jobs queued", self.pending)
                with self._lock:
                    self._mark_idle()

    def _run_round(self) -> None:
        with self._lock:
            current = list(self._queue)
        logger.debug("Starting round of %d jobs", len(current))

        outcomes: list[tuple[Any, BaseException | None]] = []
        for job in current:
            outcomes.append(self._execute(job))

        with self._lock:
            for _ in range(len(current)):
                self._queue.popleft()
        self._rounds += 1

        for job, (result, error) in zip(current, outcomes):
            try:
                if error is not None:
                    job.future.set_exception(error)
                else:
                    job.future.set_result(result)
            except InvalidStateError:
                logger.warning("Future for job %s at %s was already completed elsewhere", job.kind, job.start)

    def _execute(self, job: Job) -> tuple[Any, BaseException | None]:
        try:
            return self._dispatcher.run(job), None
        except Exception as e:
            logger.debug("Job %s at %s on %s failed: %s", job.kind, job.start, job.endpoint, e)
            return None, e

    def _attempt_disconnect(self) -> bool:
        with self._lock:
            if self._queue:
                return False
        # Closed outside the lock; _executing stays True so enqueue cannot start a second worker.
        self._connection.disconnect()
        with self._lock:
            if self._queue:
                return False
            self._mark_idle()
            return True

    def _mark_idle(self) -> None:
        self._executing = False
        self._worker = None
        self._idle.set()
