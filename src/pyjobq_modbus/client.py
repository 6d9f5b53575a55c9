"""ModbusJobClient: composition root wiring transport, connection, executor and scheduler."""

import logging
import time
from concurrent.futures import Future
from typing import Any, Callable, Iterator, Sequence

from .chunking import JobDispatcher
from .config import EngineConfig
from .connection import ConnectionManager
from .executor import RetryingExecutor
from .scheduler import JobScheduler
from .transport import DeviceTransport, PymodbusTransport
from .types import Endpoint, Job, JobKind

logger = logging.getLogger(__name__)

EndpointLike = Endpoint | tuple[str, int]


def _check_register_start(start: int) -> None:
    if start < 1:
        raise ValueError(f"Register start must be >= 1, got {start}")


def _check_count(count: int) -> None:
    if count < 0:
        raise ValueError(f"count must be >= 0, got {count}")


class ModbusJobClient:
    """
    Asynchronous, serialized access to Modbus TCP devices.

    Every call enqueues a job and returns a concurrent.futures.Future. Jobs run
    one at a time in FIFO order on a single connection, which is reused while
    calls keep arriving and closed once the queue stays empty for
    `config.disconnect_debounce` seconds.

        client = ModbusJobClient()
        values = client.read_registers(("192.168.1.10", 502), start=1, count=120).result()
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        transport: DeviceTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config if config is not None else EngineConfig()
        if transport is None:
            transport = PymodbusTransport(unit_id=self._config.unit_id, timeout=self._config.response_timeout)
        self._transport = transport
        self._sleep = sleep
        self._connection = ConnectionManager(transport, self._config, sleep=sleep)
        self._executor = RetryingExecutor(self._connection, self._config, sleep=sleep)
        self._dispatcher = JobDispatcher(self._executor, self._config)
        self._scheduler = JobScheduler(self._dispatcher, self._connection, self._config, sleep=sleep)

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def connection(self) -> ConnectionManager:
        return self._connection

    @property
    def scheduler(self) -> JobScheduler:
        return self._scheduler

    def submit(self, job: Job) -> Future:
        """Enqueue a pre-built job."""
        return self._scheduler.enqueue(job)

    def read_registers(self, endpoint: EndpointLike, start: int, count: int) -> Future:
        """Read `count` holding registers from 1-based `start`; resolves to list[int]."""
        _check_register_start(start)
        _check_count(count)
        return self.submit(Job(JobKind.READ_REGISTERS, Endpoint.of(endpoint), start, count=count))

    def read_coils(self, endpoint: EndpointLike, start: int, count: int) -> Future:
        """Read `count` coil units from `start`; resolves to list[bool]."""
        _check_count(count)
        return self.submit(Job(JobKind.READ_COILS, Endpoint.of(endpoint), start, count=count))

    def write_registers(self, endpoint: EndpointLike, start: int, values: Sequence[int]) -> Future:
        """Write holding registers from 1-based `start`; resolves to None."""
        _check_register_start(start)
        payload = [int(v) for v in values]
        for v in payload:
            if not (0 <= v <= 0xFFFF):
                raise ValueError(f"Register value out of range 0..65535: {v}")
        return self.submit(Job(JobKind.WRITE_REGISTERS, Endpoint.of(endpoint), start, values=payload))

    def write_coils(self, endpoint: EndpointLike, start: int, values: Sequence[bool]) -> Future:
        """Write coils one at a time from `start`; resolves to None once every write succeeded."""
        payload = [bool(v) for v in values]
        return self.submit(Job(JobKind.WRITE_COILS, Endpoint.of(endpoint), start, values=payload))

    def poll_iter(
        self,
        endpoint: EndpointLike,
        start: int,
        count: int,
        interval_s: float,
    ) -> Iterator[list[int]]:
        """
        Yield a blocking register read every interval_s seconds indefinitely.
        Polls closer together than the debounce interval share one connection.
        """
        while True:
            yield self.read_registers(endpoint, start, count).result()
            self._sleep(interval_s)

    def wait_idle(self, timeout: float | None = None) -> bool:
        return self._scheduler.wait_idle(timeout)

    def close(self, timeout: float | None = None) -> None:
        """Wait for queued jobs to finish; the scheduler closes the connection once idle."""
        if not self._scheduler.wait_idle(timeout):
            logger.warning("Timed out waiting for %d queued jobs", self._scheduler.pending)

    def __enter__(self) -> "ModbusJobClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
