"""Split jobs into protocol-safe primitive calls and recombine their results."""

import logging
from typing import Any, Sequence

from .config import EngineConfig
from .errors import ChunkFailureError, PyJobQModbusError, UnknownJobKindError
from .executor import RetryingExecutor
from .types import Endpoint, Job, JobKind, RegisterChunk

logger = logging.getLogger(__name__)


def plan_register_chunks(start: int, count: int, chunk_size: int = 50) -> list[RegisterChunk]:
    """
    Full chunks of `chunk_size` followed by one ragged remainder chunk, if any.
    A count of 0 yields no chunks.
    """
    full, remainder = divmod(count, chunk_size)
    chunks = [RegisterChunk(start=start + i * chunk_size, count=chunk_size) for i in range(full)]
    if remainder:
        chunks.append(RegisterChunk(start=start + full * chunk_size, count=remainder))
    return chunks


def plan_coil_writes(start: int, values: Sequence[bool]) -> list[tuple[int, bool]]:
    """One (address, value) single-coil write per value, at start, start+1, ..."""
    return [(start + i, bool(v)) for i, v in enumerate(values)]


class JobDispatcher:
    """
    Runs one Job to completion through the executor and returns its result.

    Register reads are chunked, coil writes are split into single-coil writes;
    both stop at the first failing piece. Register writes and coil reads are one call.
    """

    def __init__(self, executor: RetryingExecutor, config: EngineConfig | None = None) -> None:
        self._executor = executor
        self._config = config if config is not None else EngineConfig()

    def run(self, job: Job) -> Any:
        kind = job.kind
        if kind == JobKind.READ_REGISTERS:
            return self.read_registers(job.endpoint, job.start, job.count)
        if kind == JobKind.READ_COILS:
            return self.read_coils(job.endpoint, job.start, job.count)
        if kind == JobKind.WRITE_REGISTERS:
            return self.write_registers(job.endpoint, job.start, job.values)
        if kind == JobKind.WRITE_COILS:
            return self.write_coils(job.endpoint, job.start, job.values)
        raise UnknownJobKindError(kind)

    def read_registers(self, endpoint: Endpoint, start: int, count: int) -> list[int]:
        chunks = plan_register_chunks(start, count, self._config.register_chunk_size)
        if len(chunks) > 1:
            logger.debug("Reading %d registers at %d in %d chunks", count, start, len(chunks))
        out: list[int] = []
        for index, chunk in enumerate(chunks):
            try:
                out.extend(self._executor.read_registers(endpoint, chunk.start, chunk.count))
            except PyJobQModbusError as e:
                if len(chunks) == 1:
                    raise
                raise ChunkFailureError(index, len(chunks), chunk.start, e) from e
        return out

    def read_coils(self, endpoint: Endpoint, start: int, count: int) -> list[bool]:
        if count == 0:
            return []
        return self._executor.read_coils(endpoint, start, count)

    def write_registers(self, endpoint: Endpoint, start: int, values: Sequence[int]) -> None:
        if not values:
            return None
        self._executor.write_registers(endpoint, start, values)
        return None

    def write_coils(self, endpoint: Endpoint, start: int, values: Sequence[bool]) -> None:
        writes = plan_coil_writes(start, values)
        for index, (address, value) in enumerate(writes):
            try:
                self._executor.write_coil(endpoint, address, value)
            except PyJobQModbusError as e:
                if len(writes) == 1:
                    raise
                raise ChunkFailureError(index, len(writes), address, e) from e
        return None
