"""pyjobq-modbus: serialized, retrying Modbus TCP job queue over pymodbus."""

__version__ = "0.1.0"

from .chunking import JobDispatcher, plan_coil_writes, plan_register_chunks
from .client import ModbusJobClient
from .config import EngineConfig
from .connection import ConnectionManager
from .errors import (
    ChunkFailureError,
    DeviceConnectionError,
    ModbusIOError,
    OperationError,
    PyJobQModbusError,
    UnknownJobKindError,
)
from .executor import RetryingExecutor
from .scheduler import JobScheduler
from .transport import DeviceTransport, PymodbusTransport
from .types import ConnectionState, Endpoint, Job, JobKind, LinkStatus, RegisterChunk

__all__ = [
    "__version__",
    "ModbusJobClient",
    "EngineConfig",
    "ConnectionManager",
    "RetryingExecutor",
    "JobDispatcher",
    "JobScheduler",
    "DeviceTransport",
    "PymodbusTransport",
    "plan_register_chunks",
    "plan_coil_writes",
    "ChunkFailureError",
    "DeviceConnectionError",
    "ModbusIOError",
    "OperationError",
    "PyJobQModbusError",
    "UnknownJobKindError",
    "ConnectionState",
    "Endpoint",
    "Job",
    "JobKind",
    "LinkStatus",
    "RegisterChunk",
]
