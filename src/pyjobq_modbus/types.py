"""Core data model: Endpoint, JobKind, Job, ConnectionState and register chunks."""

from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence


class JobKind(str, Enum):
    """Kinds of job the dispatcher knows how to run."""

    READ_REGISTERS = "read_registers"
    READ_COILS = "read_coils"
    WRITE_REGISTERS = "write_registers"
    WRITE_COILS = "write_coils"


class LinkStatus(str, Enum):
    """Reconnect state machine states."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass(frozen=True)
class Endpoint:
    """(host, port) of one device's Modbus TCP interface."""

    host: str
    port: int = 502

    def __post_init__(self) -> None:
        if not self.host:
            raise ValueError("host cannot be empty")
        if not (0 < self.port < 65536):
            raise ValueError(f"port must be in 1..65535, got {self.port}")

    @classmethod
    def of(cls, value: "Endpoint | tuple[str, int]") -> "Endpoint":
        """Coerce an Endpoint or a (host, port) tuple."""
        if isinstance(value, Endpoint):
            return value
        host, port = value
        return cls(host=host, port=int(port))

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass
class Job:
    """
    One queued operation. `count` is used by reads, `values` by writes.
    `future` is the completion handle; it is completed exactly once by the scheduler.
    """

    kind: JobKind | str
    endpoint: Endpoint
    start: int
    count: int = 0
    values: Sequence[Any] = ()
    future: Future = field(default_factory=Future, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.count < 0:
            raise ValueError(f"count must be >= 0, got {self.count}")


@dataclass
class ConnectionState:
    """Connection identity and the shared reattempt counter."""

    endpoint: Endpoint | None = None
    connected: bool = False
    reattempts: int = 0

    def reset(self) -> None:
        self.endpoint = None
        self.connected = False
        self.reattempts = 0


@dataclass(frozen=True)
class RegisterChunk:
    """One primitive register read inside a decomposed read: logical start and count."""

    start: int
    count: int
