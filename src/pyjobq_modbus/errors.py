"""Exceptions for pyjobq-modbus: transport, connection, operation and batch failures."""


class PyJobQModbusError(Exception):
    """Base exception for pyjobq-modbus."""

    pass


class ModbusIOError(PyJobQModbusError):
    """Raised by a transport when a single Modbus call fails (wraps pymodbus or connection errors)."""

    def __init__(
        self,
        message: str,
        *,
        address: int | None = None,
        count: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.address = address
        self.count = count
        self.cause = cause
        super().__init__(message)


class DeviceConnectionError(PyJobQModbusError):
    """Raised when connecting to an endpoint failed after every connect attempt."""

    def __init__(self, endpoint: object, attempts: int, cause: BaseException | None = None) -> None:
        self.endpoint = endpoint
        self.attempts = attempts
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Failed to connect to {endpoint} after {attempts} attempts{detail}")


class OperationError(PyJobQModbusError):
    """Raised when a read/write primitive failed after every operation attempt."""

    def __init__(
        self,
        operation: str,
        address: int,
        attempts: int,
        cause: BaseException | None = None,
    ) -> None:
        self.operation = operation
        self.address = address
        self.attempts = attempts
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{operation} at wire address {address} failed after {attempts} attempts{detail}")


class UnknownJobKindError(PyJobQModbusError):
    """Raised when a job with an unrecognized kind reaches the dispatcher."""

    def __init__(self, kind: object) -> None:
        self.kind = kind
        super().__init__(f"unknown job type {getattr(kind, 'value', kind)}")


class ChunkFailureError(PyJobQModbusError):
    """Raised when one piece of a decomposed read or write batch failed; the rest of the batch is skipped."""

    def __init__(self, index: int, total: int, start: int, cause: BaseException) -> None:
        self.index = index
        self.total = total
        self.start = start
        self.cause = cause
        super().__init__(f"Chunk {index + 1}/{total} at address {start} failed: {cause}")
