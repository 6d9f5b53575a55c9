"""RetryingExecutor: address-translated Modbus primitives with bounded immediate retry."""

import logging
import time
from typing import Callable, Sequence, TypeVar

from .addressing import coil_bit_count, coil_wire_address, register_wire_address, sample_coil_units
from .config import EngineConfig
from .connection import ConnectionManager
from .errors import ModbusIOError, OperationError
from .types import Endpoint

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryingExecutor:
    """
    Runs one primitive at a time against the connection manager's transport.

    Each primitive connects first (connection failures propagate untouched), then
    retries the same call up to max_operation_attempts times on ModbusIOError.
    Addresses passed in are logical; translation to wire addresses happens here.
    """

    def __init__(
        self,
        connection: ConnectionManager,
        config: EngineConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._connection = connection
        self._config = config if config is not None else EngineConfig()
        self._sleep = sleep

    def _run(self, endpoint: Endpoint, operation: str, address: int, call: Callable[[], T]) -> T:
        state = self._connection.state
        while True:
            self._connection.ensure_connected(endpoint)
            try:
                result = call()
            except ModbusIOError as e:
                if state.reattempts < self._config.max_operation_attempts:
                    logger.warning(
                        "%s at %d on %s failed (attempt %d): %s",
                        operation,
                        address,
                        endpoint,
                        state.reattempts + 1,
                        e,
                    )
                    state.reattempts += 1
                    if self._config.operation_retry_delay:
                        self._sleep(self._config.operation_retry_delay)
                    continue
                attempts = state.reattempts + 1
                state.reattempts = 0
                logger.error("%s at %d on %s failed after %d attempts", operation, address, endpoint, attempts)
                raise OperationError(operation, address, attempts, cause=e) from e
            state.reattempts = 0
            return result

    def read_registers(self, endpoint: Endpoint, start: int, count: int) -> list[int]:
        """Read `count` holding registers starting at 1-based `start`."""
        address = register_wire_address(start)
        transport = self._connection.transport
        return self._run(
            endpoint,
            "read_holding_registers",
            address,
            lambda: list(transport.read_holding_registers(address, count)),
        )

    def read_coils(self, endpoint: Endpoint, start: int, count: int) -> list[bool]:
        """Read `count` coil units; each unit is one sampled bit out of coil_bits_per_unit."""
        address = coil_wire_address(start, self._config.coil_address_offset)
        bits_per_unit = self._config.coil_bits_per_unit
        bit_count = coil_bit_count(count, bits_per_unit)
        transport = self._connection.transport
        bits = self._run(
            endpoint,
            "read_coils",
            address,
            lambda: transport.read_coils(address, bit_count),
        )
        return sample_coil_units(bits, count, bits_per_unit)

    def write_registers(self, endpoint: Endpoint, start: int, values: Sequence[int]) -> None:
        address = register_wire_address(start)
        transport = self._connection.transport
        payload = [int(v) for v in values]
        self._run(
            endpoint,
            "write_registers",
            address,
            lambda: transport.write_registers(address, payload),
        )

    def write_coil(self, endpoint: Endpoint, start: int, value: bool) -> None:
        address = coil_wire_address(start, self._config.coil_address_offset)
        transport = self._connection.transport
        self._run(
            endpoint,
            "write_coil",
            address,
            lambda: transport.write_coil(address, bool(value)),
        )
