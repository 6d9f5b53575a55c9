"""Transport adapter: the raw Modbus primitives the engine drives, backed by pymodbus."""

import logging
from typing import Any, Protocol, Sequence

from pymodbus.client import ModbusTcpClient
from pymodbus.exceptions import ModbusException as PymodbusException

from .errors import ModbusIOError
from .types import Endpoint

logger = logging.getLogger(__name__)


class DeviceTransport(Protocol):
    """Connected-or-not client for one device. Every call may raise ModbusIOError."""

    def connect(self, endpoint: Endpoint) -> None: ...

    def close(self) -> None: ...

    def configure(self, unit_id: int, timeout: float) -> None: ...

    def read_holding_registers(self, address: int, count: int) -> list[int]: ...

    def read_coils(self, address: int, bit_count: int) -> list[bool]: ...

    def write_registers(self, address: int, values: Sequence[int]) -> None: ...

    def write_coil(self, address: int, value: bool) -> None: ...


class PymodbusTransport:
    """
    DeviceTransport over pymodbus' synchronous TCP client.
    pymodbus' own retries are disabled; retrying is done by the executor.
    """

    def __init__(self, unit_id: int = 1, timeout: float = 5.0) -> None:
        self._unit_id = unit_id
        self._timeout = timeout
        self._client: ModbusTcpClient | None = None

    @property
    def connected(self) -> bool:
        return self._client is not None

    def connect(self, endpoint: Endpoint) -> None:
        self.close()
        client = ModbusTcpClient(
            host=endpoint.host,
            port=endpoint.port,
            timeout=self._timeout,
            retries=0,
        )
        try:
            ok = client.connect()
        except PymodbusException as e:
            raise ModbusIOError(f"Failed to connect to {endpoint}: {e}", cause=e) from e
        if not ok:
            client.close()
            raise ModbusIOError(f"Failed to connect to {endpoint}")
        logger.debug("Transport connected to %s", endpoint)
        self._client = client

    def close(self) -> None:
        if self._client is not None:
            try:
                self._client.close()
            except Exception as e:
                logger.warning("Error closing Modbus client: %s", e)
            self._client = None

    def configure(self, unit_id: int, timeout: float) -> None:
        """Set the unit id for subsequent requests and the response timeout for the next session."""
        self._unit_id = unit_id
        self._timeout = timeout

    def _require_client(self) -> ModbusTcpClient:
        if self._client is None:
            raise ModbusIOError("Transport is not connected")
        return self._client

    def _check(self, rr: Any, address: int, count: int | None = None) -> Any:
        if rr.isError():
            raise ModbusIOError(
                str(rr),
                address=address,
                count=count,
                cause=getattr(rr, "exception", None),
            )
        return rr

    def read_holding_registers(self, address: int, count: int) -> list[int]:
        client = self._require_client()
        try:
            rr = client.read_holding_registers(address, count=count, device_id=self._unit_id)
        except PymodbusException as e:
            raise ModbusIOError(str(e), address=address, count=count, cause=e) from e
        self._check(rr, address, count)
        registers = getattr(rr, "registers", None)
        if registers is None or len(registers) < count:
            raise ModbusIOError("Short register response", address=address, count=count)
        return [int(r) for r in registers[:count]]

    def read_coils(self, address: int, bit_count: int) -> list[bool]:
        client = self._require_client()
        try:
            rr = client.read_coils(address, count=bit_count, device_id=self._unit_id)
        except PymodbusException as e:
            raise ModbusIOError(str(e), address=address, count=bit_count, cause=e) from e
        self._check(rr, address, bit_count)
        bits = getattr(rr, "bits", None)
        if bits is None or len(bits) < bit_count:
            raise ModbusIOError("Short bit response", address=address, count=bit_count)
        return [bool(b) for b in bits[:bit_count]]

    def write_registers(self, address: int, values: Sequence[int]) -> None:
        client = self._require_client()
        try:
            rr = client.write_registers(address, [int(v) for v in values], device_id=self._unit_id)
        except PymodbusException as e:
            raise ModbusIOError(str(e), address=address, count=len(values), cause=e) from e
        self._check(rr, address, len(values))

    def write_coil(self, address: int, value: bool) -> None:
        client = self._require_client()
        try:
            rr = client.write_coil(address, bool(value), device_id=self._unit_id)
        except PymodbusException as e:
            raise ModbusIOError(str(e), address=address, count=1, cause=e) from e
        self._check(rr, address, 1)
