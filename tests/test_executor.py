"""Tests for the retrying executor: address translation and operation retry ceilings."""

from unittest.mock import MagicMock

import pytest

from pyjobq_modbus.config import EngineConfig
from pyjobq_modbus.connection import ConnectionManager
from pyjobq_modbus.errors import DeviceConnectionError, ModbusIOError, OperationError
from pyjobq_modbus.executor import RetryingExecutor
from pyjobq_modbus.types import Endpoint


@pytest.fixture
def connection(mock_transport: MagicMock, no_sleep: MagicMock) -> ConnectionManager:
    return ConnectionManager(mock_transport, EngineConfig(), sleep=no_sleep)


@pytest.fixture
def executor(connection: ConnectionManager, no_sleep: MagicMock) -> RetryingExecutor:
    return RetryingExecutor(connection, EngineConfig(), sleep=no_sleep)


def test_read_registers_zero_bases_address(executor: RetryingExecutor, mock_transport: MagicMock, endpoint: Endpoint) -> None:
    assert executor.read_registers(endpoint, 1, 3) == [0, 1, 2]
    mock_transport.read_holding_registers.assert_called_once_with(0, 3)


def test_read_registers_address_100(executor: RetryingExecutor, mock_transport: MagicMock, endpoint: Endpoint) -> None:
    executor.read_registers(endpoint, 100, 1)
    mock_transport.read_holding_registers.assert_called_once_with(99, 1)


def test_write_registers_zero_bases_address(executor: RetryingExecutor, mock_transport: MagicMock, endpoint: Endpoint) -> None:
    executor.write_registers(endpoint, 10, [1, 2, 3])
    mock_transport.write_registers.assert_called_once_with(9, [1, 2, 3])


def test_write_coil_applies_offset(executor: RetryingExecutor, mock_transport: MagicMock, endpoint: Endpoint) -> None:
    executor.write_coil(endpoint, 1, True)
    mock_transport.write_coil.assert_called_once_with(1000, True)


def test_read_coils_reads_eight_bits_per_unit(
    executor: RetryingExecutor, mock_transport: MagicMock, endpoint: Endpoint
) -> None:
    raw = [False] * 24
    raw[0] = True
    raw[16] = True
    mock_transport.read_coils.side_effect = None
    mock_transport.read_coils.return_value = raw

    result = executor.read_coils(endpoint, 1, 3)

    mock_transport.read_coils.assert_called_once_with(1000, 24)
    assert result == [True, False, True]


def test_connects_before_first_operation(executor: RetryingExecutor, mock_transport: MagicMock, endpoint: Endpoint) -> None:
    executor.read_registers(endpoint, 1, 1)
    names = [c[0] for c in mock_transport.mock_calls]
    assert names[:3] == ["connect", "configure", "read_holding_registers"]


def test_transient_failure_is_retried(
    executor: RetryingExecutor, connection: ConnectionManager, mock_transport: MagicMock, endpoint: Endpoint
) -> None:
    mock_transport.read_holding_registers.side_effect = [
        ModbusIOError("timeout"),
        ModbusIOError("timeout"),
        ModbusIOError("timeout"),
        [7, 8],
    ]

    assert executor.read_registers(endpoint, 1, 2) == [7, 8]
    assert mock_transport.read_holding_registers.call_count == 4
    # Every retry repeats the exact same call
    assert all(c.args == (0, 2) for c in mock_transport.read_holding_registers.call_args_list)
    assert connection.state.reattempts == 0
    mock_transport.connect.assert_called_once()


def test_operation_gives_up_after_max_attempts(
    executor: RetryingExecutor, connection: ConnectionManager, mock_transport: MagicMock, endpoint: Endpoint
) -> None:
    mock_transport.write_coil.side_effect = ModbusIOError("exception response")

    with pytest.raises(OperationError) as exc_info:
        executor.write_coil(endpoint, 3, False)

    # One initial attempt plus ten retries
    assert mock_transport.write_coil.call_count == 11
    assert exc_info.value.attempts == 11
    assert exc_info.value.address == 1002
    assert isinstance(exc_info.value.cause, ModbusIOError)
    assert connection.state.reattempts == 0


def test_operation_retry_is_immediate_by_default(
    executor: RetryingExecutor, mock_transport: MagicMock, no_sleep: MagicMock, endpoint: Endpoint
) -> None:
    mock_transport.write_registers.side_effect = [ModbusIOError("busy"), None]
    executor.write_registers(endpoint, 1, [5])
    no_sleep.assert_not_called()


def test_operation_retry_delay_is_configurable(
    connection: ConnectionManager, mock_transport: MagicMock, no_sleep: MagicMock, endpoint: Endpoint
) -> None:
    executor = RetryingExecutor(connection, EngineConfig(operation_retry_delay=0.25), sleep=no_sleep)
    mock_transport.write_registers.side_effect = [ModbusIOError("busy"), None]

    executor.write_registers(endpoint, 1, [5])

    no_sleep.assert_called_once_with(0.25)


def test_connection_failure_is_not_retried_by_operation(
    executor: RetryingExecutor, connection: ConnectionManager, mock_transport: MagicMock, endpoint: Endpoint
) -> None:
    mock_transport.connect.side_effect = ModbusIOError("unreachable")

    with pytest.raises(DeviceConnectionError):
        executor.read_registers(endpoint, 1, 1)

    assert mock_transport.connect.call_count == 6
    mock_transport.read_holding_registers.assert_not_called()
    assert connection.state.reattempts == 0
