"""Tests for the reconnect state machine (mocked transport, no real sleeping)."""

from unittest.mock import MagicMock, call

import pytest

from pyjobq_modbus.config import EngineConfig
from pyjobq_modbus.connection import ConnectionManager
from pyjobq_modbus.errors import DeviceConnectionError, ModbusIOError
from pyjobq_modbus.types import Endpoint, LinkStatus


@pytest.fixture
def manager(mock_transport: MagicMock, no_sleep: MagicMock) -> ConnectionManager:
    return ConnectionManager(mock_transport, EngineConfig(), sleep=no_sleep)


def test_connect_applies_post_connect_configuration(
    manager: ConnectionManager, mock_transport: MagicMock, endpoint: Endpoint
) -> None:
    manager.ensure_connected(endpoint)

    mock_transport.connect.assert_called_once_with(endpoint)
    mock_transport.configure.assert_called_once_with(1, 5.0)
    assert manager.status == LinkStatus.CONNECTED
    assert manager.state.connected is True
    assert manager.state.endpoint == endpoint
    assert manager.state.reattempts == 0


def test_first_connect_does_not_close(manager: ConnectionManager, mock_transport: MagicMock, endpoint: Endpoint) -> None:
    manager.ensure_connected(endpoint)
    mock_transport.close.assert_not_called()


def test_already_connected_is_a_no_op(manager: ConnectionManager, mock_transport: MagicMock, endpoint: Endpoint) -> None:
    manager.ensure_connected(endpoint)
    mock_transport.reset_mock()

    manager.ensure_connected(Endpoint("192.168.1.10", 502))

    assert mock_transport.mock_calls == []


def test_connect_retries_with_fixed_delay(
    manager: ConnectionManager, mock_transport: MagicMock, no_sleep: MagicMock, endpoint: Endpoint
) -> None:
    mock_transport.connect.side_effect = [ModbusIOError("refused"), ModbusIOError("refused"), None]

    manager.ensure_connected(endpoint)

    assert mock_transport.connect.call_count == 3
    assert no_sleep.call_args_list == [call(0.1), call(0.1)]
    assert manager.state.connected is True
    assert manager.state.reattempts == 0


def test_connect_gives_up_after_max_attempts(
    manager: ConnectionManager, mock_transport: MagicMock, no_sleep: MagicMock, endpoint: Endpoint
) -> None:
    mock_transport.connect.side_effect = ModbusIOError("refused")

    with pytest.raises(DeviceConnectionError) as exc_info:
        manager.ensure_connected(endpoint)

    # One initial attempt plus five retries
    assert mock_transport.connect.call_count == 6
    assert no_sleep.call_count == 5
    assert exc_info.value.attempts == 6
    assert isinstance(exc_info.value.cause, ModbusIOError)
    assert "refused" in str(exc_info.value)
    assert manager.state.connected is False
    assert manager.state.reattempts == 0
    assert manager.status == LinkStatus.DISCONNECTED
    mock_transport.configure.assert_not_called()


def test_successful_connect_resets_elevated_counter(
    manager: ConnectionManager, mock_transport: MagicMock, endpoint: Endpoint
) -> None:
    manager.state.reattempts = 3
    manager.ensure_connected(endpoint)
    assert manager.state.reattempts == 0


def test_switching_endpoint_closes_before_reconnecting(
    manager: ConnectionManager, mock_transport: MagicMock, endpoint: Endpoint
) -> None:
    other = Endpoint("192.168.1.11", 502)
    manager.ensure_connected(endpoint)
    manager.ensure_connected(other)

    names = [c[0] for c in mock_transport.mock_calls]
    assert names == ["connect", "configure", "close", "connect", "configure"]
    assert mock_transport.connect.call_args_list == [call(endpoint), call(other)]
    assert manager.state.endpoint == other


def test_same_host_different_port_is_a_different_endpoint(
    manager: ConnectionManager, mock_transport: MagicMock, endpoint: Endpoint
) -> None:
    manager.ensure_connected(endpoint)
    manager.ensure_connected(Endpoint(endpoint.host, 5020))

    mock_transport.close.assert_called_once()
    assert mock_transport.connect.call_count == 2


def test_disconnect_resets_state(manager: ConnectionManager, mock_transport: MagicMock, endpoint: Endpoint) -> None:
    manager.ensure_connected(endpoint)
    manager.state.reattempts = 2

    manager.disconnect()

    mock_transport.close.assert_called_once()
    assert manager.state.endpoint is None
    assert manager.state.connected is False
    assert manager.state.reattempts == 0
    assert manager.status == LinkStatus.DISCONNECTED


def test_failed_close_still_resets_state(
    manager: ConnectionManager, mock_transport: MagicMock, endpoint: Endpoint
) -> None:
    mock_transport.close.side_effect = ModbusIOError("close failed")
    manager.ensure_connected(endpoint)

    manager.disconnect()

    mock_transport.close.assert_called_once()
    assert manager.state.connected is False
    assert manager.state.endpoint is None
    assert manager.status == LinkStatus.DISCONNECTED

    # The next request opens a fresh session instead of trusting the dead one
    manager.ensure_connected(endpoint)
    assert mock_transport.connect.call_count == 2


def test_failed_close_on_endpoint_switch_still_reconnects(
    manager: ConnectionManager, mock_transport: MagicMock, endpoint: Endpoint
) -> None:
    other = Endpoint("192.168.1.11", 502)
    mock_transport.close.side_effect = ModbusIOError("close failed")
    manager.ensure_connected(endpoint)

    manager.ensure_connected(other)

    assert mock_transport.connect.call_args_list == [call(endpoint), call(other)]
    assert manager.state.connected is True
    assert manager.state.endpoint == other
