"""Shared fixtures: a mocked transport and an engine wired to it with no real sleeping."""

from typing import Iterator
from unittest.mock import MagicMock

import pytest

from pyjobq_modbus import EngineConfig, ModbusJobClient
from pyjobq_modbus.types import Endpoint


def _registers(address: int, count: int) -> list[int]:
    # Each register echoes its wire address so chunk concatenation is visible.
    return [address + i for i in range(count)]


def _coils(address: int, bit_count: int) -> list[bool]:
    return [i % 16 == 0 for i in range(bit_count)]


@pytest.fixture
def mock_transport() -> MagicMock:
    transport = MagicMock()
    transport.connect.return_value = None
    transport.read_holding_registers.side_effect = _registers
    transport.read_coils.side_effect = _coils
    transport.write_registers.return_value = None
    transport.write_coil.return_value = None
    return transport


@pytest.fixture
def no_sleep() -> MagicMock:
    return MagicMock()


@pytest.fixture
def endpoint() -> Endpoint:
    return Endpoint("192.168.1.10", 502)


@pytest.fixture
def fast_config() -> EngineConfig:
    return EngineConfig(disconnect_debounce=0.0)


@pytest.fixture
def job_client(mock_transport: MagicMock, no_sleep: MagicMock, fast_config: EngineConfig) -> Iterator[ModbusJobClient]:
    client = ModbusJobClient(fast_config, transport=mock_transport, sleep=no_sleep)
    yield client
    client.close(timeout=5)
