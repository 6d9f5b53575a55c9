"""EngineConfig: retry ceilings, delays, chunk size and address offsets."""

from dataclasses import dataclass


@dataclass(frozen=True)
class EngineConfig:
    """
    Tunables for the connection and job engine. Delays and timeouts are in seconds.

    Backoff is fixed (no exponential growth, no jitter): connects wait
    `connect_retry_delay` between attempts, operations wait `operation_retry_delay`.
    """

    unit_id: int = 1
    response_timeout: float = 5.0
    max_connect_attempts: int = 5
    connect_retry_delay: float = 0.1
    max_operation_attempts: int = 10
    operation_retry_delay: float = 0.0
    disconnect_debounce: float = 0.1
    register_chunk_size: int = 50
    coil_address_offset: int = 999
    coil_bits_per_unit: int = 8

    def __post_init__(self) -> None:
        if not (0 <= self.unit_id <= 255):
            raise ValueError(f"unit_id must be in 0..255, got {self.unit_id}")
        if self.response_timeout <= 0:
            raise ValueError(f"response_timeout must be > 0, got {self.response_timeout}")
        if self.max_connect_attempts < 0:
            raise ValueError(f"max_connect_attempts must be >= 0, got {self.max_connect_attempts}")
        if self.max_operation_attempts < 0:
            raise ValueError(f"max_operation_attempts must be >= 0, got {self.max_operation_attempts}")
        for name in ("connect_retry_delay", "operation_retry_delay", "disconnect_debounce"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        if self.register_chunk_size < 1:
            raise ValueError(f"register_chunk_size must be >= 1, got {self.register_chunk_size}")
        if self.coil_bits_per_unit < 1:
            raise ValueError(f"coil_bits_per_unit must be >= 1, got {self.coil_bits_per_unit}")
