"""Translate 1-based logical addresses into device wire addresses; unpack coil units."""

from typing import Sequence

COIL_BITS_OFFSET = 999
COIL_BITS_PER_UNIT = 8


def register_wire_address(start: int) -> int:
    """
    Logical register addresses are 1-based, the wire is 0-based.

    Raises ValueError for addresses below 1.
    """
    if start < 1:
        raise ValueError(f"Register address must be >= 1, got {start}")
    return start - 1


def coil_wire_address(start: int, offset: int = COIL_BITS_OFFSET) -> int:
    """Coils live in a reserved segment starting `offset` above the logical address."""
    wire = start + offset
    if wire < 0:
        raise ValueError(f"Coil address {start} maps below wire address 0")
    return wire


def coil_bit_count(count: int, bits_per_unit: int = COIL_BITS_PER_UNIT) -> int:
    """Number of wire bits to read for `count` logical coil units."""
    return count * bits_per_unit


def sample_coil_units(bits: Sequence[bool], count: int, bits_per_unit: int = COIL_BITS_PER_UNIT) -> list[bool]:
    """
    Recover one boolean per logical unit from a raw bit read by taking
    every `bits_per_unit`-th bit (indices 0, 8, 16, ...).
    """
    sampled = [bool(b) for b in list(bits)[::bits_per_unit]]
    return sampled[:count]
