#!/usr/bin/env python3
"""Example: queue a few register and coil operations against one device and wait for them."""

import sys

from pyjobq_modbus import ModbusJobClient
from pyjobq_modbus.errors import ChunkFailureError, DeviceConnectionError, OperationError


def main() -> None:
    device = ("192.168.1.10", 502)  # change to your device IP

    with ModbusJobClient() as client:
        # All four run back to back on a single connection
        block = client.read_registers(device, start=1, count=120)
        coils = client.read_coils(device, start=1, count=3)
        # client.write_registers(device, start=10, values=[1, 2, 3])
        # client.write_coils(device, start=5, values=[True, False, True])

        try:
            values = block.result()
            print(f"registers 1..120: {values}")
            print(f"coils 1..3: {coils.result()}")
        except DeviceConnectionError as e:
            print(f"Could not connect: {e}", file=sys.stderr)
            sys.exit(1)
        except ChunkFailureError as e:
            print(f"Batch failed: {e}", file=sys.stderr)
            sys.exit(1)
        except OperationError as e:
            print(f"Modbus error: {e}", file=sys.stderr)
            sys.exit(1)


if __name__ == "__main__":
    main()
