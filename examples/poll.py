#!/usr/bin/env python3
"""Example: poll a register block on an interval using poll_iter; graceful shutdown on Ctrl+C."""

import sys

from pyjobq_modbus import ModbusJobClient
from pyjobq_modbus.errors import PyJobQModbusError


def main() -> None:
    device = ("192.168.1.10", 502)  # change to your device IP
    interval_s = 1.0

    try:
        with ModbusJobClient() as client:
            print(f"Polling registers 1..10 on {device[0]} every {interval_s}s (Ctrl+C to stop)...")
            for snapshot in client.poll_iter(device, start=1, count=10, interval_s=interval_s):
                print(snapshot)
    except KeyboardInterrupt:
        print("\nStopped.")
    except PyJobQModbusError as e:
        print(f"Modbus/connection error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
