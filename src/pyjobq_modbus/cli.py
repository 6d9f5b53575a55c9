#!/usr/bin/env python3
"""Command line front end for pyjobq-modbus using Typer."""

import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Optional

import typer
from typing_extensions import Annotated

from . import __version__  # type: ignore
from .client import ModbusJobClient
from .config import EngineConfig
from .errors import PyJobQModbusError
from .types import Endpoint

app = typer.Typer(
    name="pyjobq",
    help="Serialized, retrying Modbus TCP register and coil access.",
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Shared options and helpers
# ============================================================================

HostOption = Annotated[
    Optional[str],
    typer.Option("--host", "-h", help="Device hostname or IP address", envvar="PYJOBQ_HOST"),
]
PortOption = Annotated[
    int,
    typer.Option("--port", "-p", help="Modbus TCP port", envvar="PYJOBQ_PORT"),
]
UnitIdOption = Annotated[
    int,
    typer.Option("--unit-id", "-u", help="Modbus unit ID", envvar="PYJOBQ_UNIT_ID"),
]
TimeoutOption = Annotated[
    float,
    typer.Option("--timeout", "-t", help="Response timeout in seconds", envvar="PYJOBQ_TIMEOUT"),
]
DebounceOption = Annotated[
    float,
    typer.Option("--debounce", help="Idle seconds before the connection is closed", envvar="PYJOBQ_DEBOUNCE"),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable debug logging"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Output as JSON"),
]
SignedOption = Annotated[
    bool,
    typer.Option("--signed", help="Interpret register values as signed 16-bit integers"),
]


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbose flag."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if not verbose else "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def create_client(
    host: Optional[str],
    port: int,
    unit_id: int,
    timeout: float,
    debounce: float,
) -> tuple[ModbusJobClient, Endpoint]:
    """Create a ModbusJobClient and the endpoint to talk to."""
    if not host:
        typer.echo("Error: --host is required for this command", err=True)
        raise typer.Exit(2)
    try:
        config = EngineConfig(unit_id=unit_id, response_timeout=timeout, disconnect_debounce=debounce)
        endpoint = Endpoint(host=host, port=port)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)
    return ModbusJobClient(config), endpoint


def parse_bool(value: str) -> bool:
    """Parse boolean value from string."""
    v = value.lower().strip()
    if v in ("true", "1", "on", "yes"):
        return True
    if v in ("false", "0", "off", "no"):
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")


def parse_int(value: str, signed: bool = False) -> int:
    """Parse a 16-bit register value, decimal or 0x hex."""
    v = value.strip()
    if v.lower().startswith("0x"):
        num = int(v, 16)
    else:
        num = int(v)

    if signed:
        if not (-32768 <= num <= 32767):
            raise ValueError(f"Signed 16-bit integer out of range: {num}")
    else:
        if not (0 <= num <= 65535):
            raise ValueError(f"Unsigned 16-bit integer out of range: {num}")

    return num


def to_signed(value: int) -> int:
    """Convert unsigned 16-bit to signed."""
    if value > 32767:
        return value - 65536
    return value


def from_signed(value: int) -> int:
    """Convert signed 16-bit to unsigned."""
    if value < 0:
        return value + 65536
    return value


def format_value(value: bool | int, signed: bool = False) -> str:
    """Format value for display."""
    if isinstance(value, bool):
        return str(value).lower()
    if signed:
        return str(to_signed(value))
    return str(value)


def _fail(e: BaseException, verbose: bool) -> None:
    """Map an exception to an error message and exit code."""
    if isinstance(e, ValueError):
        typer.echo(f"Error: Invalid value: {e}", err=True)
        raise typer.Exit(2)
    if isinstance(e, PyJobQModbusError):
        typer.echo(f"Error: Connection/Modbus error: {e}", err=True)
        raise typer.Exit(3)
    typer.echo(f"Error: Unexpected error: {e}", err=True)
    if verbose:
        import traceback
        traceback.print_exc()
    raise typer.Exit(4)


# ============================================================================
# Commands
# ============================================================================

@app.command()
def ping(
    host: HostOption = None,
    port: PortOption = 502,
    unit_id: UnitIdOption = 1,
    timeout: TimeoutOption = 5.0,
    debounce: DebounceOption = 0.1,
    verbose: VerboseOption = False,
    start: Annotated[int, typer.Option("--start", help="Register to read (1-based)")] = 1,
) -> None:
    """
    Test connectivity by reading one holding register (register 1 by default).
    """
    setup_logging(verbose)
    client, endpoint = create_client(host, port, unit_id, timeout, debounce)

    try:
        with client:
            values = client.read_registers(endpoint, start, 1).result()
        typer.echo(f"OK: Connected to {endpoint}, register {start} = {values[0]}")
    except Exception as e:
        _fail(e, verbose)


@app.command()
def info(
    host: HostOption = None,
    port: PortOption = 502,
    unit_id: UnitIdOption = 1,
    timeout: TimeoutOption = 5.0,
    debounce: DebounceOption = 0.1,
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """
    Show package version and engine settings, and optionally test connectivity.

    Without --host: shows local metadata only.
    With --host: also reads register 1.
    """
    setup_logging(verbose)

    defaults = EngineConfig()
    info_data: dict[str, Any] = {
        "version": __version__,
        "max_connect_attempts": defaults.max_connect_attempts,
        "max_operation_attempts": defaults.max_operation_attempts,
        "register_chunk_size": defaults.register_chunk_size,
        "coil_address_offset": defaults.coil_address_offset,
    }

    if host:
        client, endpoint = create_client(host, port, unit_id, timeout, debounce)
        try:
            with client:
                client.read_registers(endpoint, 1, 1).result()
            info_data["connectivity"] = {"status": "connected", "host": host, "port": port, "unit_id": unit_id}
        except PyJobQModbusError:
            info_data["connectivity"] = {"status": "failed", "host": host, "port": port, "unit_id": unit_id}
        except Exception as e:
            info_data["connectivity"] = {"status": "error", "error": str(e)}

    if json_output:
        typer.echo(json.dumps(info_data, indent=2))
    else:
        typer.echo(f"pyjobq-modbus version: {info_data['version']}")
        typer.echo(
            f"Retries: {info_data['max_connect_attempts']} connect, "
            f"{info_data['max_operation_attempts']} operation"
        )
        typer.echo(f"Register chunk size: {info_data['register_chunk_size']}")
        typer.echo(f"Coil address offset: {info_data['coil_address_offset']}")
        if "connectivity" in info_data:
            status = info_data["connectivity"]["status"]
            if status == "connected":
                typer.echo(f"Connectivity: OK ({host}:{port})")
            elif status == "failed":
                typer.echo(f"Connectivity: FAILED ({host}:{port})")
            else:
                typer.echo(f"Connectivity: ERROR - {info_data['connectivity'].get('error', 'unknown')}")


@app.command(name="read-registers")
def read_registers(
    start: Annotated[int, typer.Argument(help="First register (1-based)")],
    count: Annotated[int, typer.Argument(help="Number of registers")],
    host: HostOption = None,
    port: PortOption = 502,
    unit_id: UnitIdOption = 1,
    timeout: TimeoutOption = 5.0,
    debounce: DebounceOption = 0.1,
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
    signed: SignedOption = False,
) -> None:
    """
    Read holding registers. Large reads are split into 50-register requests.
    """
    setup_logging(verbose)
    client, endpoint = create_client(host, port, unit_id, timeout, debounce)

    try:
        with client:
            values = client.read_registers(endpoint, start, count).result()
        if signed:
            values = [to_signed(v) for v in values]
        if json_output:
            typer.echo(json.dumps({"start": start, "values": values}))
        else:
            for offset, v in enumerate(values):
                typer.echo(f"{start + offset}={v}")
    except Exception as e:
        _fail(e, verbose)


@app.command(name="read-coils")
def read_coils(
    start: Annotated[int, typer.Argument(help="First coil")],
    count: Annotated[int, typer.Argument(help="Number of coils")],
    host: HostOption = None,
    port: PortOption = 502,
    unit_id: UnitIdOption = 1,
    timeout: TimeoutOption = 5.0,
    debounce: DebounceOption = 0.1,
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """Read coils."""
    setup_logging(verbose)
    client, endpoint = create_client(host, port, unit_id, timeout, debounce)

    try:
        with client:
            values = client.read_coils(endpoint, start, count).result()
        if json_output:
            typer.echo(json.dumps({"start": start, "values": values}))
        else:
            for offset, v in enumerate(values):
                typer.echo(f"{start + offset}={format_value(v)}")
    except Exception as e:
        _fail(e, verbose)


@app.command(name="write-registers")
def write_registers(
    start: Annotated[int, typer.Argument(help="First register (1-based)")],
    values: Annotated[list[str], typer.Argument(help="Values to write (decimal or 0x hex)")],
    host: HostOption = None,
    port: PortOption = 502,
    unit_id: UnitIdOption = 1,
    timeout: TimeoutOption = 5.0,
    debounce: DebounceOption = 0.1,
    verbose: VerboseOption = False,
    signed: SignedOption = False,
) -> None:
    """
    Write holding registers starting at START.

    Use --signed to allow negative values (-32768 to 32767).
    """
    setup_logging(verbose)
    client, endpoint = create_client(host, port, unit_id, timeout, debounce)

    try:
        parsed = [parse_int(v, signed) for v in values]
    except ValueError as e:
        typer.echo(f"Error: Invalid value: {e}", err=True)
        raise typer.Exit(2)
    if signed:
        parsed = [from_signed(v) for v in parsed]

    try:
        with client:
            client.write_registers(endpoint, start, parsed).result()
        typer.echo(f"OK: Wrote {len(parsed)} registers at {start}")
    except Exception as e:
        _fail(e, verbose)


@app.command(name="write-coils")
def write_coils(
    start: Annotated[int, typer.Argument(help="First coil")],
    values: Annotated[list[str], typer.Argument(help="Values (true/false/1/0/on/off/yes/no)")],
    host: HostOption = None,
    port: PortOption = 502,
    unit_id: UnitIdOption = 1,
    timeout: TimeoutOption = 5.0,
    debounce: DebounceOption = 0.1,
    verbose: VerboseOption = False,
) -> None:
    """
    Write coils starting at START, one coil per request.

    Stops at the first failing coil; earlier coils stay written.
    """
    setup_logging(verbose)
    client, endpoint = create_client(host, port, unit_id, timeout, debounce)

    try:
        parsed = [parse_bool(v) for v in values]
    except ValueError as e:
        typer.echo(f"Error: Invalid value: {e}", err=True)
        raise typer.Exit(2)

    try:
        with client:
            client.write_coils(endpoint, start, parsed).result()
        typer.echo(f"OK: Wrote {len(parsed)} coils at {start}")
    except Exception as e:
        _fail(e, verbose)


@app.command()
def poll(
    start: Annotated[int, typer.Argument(help="First register (1-based)")],
    count: Annotated[int, typer.Argument(help="Number of registers")],
    host: HostOption = None,
    port: PortOption = 502,
    unit_id: UnitIdOption = 1,
    timeout: TimeoutOption = 5.0,
    debounce: DebounceOption = 0.1,
    verbose: VerboseOption = False,
    signed: SignedOption = False,
    interval: Annotated[float, typer.Option("--interval", "-i", help="Polling interval in seconds")] = 1.0,
    once: Annotated[bool, typer.Option("--once", help="Poll once and exit")] = False,
    format: Annotated[str, typer.Option("--format", "-f", help="Output format: text, json, csv")] = "text",
) -> None:
    """
    Continuously read a block of holding registers at the given interval.

    Outputs format:
    - text: timestamp + register=value pairs (default)
    - json: NDJSON with {"timestamp": "...", "values": {...}} per line
    - csv: registers as columns, one row per poll cycle

    Intervals shorter than --debounce keep the connection open between polls.
    Press Ctrl+C to stop gracefully.
    """
    setup_logging(verbose)

    if format not in ("text", "json", "csv"):
        typer.echo(f"Error: Invalid format '{format}'. Must be text, json, or csv.", err=True)
        raise typer.Exit(2)

    if interval <= 0:
        typer.echo(f"Error: Interval must be positive, got {interval}", err=True)
        raise typer.Exit(2)

    client, endpoint = create_client(host, port, unit_id, timeout, debounce)
    names = [str(start + offset) for offset in range(count)]

    if format == "csv":
        typer.echo("timestamp," + ",".join(names))

    try:
        with client:
            while True:
                values = client.read_registers(endpoint, start, count).result()
                if signed:
                    values = [to_signed(v) for v in values]

                timestamp = datetime.now(timezone.utc).isoformat()
                by_name = dict(zip(names, values))

                if format == "text":
                    pairs = " ".join(f"{name}={value}" for name, value in by_name.items())
                    typer.echo(f"{timestamp} {pairs}")
                elif format == "json":
                    typer.echo(json.dumps({"timestamp": timestamp, "values": by_name}))
                else:
                    typer.echo(timestamp + "," + ",".join(str(v) for v in values))

                if once:
                    break
                time.sleep(interval)
    except KeyboardInterrupt:
        typer.echo("\nStopped by user", err=True)
        raise typer.Exit(0)
    except Exception as e:
        _fail(e, verbose)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"pyjobq-modbus {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show version and exit"),
    ] = None,
) -> None:
    """pyjobq - serialized, retrying Modbus TCP access."""
    pass


if __name__ == "__main__":
    app()
