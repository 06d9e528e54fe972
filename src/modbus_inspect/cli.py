#!/usr/bin/env python3
"""Command-line register inspector for Modbus TCP devices, built on Typer."""

import json
import logging
import signal
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

import typer
from typing_extensions import Annotated

from . import __version__  # type: ignore
from .addresses import parse_addresses
from .client import ModbusInspector
from .errors import AddressParseError
from .render import render_text, rows_to_json, sort_rows
from .segments import plan_reads
from .types import AddressRequest, RegisterKind

app = typer.Typer(
    name="mbinspect",
    help="Inspect holding/input registers, coils and discrete inputs of a Modbus TCP device.",
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Shared options and helpers
# ============================================================================

HostOption = Annotated[
    Optional[str],
    typer.Option("--host", "-h", help="Device hostname or IP address", envvar="MBINSPECT_HOST"),
]
PortOption = Annotated[
    int,
    typer.Option("--port", "-p", min=1, max=65535, help="Modbus TCP port", envvar="MBINSPECT_PORT"),
]
UnitIdOption = Annotated[
    int,
    typer.Option("--unit-id", "-u", min=0, max=255, help="Modbus unit ID", envvar="MBINSPECT_UNIT_ID"),
]
TimeoutOption = Annotated[
    float,
    typer.Option(
        "--timeout",
        "-t",
        help="Timeout in seconds for connecting and for each read",
        envvar="MBINSPECT_TIMEOUT",
    ),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable debug logging"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Output as JSON"),
]


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbose flag."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if not verbose else "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def build_requests(
    addrs: Optional[str] = None,
    holding: Optional[str] = None,
    input_: Optional[str] = None,
    coils: Optional[str] = None,
    discrete: Optional[str] = None,
) -> list[AddressRequest]:
    """
    Turn the address options into one AddressRequest per requested kind.

    Positional ADDRS are holding registers and cannot be combined with the
    per-kind options. Raises ValueError (or AddressParseError) on bad input.
    """
    typed = {
        RegisterKind.HOLDING: holding,
        RegisterKind.INPUT: input_,
        RegisterKind.COILS: coils,
        RegisterKind.DISCRETE: discrete,
    }
    if any(v is not None for v in typed.values()):
        if addrs is not None:
            raise ValueError("positional ADDRS cannot be combined with --holding/--input/--coils/--discrete")
    else:
        typed[RegisterKind.HOLDING] = addrs

    requests: list[AddressRequest] = []
    for kind, text in typed.items():
        if text is None:
            continue
        if not text.strip():
            raise ValueError(f"empty address list for --{kind.value}")
        requests.append(AddressRequest(kind, tuple(parse_addresses(text))))

    if not requests:
        raise ValueError("no register addresses given")
    return requests


@contextmanager
def stop_on_signals(stop: threading.Event) -> Iterator[None]:
    """Set `stop` on SIGINT/SIGTERM instead of interrupting the current read."""

    def handler(signum: int, frame: object) -> None:
        logger.debug("Received signal %d, stopping after this cycle", signum)
        stop.set()

    previous = {sig: signal.signal(sig, handler) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        yield
    finally:
        for sig, old in previous.items():
            signal.signal(sig, old)


# ============================================================================
# Commands
# ============================================================================


@app.command()
def read(
    addrs: Annotated[
        Optional[str],
        typer.Argument(metavar="[ADDRS]", help="Holding register addresses, e.g. 100-105,200"),
    ] = None,
    host: HostOption = None,
    port: PortOption = 502,
    unit_id: UnitIdOption = 1,
    timeout: TimeoutOption = 1.0,
    holding: Annotated[Optional[str], typer.Option("--holding", metavar="ADDRS", help="Holding registers (FC 03)")] = None,
    input_: Annotated[Optional[str], typer.Option("--input", metavar="ADDRS", help="Input registers (FC 04)")] = None,
    coils: Annotated[Optional[str], typer.Option("--coils", metavar="ADDRS", help="Coils (FC 01)")] = None,
    discrete: Annotated[Optional[str], typer.Option("--discrete", metavar="ADDRS", help="Discrete inputs (FC 02)")] = None,
    watch: Annotated[bool, typer.Option("--watch", "-w", help="Poll continuously, redrawing each cycle")] = False,
    interval: Annotated[float, typer.Option("--interval", "-i", help="Watch interval in seconds")] = 1.0,
    json_output: JsonOption = False,
    verbose: VerboseOption = False,
) -> None:
    """
    Read registers and show them as a table.

    Address lists accept single addresses and inclusive ranges, e.g. 100,101,200-210.
    Failed addresses show TIMEOUT, OFFLINE, N/A (illegal address) or ERR:<code>.

    Use --watch to redraw every --interval seconds; Ctrl+C stops after the current cycle.
    With --json, each cycle is printed as one JSON object per line.
    """
    setup_logging(verbose)

    if not host:
        typer.echo("Error: --host is required", err=True)
        raise typer.Exit(2)
    if timeout <= 0:
        typer.echo(f"Error: --timeout must be positive, got {timeout}", err=True)
        raise typer.Exit(2)
    if watch and interval <= 0:
        typer.echo(f"Error: --interval must be positive, got {interval}", err=True)
        raise typer.Exit(2)

    try:
        requests = build_requests(addrs, holding, input_, coils, discrete)
    except (AddressParseError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)

    def emit(rows: list) -> None:
        rows = sort_rows(rows)
        if json_output:
            typer.echo(json.dumps(rows_to_json(rows, host, port, unit_id)))
        else:
            if watch:
                typer.clear()
            typer.echo(render_text(rows, host, port, unit_id), nl=False)

    try:
        with ModbusInspector(host=host, port=port, unit_id=unit_id, timeout=timeout) as inspector:
            if not watch:
                emit(inspector.poll(requests))
                return

            stop = threading.Event()
            with stop_on_signals(stop):
                for rows in inspector.poll_iter(requests, interval, stop):
                    emit(rows)
            typer.echo("\nStopped by user", err=True)
    except KeyboardInterrupt:
        typer.echo("\nStopped by user", err=True)
        raise typer.Exit(0)
    except Exception as e:
        typer.echo(f"Error: Unexpected error: {e}", err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        raise typer.Exit(4)


@app.command()
def plan(
    addrs: Annotated[str, typer.Argument(metavar="ADDRS", help="Addresses to plan, e.g. 0-300,400")],
    kind: Annotated[RegisterKind, typer.Option("--kind", "-k", help="Register kind")] = RegisterKind.HOLDING,
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """
    Show the wire reads a poll of ADDRS would issue.

    Does not require a connection.
    """
    setup_logging(verbose)

    try:
        request = AddressRequest(kind, tuple(parse_addresses(addrs)))
    except (AddressParseError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)

    reads = [
        {
            "function": kind.function_name,
            "function_code": kind.function_code,
            "start": seg.start,
            "count": seg.count,
        }
        for seg in plan_reads(request)
    ]

    if json_output:
        typer.echo(json.dumps({"kind": kind.value, "max_request_size": kind.max_request_size, "reads": reads}, indent=2))
    else:
        typer.echo(f"{kind.label}: {len(request.addresses)} address(es) in {len(reads)} read(s), max {kind.max_request_size} per read")
        for r in reads:
            typer.echo(f"  FC{r['function_code']:02d} {r['function']}(start={r['start']}, count={r['count']})")


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"modbus-inspect {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show version and exit"),
    ] = None,
) -> None:
    """mbinspect - Modbus TCP register inspector."""
    pass


if __name__ == "__main__":
    app()
