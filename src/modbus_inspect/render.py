"""Render poll results as a rich table or as JSON-ready dicts."""

from datetime import datetime
from typing import Any, Iterable

from rich import box
from rich.console import Console
from rich.table import Table

from .types import Failure, FailureKind, Row, Value

COLUMNS = ["Address", "Type", "Hex", "UInt16", "Int16", "Binary", "Bool"]


def sort_rows(rows: Iterable[Row]) -> list[Row]:
    """Order rows by register kind, then address."""
    return sorted(rows, key=lambda r: (r.kind.sort_key, r.address))


def to_signed(value: int) -> int:
    """Convert unsigned 16-bit to signed."""
    if value > 32767:
        return value - 65536
    return value


def cell_text(failure: Failure) -> str:
    if failure.kind == FailureKind.TIMEOUT:
        return "TIMEOUT"
    if failure.kind == FailureKind.OFFLINE:
        return "OFFLINE"
    if failure.kind == FailureKind.NOT_AVAILABLE:
        return "N/A"
    return f"ERR:{failure.code}"


def row_cells(row: Row) -> list[str]:
    """Text for every column of one row."""
    outcome = row.outcome
    if isinstance(outcome, Value):
        raw = outcome.raw
        bool_text = "-" if outcome.boolean is None else str(outcome.boolean).lower()
        cells = [f"0x{raw:04X}", str(raw), str(to_signed(raw)), f"{raw:016b}", bool_text]
    else:
        text = cell_text(outcome)
        cells = [text] * 4 + [text if row.kind.is_bit else "-"]
    return [str(row.address), row.kind.label] + cells


def build_table(rows: Iterable[Row]) -> Table:
    table = Table(box=box.SQUARE, show_header=True, header_style="bold")
    for col in COLUMNS:
        table.add_column(col, justify="right" if col in ("Address", "UInt16", "Int16") else "left")
    for row in rows:
        table.add_row(*row_cells(row))
    return table


def footer(host: str, port: int, unit_id: int, now: datetime | None = None) -> str:
    updated = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    return f"Host: {host}:{port} | Unit: {unit_id} | Updated: {updated}"


def render_text(
    rows: Iterable[Row],
    host: str,
    port: int,
    unit_id: int,
    width: int | None = None,
    now: datetime | None = None,
) -> str:
    """Table plus host/unit footer, as plain text."""
    console = Console(width=width, color_system=None, highlight=False)
    with console.capture() as capture:
        console.print(build_table(rows))
        console.print(footer(host, port, unit_id, now))
    return capture.get()


def row_to_dict(row: Row) -> dict[str, Any]:
    out: dict[str, Any] = {"address": row.address, "type": row.kind.value}
    if isinstance(row.outcome, Value):
        out["raw"] = row.outcome.raw
        if row.outcome.boolean is not None:
            out["bool"] = row.outcome.boolean
    else:
        out["error"] = row.outcome.kind.value
        if row.outcome.code is not None:
            out["code"] = row.outcome.code
    return out


def rows_to_json(
    rows: Iterable[Row],
    host: str,
    port: int,
    unit_id: int,
    now: datetime | None = None,
) -> dict[str, Any]:
    """JSON-serializable snapshot of one poll cycle."""
    return {
        "timestamp": (now or datetime.now().astimezone()).isoformat(),
        "host": host,
        "port": port,
        "unit_id": unit_id,
        "rows": [row_to_dict(r) for r in rows],
    }
