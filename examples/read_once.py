#!/usr/bin/env python3
"""Example: read a few holding registers and coils once and print each outcome."""

import sys

from modbus_inspect import AddressRequest, ModbusInspector, RegisterKind, Value, parse_addresses
from modbus_inspect.errors import AddressParseError
from modbus_inspect.render import cell_text


def main() -> None:
    host = "192.168.1.10"  # change to your device IP
    port = 502
    unit_id = 1

    try:
        requests = [
            AddressRequest(RegisterKind.HOLDING, tuple(parse_addresses("0-9,100"))),
            AddressRequest(RegisterKind.COILS, tuple(parse_addresses("0-15"))),
        ]
    except AddressParseError as e:
        print(f"Bad address list: {e}", file=sys.stderr)
        sys.exit(1)

    with ModbusInspector(host=host, port=port, unit_id=unit_id, timeout=1.0) as inspector:
        for row in inspector.poll(requests):
            if isinstance(row.outcome, Value):
                print(f"{row.kind.label} {row.address} = {row.outcome.raw}")
            else:
                print(f"{row.kind.label} {row.address}: {cell_text(row.outcome)}")


if __name__ == "__main__":
    main()
