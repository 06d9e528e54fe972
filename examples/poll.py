#!/usr/bin/env python3
"""Example: watch a register range on an interval using poll_iter; graceful shutdown on Ctrl+C."""

from modbus_inspect import AddressRequest, ModbusInspector, RegisterKind
from modbus_inspect.render import render_text, sort_rows


def main() -> None:
    host = "192.168.1.10"  # change to your device IP
    port = 502
    unit_id = 1
    requests = [AddressRequest(RegisterKind.INPUT, tuple(range(0, 20)))]
    interval_s = 1.0

    try:
        with ModbusInspector(host=host, port=port, unit_id=unit_id) as inspector:
            print(f"Polling input registers 0-19 every {interval_s}s (Ctrl+C to stop)...")
            for rows in inspector.poll_iter(requests, interval_s):
                print(render_text(sort_rows(rows), host, port, unit_id))
    except KeyboardInterrupt:
        print("\nStopped.")


if __name__ == "__main__":
    main()
