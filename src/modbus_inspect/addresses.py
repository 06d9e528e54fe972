"""Parse address lists such as "100", "100,101,105", "100-110" or "100-105,200,300-310"."""

from .errors import AddressParseError
from .types import MAX_ADDRESS


def _parse_number(raw: str, item: str) -> int:
    if not raw.isdigit():
        raise AddressParseError(raw, f"Invalid number {raw!r} in {item!r}")
    num = int(raw)
    if num > MAX_ADDRESS:
        raise AddressParseError(raw, f"Address out of range 0-{MAX_ADDRESS}: {num}")
    return num


def parse_addresses(text: str) -> list[int]:
    """
    Parse a comma-separated list of addresses and inclusive ranges.

    Whitespace around items is ignored. The result is sorted ascending with
    duplicates removed, ready for segmentation.

    Raises AddressParseError for empty input, empty items, malformed or
    reversed ranges, non-numeric items and addresses above 65535.
    """
    s = text.strip()
    if not s:
        raise AddressParseError(text, "Address list cannot be empty")

    out: set[int] = set()
    for raw_item in s.split(","):
        item = raw_item.strip()
        if not item:
            raise AddressParseError(text, f"Empty item in address list {text!r}")

        if "-" in item:
            first, _, last = item.partition("-")
            first, last = first.strip(), last.strip()
            if not first or not last or "-" in last:
                raise AddressParseError(text, f"Malformed range: {item!r}")
            start = _parse_number(first, item)
            end = _parse_number(last, item)
            if start > end:
                raise AddressParseError(text, f"Reversed range (start > end): {item!r}")
            out.update(range(start, end + 1))
        else:
            out.add(_parse_number(item, item))

    return sorted(out)
