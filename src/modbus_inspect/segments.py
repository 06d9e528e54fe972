"""Split sorted address lists into the fewest contiguous reads allowed by a request size cap."""

from typing import Sequence

from .types import MAX_ADDRESS, AddressRequest, Segment


def contiguous_segments(addresses: Sequence[int], max_count: int) -> list[Segment]:
    """
    Group sorted, unique addresses into maximal contiguous segments of at most max_count.

    A new segment starts on a gap, when the running count reaches max_count,
    or after address 65535.
    """
    if max_count < 1:
        raise ValueError(f"max_count must be >= 1, got {max_count}")
    if not addresses:
        return []

    segments: list[Segment] = []
    start = prev = addresses[0]
    count = 1
    for addr in addresses[1:]:
        if prev != MAX_ADDRESS and addr == prev + 1 and count < max_count:
            count += 1
        else:
            segments.append(Segment(start, count))
            start = addr
            count = 1
        prev = addr
    segments.append(Segment(start, count))
    return segments


def plan_reads(request: AddressRequest) -> list[Segment]:
    """Segments for one request, capped by its register kind's maximum request size."""
    return contiguous_segments(request.addresses, request.kind.max_request_size)
