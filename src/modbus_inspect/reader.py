"""Single-range reads against a pymodbus client and illegal-address bisection of failed ranges."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pymodbus.client import ModbusTcpClient
from pymodbus.exceptions import ConnectionException, ModbusException, ModbusIOException

from .types import (
    ILLEGAL_DATA_ADDRESS,
    NOT_AVAILABLE,
    OFFLINE,
    TIMEOUT,
    Failure,
    Outcome,
    RegisterKind,
    Segment,
    value_for,
)

logger = logging.getLogger(__name__)


class RangeStatus(str, Enum):
    OK = "ok"
    TIMEOUT = "timeout"
    OFFLINE = "offline"
    EXCEPTION = "exception"


@dataclass(frozen=True)
class RangeOutcome:
    """Classified result of one wire read: values, timeout, dead transport or device exception."""

    status: RangeStatus
    values: tuple[int, ...] = ()
    code: int | None = None

    @classmethod
    def ok(cls, values: list[int]) -> "RangeOutcome":
        return cls(RangeStatus.OK, values=tuple(values))

    @classmethod
    def timeout(cls) -> "RangeOutcome":
        return cls(RangeStatus.TIMEOUT)

    @classmethod
    def offline(cls) -> "RangeOutcome":
        return cls(RangeStatus.OFFLINE)

    @classmethod
    def exception(cls, code: int) -> "RangeOutcome":
        return cls(RangeStatus.EXCEPTION, code=code)


def _classify_response(rr: Any, kind: RegisterKind, start: int, count: int) -> RangeOutcome:
    if rr.isError():
        code = getattr(rr, "exception_code", None)
        if isinstance(code, int):
            return RangeOutcome.exception(code)
        logger.warning("%s %d+%d: error response without exception code: %s", kind.label, start, count, rr)
        return RangeOutcome.offline()

    if kind.is_bit:
        # pymodbus pads bit responses to a multiple of 8
        raw = getattr(rr, "bits", None) or []
        values = [1 if b else 0 for b in raw[:count]]
    else:
        raw = getattr(rr, "registers", None) or []
        values = [int(v) for v in raw[:count]]

    if len(values) < count:
        logger.warning("%s %d+%d: short response (%d values)", kind.label, start, count, len(values))
        return RangeOutcome.offline()
    return RangeOutcome.ok(values)


def read_range(
    client: ModbusTcpClient,
    kind: RegisterKind,
    start: int,
    count: int,
    unit_id: int,
) -> RangeOutcome:
    """
    Issue exactly one read of `count` elements at `start` and classify the result.

    The read is bounded by the client's own timeout. A timeout leaves the
    connection usable; a transport error means the connection is dead.
    """
    read = getattr(client, kind.function_name)
    logger.debug("%s(%d, count=%d, device_id=%d)", kind.function_name, start, count, unit_id)
    try:
        rr = read(start, count=count, device_id=unit_id)
    except (ModbusIOException, TimeoutError) as e:
        logger.debug("%s %d+%d: timeout: %s", kind.label, start, count, e)
        return RangeOutcome.timeout()
    except (ConnectionException, ModbusException, OSError) as e:
        logger.warning("%s %d+%d: transport error: %s", kind.label, start, count, e)
        return RangeOutcome.offline()
    return _classify_response(rr, kind, start, count)


def resolve_segment(
    client: ModbusTcpClient,
    kind: RegisterKind,
    segment: Segment,
    unit_id: int,
) -> tuple[list[Outcome], bool]:
    """
    Resolve one segment into one outcome per address.

    An illegal-data-address exception on a multi-element range splits it in
    half and reads each half on its own, down to single addresses, which are
    then reported as not available. Any other device exception applies to the
    whole range. Once the transport fails, nothing else is read and every
    unresolved slot stays offline. Returns (outcomes, offline).
    """
    out: list[Outcome] = [OFFLINE] * segment.count
    # (start, count, offset into out); left halves are popped first
    stack: list[tuple[int, int, int]] = [(segment.start, segment.count, 0)]
    offline = False

    while stack:
        start, count, offset = stack.pop()
        if offline:
            out[offset:offset + count] = [OFFLINE] * count
            continue

        result = read_range(client, kind, start, count, unit_id)
        if result.status == RangeStatus.OK:
            for i, raw in enumerate(result.values):
                out[offset + i] = value_for(kind, raw)
        elif result.status == RangeStatus.TIMEOUT:
            out[offset:offset + count] = [TIMEOUT] * count
        elif result.status == RangeStatus.OFFLINE:
            offline = True
            out[offset:offset + count] = [OFFLINE] * count
        elif result.code != ILLEGAL_DATA_ADDRESS:
            out[offset:offset + count] = [Failure.exception(result.code)] * count
        elif count == 1:
            out[offset] = NOT_AVAILABLE
        else:
            left = count // 2
            logger.debug("%s %d+%d: illegal data address, splitting at %d", kind.label, start, count, start + left)
            stack.append((start + left, count - left, offset + left))
            stack.append((start, left, offset))

    return out, offline
