"""modbus-inspect: read and watch Modbus TCP registers, coils and discrete inputs via pymodbus."""

__version__ = "0.1.0"

from .addresses import parse_addresses
from .client import ModbusInspector
from .errors import AddressParseError, ConnectionFailedError, ModbusInspectError
from .segments import contiguous_segments, plan_reads
from .types import AddressRequest, Failure, FailureKind, RegisterKind, Row, Segment, Value

__all__ = [
    "__version__",
    "ModbusInspector",
    "AddressParseError",
    "ConnectionFailedError",
    "ModbusInspectError",
    "parse_addresses",
    "contiguous_segments",
    "plan_reads",
    "AddressRequest",
    "Failure",
    "FailureKind",
    "RegisterKind",
    "Row",
    "Segment",
    "Value",
]
