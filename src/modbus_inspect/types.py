"""Core data model: register kinds, per-address outcomes, rows, requests and segments."""

from dataclasses import dataclass
from enum import Enum
from typing import Union


class RegisterKind(str, Enum):
    """The four Modbus data tables that can be inspected."""

    HOLDING = "holding"
    INPUT = "input"
    COILS = "coils"
    DISCRETE = "discrete"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def max_request_size(self) -> int:
        """Largest element count one read request may ask for."""
        return 2000 if self.is_bit else 125

    @property
    def is_bit(self) -> bool:
        return self in (RegisterKind.COILS, RegisterKind.DISCRETE)

    @property
    def function_name(self) -> str:
        """Name of the pymodbus client method that reads this table."""
        return _FUNCTIONS[self][0]

    @property
    def function_code(self) -> int:
        return _FUNCTIONS[self][1]

    @property
    def sort_key(self) -> int:
        return _ORDER.index(self)


_LABELS: dict[RegisterKind, str] = {
    RegisterKind.HOLDING: "HR",
    RegisterKind.INPUT: "IR",
    RegisterKind.COILS: "CO",
    RegisterKind.DISCRETE: "DI",
}

_FUNCTIONS: dict[RegisterKind, tuple[str, int]] = {
    RegisterKind.HOLDING: ("read_holding_registers", 3),
    RegisterKind.INPUT: ("read_input_registers", 4),
    RegisterKind.COILS: ("read_coils", 1),
    RegisterKind.DISCRETE: ("read_discrete_inputs", 2),
}

_ORDER: list[RegisterKind] = [
    RegisterKind.HOLDING,
    RegisterKind.INPUT,
    RegisterKind.COILS,
    RegisterKind.DISCRETE,
]

MAX_ADDRESS = 0xFFFF

# Modbus exception code 0x02
ILLEGAL_DATA_ADDRESS = 0x02


class FailureKind(str, Enum):
    """Why no value could be reported for an address."""

    TIMEOUT = "timeout"
    OFFLINE = "offline"
    NOT_AVAILABLE = "not_available"
    EXCEPTION = "exception"


@dataclass(frozen=True)
class Value:
    """A value read from the device. `boolean` is set only for coils and discrete inputs."""

    raw: int
    boolean: bool | None = None


@dataclass(frozen=True)
class Failure:
    """A classified failure; `code` carries the Modbus exception code for EXCEPTION."""

    kind: FailureKind
    code: int | None = None

    @classmethod
    def exception(cls, code: int) -> "Failure":
        return cls(FailureKind.EXCEPTION, code)


Outcome = Union[Value, Failure]

TIMEOUT = Failure(FailureKind.TIMEOUT)
OFFLINE = Failure(FailureKind.OFFLINE)
NOT_AVAILABLE = Failure(FailureKind.NOT_AVAILABLE)


def value_for(kind: RegisterKind, raw: int) -> Value:
    """Build a Value, deriving the boolean interpretation for bit tables."""
    return Value(raw=raw, boolean=(raw != 0) if kind.is_bit else None)


@dataclass(frozen=True)
class Row:
    """One requested address together with its outcome."""

    address: int
    kind: RegisterKind
    outcome: Outcome


@dataclass(frozen=True)
class AddressRequest:
    """A register kind and the sorted, unique addresses to poll in it."""

    kind: RegisterKind
    addresses: tuple[int, ...]

    def __post_init__(self) -> None:
        addrs = tuple(self.addresses)
        object.__setattr__(self, "addresses", addrs)
        for a in addrs:
            if not 0 <= a <= MAX_ADDRESS:
                raise ValueError(f"address out of range 0-{MAX_ADDRESS}: {a}")
        if any(b <= a for a, b in zip(addrs, addrs[1:])):
            raise ValueError("addresses must be sorted ascending and unique")


@dataclass(frozen=True)
class Segment:
    """A contiguous run of addresses fetched with a single read."""

    start: int
    count: int

    @property
    def addresses(self) -> range:
        return range(self.start, self.start + self.count)
