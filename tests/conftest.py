"""Shared fixtures: fake pymodbus responses and a fake device with unreadable addresses."""

from typing import Callable
from unittest.mock import MagicMock

import pytest


def ok_registers(values: list[int]) -> MagicMock:
    return MagicMock(isError=lambda: False, registers=list(values))


def ok_bits(values: list[bool]) -> MagicMock:
    return MagicMock(isError=lambda: False, bits=list(values))


def exception_response(code: int) -> MagicMock:
    return MagicMock(isError=lambda: True, exception_code=code)


class FakeDevice:
    """
    Answers register reads like a device whose `invalid` addresses do not exist.

    A read touching any invalid address fails with exception 0x02. Values are
    produced by `value_of(address)`. Every call is recorded as (start, count).
    """

    def __init__(self, invalid: set[int] | None = None, value_of: Callable[[int], int] | None = None) -> None:
        self.invalid = invalid or set()
        self.value_of = value_of or (lambda a: a * 10)
        self.calls: list[tuple[int, int]] = []

    def __call__(self, start: int, count: int = 1, device_id: int = 1) -> MagicMock:
        self.calls.append((start, count))
        addrs = range(start, start + count)
        if any(a in self.invalid for a in addrs):
            return exception_response(2)
        return ok_registers([self.value_of(a) for a in addrs])


@pytest.fixture
def mock_modbus_client() -> MagicMock:
    client = MagicMock()
    client.connect.return_value = True
    client.read_coils.return_value = ok_bits([True])
    client.read_discrete_inputs.return_value = ok_bits([False])
    client.read_input_registers.return_value = ok_registers([100])
    client.read_holding_registers.return_value = ok_registers([42])
    return client
