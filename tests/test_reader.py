"""Tests for single-range reads and illegal-address bisection (mocked pymodbus client)."""

from unittest.mock import MagicMock

import pytest
from pymodbus.exceptions import ConnectionException, ModbusException, ModbusIOException

from modbus_inspect.reader import RangeOutcome, RangeStatus, read_range, resolve_segment
from modbus_inspect.types import (
    NOT_AVAILABLE,
    OFFLINE,
    TIMEOUT,
    Failure,
    RegisterKind,
    Segment,
    Value,
)

from .conftest import FakeDevice, exception_response, ok_bits, ok_registers

# ============================================================================
# read_range classification
# ============================================================================


@pytest.mark.parametrize(
    ("kind", "method"),
    [
        (RegisterKind.HOLDING, "read_holding_registers"),
        (RegisterKind.INPUT, "read_input_registers"),
        (RegisterKind.COILS, "read_coils"),
        (RegisterKind.DISCRETE, "read_discrete_inputs"),
    ],
)
def test_read_range_dispatches_by_kind(kind: RegisterKind, method: str, mock_modbus_client: MagicMock) -> None:
    read_range(mock_modbus_client, kind, 7, 1, unit_id=3)
    call = getattr(mock_modbus_client, method)
    call.assert_called_once_with(7, count=1, device_id=3)


def test_read_range_registers_ok(mock_modbus_client: MagicMock) -> None:
    mock_modbus_client.read_holding_registers.return_value = ok_registers([1, 2, 3])
    result = read_range(mock_modbus_client, RegisterKind.HOLDING, 0, 3, unit_id=1)
    assert result == RangeOutcome.ok([1, 2, 3])


def test_read_range_widens_and_trims_bits(mock_modbus_client: MagicMock) -> None:
    # bit responses come back padded to a whole byte
    mock_modbus_client.read_coils.return_value = ok_bits([True, False, True, False, False, False, False, False])
    result = read_range(mock_modbus_client, RegisterKind.COILS, 0, 3, unit_id=1)
    assert result.status == RangeStatus.OK
    assert result.values == (1, 0, 1)


def test_read_range_short_response_is_offline(mock_modbus_client: MagicMock) -> None:
    mock_modbus_client.read_input_registers.return_value = ok_registers([1])
    result = read_range(mock_modbus_client, RegisterKind.INPUT, 0, 2, unit_id=1)
    assert result.status == RangeStatus.OFFLINE


def test_read_range_exception_response(mock_modbus_client: MagicMock) -> None:
    mock_modbus_client.read_holding_registers.return_value = exception_response(2)
    assert read_range(mock_modbus_client, RegisterKind.HOLDING, 0, 1, unit_id=1) == RangeOutcome.exception(2)


@pytest.mark.parametrize(
    ("error", "status"),
    [
        (ModbusIOException("no response"), RangeStatus.TIMEOUT),
        (TimeoutError("timed out"), RangeStatus.TIMEOUT),
        (ConnectionException("connection reset"), RangeStatus.OFFLINE),
        (ModbusException("bad frame"), RangeStatus.OFFLINE),
        (BrokenPipeError(), RangeStatus.OFFLINE),
    ],
)
def test_read_range_raised_errors(error: Exception, status: RangeStatus, mock_modbus_client: MagicMock) -> None:
    mock_modbus_client.read_holding_registers.side_effect = error
    assert read_range(mock_modbus_client, RegisterKind.HOLDING, 0, 4, unit_id=1).status == status


# ============================================================================
# resolve_segment
# ============================================================================


def test_resolve_all_valid_single_read(mock_modbus_client: MagicMock) -> None:
    device = FakeDevice()
    mock_modbus_client.read_holding_registers.side_effect = device
    outcomes, offline = resolve_segment(mock_modbus_client, RegisterKind.HOLDING, Segment(100, 3), unit_id=1)
    assert outcomes == [Value(1000), Value(1010), Value(1020)]
    assert offline is False
    assert device.calls == [(100, 3)]


def test_resolve_isolates_single_invalid_address(mock_modbus_client: MagicMock) -> None:
    device = FakeDevice(invalid={102})
    mock_modbus_client.read_holding_registers.side_effect = device
    outcomes, offline = resolve_segment(mock_modbus_client, RegisterKind.HOLDING, Segment(100, 4), unit_id=1)
    assert outcomes == [Value(1000), Value(1010), NOT_AVAILABLE, Value(1030)]
    assert offline is False
    assert device.calls == [(100, 4), (100, 2), (102, 2), (102, 1), (103, 1)]


def test_resolve_single_invalid_address_without_split(mock_modbus_client: MagicMock) -> None:
    device = FakeDevice(invalid={200})
    mock_modbus_client.read_holding_registers.side_effect = device
    outcomes, _ = resolve_segment(mock_modbus_client, RegisterKind.HOLDING, Segment(200, 1), unit_id=1)
    assert outcomes == [NOT_AVAILABLE]
    assert device.calls == [(200, 1)]


def test_resolve_alternating_worst_case(mock_modbus_client: MagicMock) -> None:
    invalid = {1, 3, 5, 7}
    device = FakeDevice(invalid=invalid)
    mock_modbus_client.read_holding_registers.side_effect = device
    outcomes, _ = resolve_segment(mock_modbus_client, RegisterKind.HOLDING, Segment(0, 8), unit_id=1)
    assert outcomes == [NOT_AVAILABLE if a in invalid else Value(a * 10) for a in range(8)]
    assert len(device.calls) <= 2 * 8 - 1


@pytest.mark.parametrize("size", [2, 3, 16, 100, 125])
def test_resolve_marks_exactly_the_invalid_subset(size: int, mock_modbus_client: MagicMock) -> None:
    invalid = {a for a in range(size) if a % 7 == 3}
    device = FakeDevice(invalid=invalid)
    mock_modbus_client.read_holding_registers.side_effect = device
    outcomes, offline = resolve_segment(mock_modbus_client, RegisterKind.HOLDING, Segment(0, size), unit_id=1)
    assert offline is False
    for addr, outcome in enumerate(outcomes):
        assert outcome == (NOT_AVAILABLE if addr in invalid else Value(addr * 10))
    assert len(device.calls) <= 2 * size - 1


def test_resolve_invalid_run_uses_logarithmic_reads(mock_modbus_client: MagicMock) -> None:
    device = FakeDevice(invalid={77})
    mock_modbus_client.read_holding_registers.side_effect = device
    resolve_segment(mock_modbus_client, RegisterKind.HOLDING, Segment(0, 125), unit_id=1)
    # one read per level plus the healthy sibling at each level
    assert len(device.calls) <= 1 + 2 * 7


def test_resolve_other_exception_applies_to_whole_range(mock_modbus_client: MagicMock) -> None:
    mock_modbus_client.read_input_registers.return_value = exception_response(4)
    outcomes, offline = resolve_segment(mock_modbus_client, RegisterKind.INPUT, Segment(10, 5), unit_id=1)
    assert outcomes == [Failure.exception(4)] * 5
    assert offline is False
    mock_modbus_client.read_input_registers.assert_called_once()


def test_resolve_timeout_fills_range_without_retry(mock_modbus_client: MagicMock) -> None:
    mock_modbus_client.read_holding_registers.side_effect = ModbusIOException("no response")
    outcomes, offline = resolve_segment(mock_modbus_client, RegisterKind.HOLDING, Segment(0, 3), unit_id=1)
    assert outcomes == [TIMEOUT] * 3
    assert offline is False
    mock_modbus_client.read_holding_registers.assert_called_once()


def test_resolve_offline_stops_further_reads(mock_modbus_client: MagicMock) -> None:
    mock_modbus_client.read_holding_registers.side_effect = [
        exception_response(2),
        ConnectionException("connection reset"),
    ]
    outcomes, offline = resolve_segment(mock_modbus_client, RegisterKind.HOLDING, Segment(0, 4), unit_id=1)
    assert outcomes == [OFFLINE] * 4
    assert offline is True
    assert mock_modbus_client.read_holding_registers.call_count == 2


def test_resolve_offline_keeps_already_read_values(mock_modbus_client: MagicMock) -> None:
    mock_modbus_client.read_holding_registers.side_effect = [
        exception_response(2),
        ok_registers([5, 6]),
        ConnectionException("connection reset"),
    ]
    outcomes, offline = resolve_segment(mock_modbus_client, RegisterKind.HOLDING, Segment(0, 4), unit_id=1)
    assert outcomes == [Value(5), Value(6), OFFLINE, OFFLINE]
    assert offline is True


def test_resolve_derives_booleans_for_bit_kinds(mock_modbus_client: MagicMock) -> None:
    mock_modbus_client.read_discrete_inputs.return_value = ok_bits([True, False, True])
    outcomes, _ = resolve_segment(mock_modbus_client, RegisterKind.DISCRETE, Segment(0, 3), unit_id=1)
    assert outcomes == [Value(1, True), Value(0, False), Value(1, True)]


def test_resolve_register_kinds_have_no_boolean(mock_modbus_client: MagicMock) -> None:
    mock_modbus_client.read_input_registers.return_value = ok_registers([0, 7])
    outcomes, _ = resolve_segment(mock_modbus_client, RegisterKind.INPUT, Segment(0, 2), unit_id=1)
    assert all(isinstance(o, Value) and o.boolean is None for o in outcomes)


def test_repeated_reads_are_not_cached(mock_modbus_client: MagicMock) -> None:
    mock_modbus_client.read_holding_registers.return_value = ok_registers([9, 9])
    first, _ = resolve_segment(mock_modbus_client, RegisterKind.HOLDING, Segment(0, 2), unit_id=1)
    second, _ = resolve_segment(mock_modbus_client, RegisterKind.HOLDING, Segment(0, 2), unit_id=1)
    assert first == second == [Value(9), Value(9)]
    assert mock_modbus_client.read_holding_registers.call_count == 2
