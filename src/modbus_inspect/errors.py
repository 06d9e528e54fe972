"""Exceptions for modbus-inspect: address-list parsing and connection establishment."""


class ModbusInspectError(Exception):
    """Base exception for modbus-inspect."""

    pass


class AddressParseError(ModbusInspectError):
    """Raised when an address list such as "100-105,200" cannot be parsed."""

    def __init__(self, text: str, message: str | None = None) -> None:
        self.text = text
        self._msg = message or f"Invalid address list: {text!r}"
        super().__init__(self._msg)


class ConnectionFailedError(ModbusInspectError):
    """Raised when no resolved address of the device accepted a connection."""

    def __init__(
        self,
        message: str,
        *,
        host: str | None = None,
        port: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.cause = cause
        super().__init__(message)
