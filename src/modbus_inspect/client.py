"""ModbusInspector: owns the device connection and turns address requests into per-address rows."""

import logging
import socket
import threading
from typing import Any, Iterator, Sequence

from pymodbus.client import ModbusTcpClient

from .errors import ConnectionFailedError
from .reader import resolve_segment
from .segments import plan_reads
from .types import OFFLINE, AddressRequest, Row

logger = logging.getLogger(__name__)


def offline_rows(requests: Sequence[AddressRequest]) -> list[Row]:
    """One OFFLINE row for every address of every request."""
    return [Row(a, req.kind, OFFLINE) for req in requests for a in req.addresses]


def resolve_candidates(host: str, port: int) -> list[str]:
    """Resolve host to the distinct TCP addresses to try, in resolver order."""
    infos = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    candidates: list[str] = []
    for _family, _type, _proto, _canon, sockaddr in infos:
        ip = str(sockaddr[0])
        if ip not in candidates:
            candidates.append(ip)
    return candidates


class ModbusInspector:
    """
    Polls sets of addresses on one Modbus TCP device over a single, lazily opened connection.

    Every read is issued and awaited one at a time. A transport failure drops
    the connection and the next poll cycle reconnects from scratch.
    """

    def __init__(
        self,
        host: str,
        port: int = 502,
        unit_id: int = 1,
        timeout: float = 1.0,
    ) -> None:
        self._host = host
        self._port = port
        self._unit_id = unit_id
        self._timeout = timeout
        self._client: ModbusTcpClient | None = None

    @property
    def host(self) -> str:
        return self._host

    @property
    def port(self) -> int:
        return self._port

    @property
    def unit_id(self) -> int:
        return self._unit_id

    @property
    def connected(self) -> bool:
        return self._client is not None

    def _connect_candidate(self, address: str) -> ModbusTcpClient | None:
        client = ModbusTcpClient(
            host=address,
            port=self._port,
            timeout=self._timeout,
            retries=0,
        )
        logger.debug("Connecting to %s:%d (timeout %.3fs)", address, self._port, self._timeout)
        if client.connect():
            return client
        client.close()
        return None

    def ensure_connected(self) -> ModbusTcpClient:
        """Return the live client, resolving and connecting first if there is none."""
        if self._client is not None:
            return self._client

        try:
            candidates = resolve_candidates(self._host, self._port)
        except OSError as e:
            raise ConnectionFailedError(
                f"Failed to resolve {self._host}:{self._port}: {e}",
                host=self._host,
                port=self._port,
                cause=e,
            ) from e

        last_error: BaseException | None = None
        for address in candidates:
            try:
                client = self._connect_candidate(address)
            except OSError as e:
                last_error = e
                continue
            if client is not None:
                logger.info("Connected to %s:%d (%s), unit %d", self._host, self._port, address, self._unit_id)
                self._client = client
                return client

        logger.warning("Failed to connect to %s:%d (%d candidate(s))", self._host, self._port, len(candidates))
        raise ConnectionFailedError(
            f"Failed to connect to {self._host}:{self._port}",
            host=self._host,
            port=self._port,
            cause=last_error,
        )

    def connect(self) -> None:
        """Establish the TCP connection to the device."""
        self.ensure_connected()

    def teardown(self) -> None:
        """Drop the live connection so the next cycle reconnects."""
        if self._client is not None:
            try:
                self._client.close()
            except Exception as e:
                logger.warning("Error closing Modbus client: %s", e)
            self._client = None

    def close(self) -> None:
        """Close the TCP connection."""
        self.teardown()

    def __enter__(self) -> "ModbusInspector":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def poll(self, requests: Sequence[AddressRequest]) -> list[Row]:
        """
        Read every requested address once and return one row per address.

        Contiguous addresses are fetched together (see plan_reads). When the
        connection cannot be established, or dies part way through, every
        address not yet read is reported OFFLINE.
        """
        try:
            client = self.ensure_connected()
        except ConnectionFailedError as e:
            logger.warning("%s", e)
            return offline_rows(requests)

        rows: list[Row] = []
        offline = False
        for req in requests:
            if not req.addresses:
                continue
            for segment in plan_reads(req):
                if offline:
                    outcomes = [OFFLINE] * segment.count
                else:
                    outcomes, offline = resolve_segment(client, req.kind, segment, self._unit_id)
                    if offline:
                        logger.warning("Connection to %s:%d lost, marking rest of cycle offline", self._host, self._port)
                        self.teardown()
                rows.extend(Row(a, req.kind, o) for a, o in zip(segment.addresses, outcomes))
        return rows

    def poll_iter(
        self,
        requests: Sequence[AddressRequest],
        interval_s: float,
        stop: threading.Event | None = None,
    ) -> Iterator[list[Row]]:
        """
        Yield poll(requests) every interval_s seconds until `stop` is set.

        The stop event is only checked between cycles, never during a read.
        """
        stop = stop if stop is not None else threading.Event()
        while not stop.is_set():
            yield self.poll(requests)
            if stop.wait(interval_s):
                break
