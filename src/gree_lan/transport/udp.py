"""Asyncio UDP transport with broadcast support and instrumentation.

One transport is owned by each session, so several sessions in a process
never share a receive callback.
"""

from __future__ import annotations

import asyncio
import socket
from collections.abc import Callable
from typing import override

from gree_lan.logging_abstraction import get_logger
from gree_lan.transport.exceptions import TransportBindError, TransportSendError

__all__ = [
    "MessageHandler",
    "UDPTransport",
]

logger = get_logger(__name__)

MessageHandler = Callable[[bytes, str, int], None]


class _SessionDatagramProtocol(asyncio.DatagramProtocol):
    """Forwards asyncio datagram events to the owning UDPTransport."""

    def __init__(self, owner: UDPTransport) -> None:
        self._owner = owner

    @override
    def datagram_received(self, data: bytes, addr: tuple[str | object, int]) -> None:
        host, port = addr[0], addr[1]
        self._owner.dispatch(data, str(host), int(port))

    @override
    def error_received(self, exc: Exception) -> None:
        logger.warning(
            "UDP socket error: %s",
            exc,
            extra={"error": str(exc), "error_type": type(exc).__name__},
        )

    @override
    def connection_lost(self, exc: Exception | None) -> None:
        if exc is not None:
            logger.warning("UDP socket closed with error: %s", exc, extra={"error": str(exc)})
        self._owner.mark_closed()


class UDPTransport:
    """Datagram socket: bind, broadcast/unicast send and a receive callback."""

    def __init__(self, on_message: MessageHandler | None = None, bind_host: str = "0.0.0.0") -> None:
        """
        Initialize the transport.

        Args:
            on_message: Called as ``on_message(data, address, port)`` per datagram
            bind_host: Local interface to bind

        """
        self.on_message: MessageHandler | None = on_message
        self.bind_host = bind_host
        self._transport: asyncio.DatagramTransport | None = None

    async def bind(self, local_port: int = 0) -> None:
        """
        Open the socket on ``local_port`` (0 = ephemeral) with broadcast enabled.

        Raises:
            TransportBindError: If the socket cannot be created or bound

        """
        if self._transport is not None:
            return
        loop = asyncio.get_running_loop()
        try:
            transport, _ = await loop.create_datagram_endpoint(
                lambda: _SessionDatagramProtocol(self),
                local_addr=(self.bind_host, local_port),
                allow_broadcast=True,
            )
        except OSError as e:
            raise TransportBindError(str(e), local_port) from e

        self._transport = transport
        logger.debug(
            "UDP socket bound on %s:%d",
            self.bind_host,
            self.local_port,
            extra={"host": self.bind_host, "port": self.local_port},
        )

    def set_broadcast(self, enabled: bool = True) -> None:
        """Toggle SO_BROADCAST on the bound socket."""
        sock = self._socket()
        if sock is not None:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1 if enabled else 0)

    def send(self, data: bytes, port: int, address: str) -> None:
        """
        Hand one datagram to the socket without waiting.

        Raises:
            TransportSendError: If the socket is not bound or rejects the datagram

        """
        if self._transport is None or self._transport.is_closing():
            reason = "not_bound"
            raise TransportSendError(reason, address, port)
        try:
            self._transport.sendto(data, (address, port))
        except (OSError, ValueError) as e:
            raise TransportSendError(str(e), address, port) from e
        logger.debug(
            "Sent %d bytes to %s:%d",
            len(data),
            address,
            port,
            extra={"bytes": len(data), "host": address, "port": port},
        )

    def dispatch(self, data: bytes, address: str, port: int) -> None:
        """Deliver an inbound datagram to the registered handler."""
        if self.on_message is None:
            logger.debug("Dropping datagram from %s:%d (no handler)", address, port)
            return
        self.on_message(data, address, port)

    def mark_closed(self) -> None:
        """Forget the underlying asyncio transport."""
        self._transport = None

    def close(self) -> None:
        """Close the socket."""
        if self._transport is not None:
            logger.debug("Closing UDP socket on port %d", self.local_port)
            self._transport.close()
            self._transport = None

    def _socket(self) -> socket.socket | None:
        if self._transport is None:
            return None
        return self._transport.get_extra_info("socket")

    @property
    def is_bound(self) -> bool:
        """Check if the socket is open."""
        return self._transport is not None

    @property
    def local_port(self) -> int:
        """Port the socket is bound to (0 if unbound)."""
        sock = self._socket()
        if sock is None:
            return 0
        return int(sock.getsockname()[1])

    def __repr__(self) -> str:
        """String representation."""
        status = f"bound:{self.local_port}" if self.is_bound else "unbound"
        return f"UDPTransport({status})"
