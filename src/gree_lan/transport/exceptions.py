"""Custom exception types for the datagram transport.

Extends the protocol exception hierarchy so callers can catch everything
with GreeProtocolError.
"""

from __future__ import annotations

from gree_lan.protocol.exceptions import GreeProtocolError


class TransportBindError(GreeProtocolError):
    """Local UDP socket could not be bound.

    The session retries the bind after the configured reconnect delay;
    this error is never fatal.

    Attributes:
        reason: Specific failure reason
        port: Local port that was requested

    """

    def __init__(self, reason: str, port: int = 0) -> None:
        """Initialize bind error with reason and local port."""
        self.reason: str = reason
        self.port: int = port
        super().__init__(f"Transport bind failed: {reason} (port: {port})")


class TransportSendError(GreeProtocolError):
    """Datagram could not be handed to the socket.

    Attributes:
        reason: Specific failure reason
        address: Destination address
        port: Destination port

    """

    def __init__(self, reason: str, address: str = "", port: int = 0) -> None:
        """Initialize send error with reason and destination."""
        self.reason: str = reason
        self.address: str = address
        self.port: int = port
        super().__init__(f"Transport send failed: {reason} ({address}:{port})")
