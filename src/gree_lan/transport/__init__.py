"""Datagram transport used by device sessions."""

from gree_lan.transport.exceptions import TransportBindError, TransportSendError
from gree_lan.transport.udp import MessageHandler, UDPTransport

__all__ = [
    "MessageHandler",
    "TransportBindError",
    "TransportSendError",
    "UDPTransport",
]
