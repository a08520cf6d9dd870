"""Metrics module."""

from .registry import (
    record_bind_retry,
    record_decode_error,
    record_device_bound,
    record_handshake,
    record_packet_recv,
    record_packet_sent,
    record_unexpected_payload,
    start_metrics_server,
)

__all__ = [
    "record_bind_retry",
    "record_decode_error",
    "record_device_bound",
    "record_handshake",
    "record_packet_recv",
    "record_packet_sent",
    "record_unexpected_payload",
    "start_metrics_server",
]
