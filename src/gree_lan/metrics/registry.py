"""Prometheus metrics registry for the device session."""

import threading
from typing import Final

from prometheus_client import (  # type: ignore[import-untyped]
    Counter,
    Gauge,
    start_http_server,
)

gree_packet_sent_total: Final = Counter(  # type: ignore[assignment]
    "gree_packet_sent_total",
    "Total datagrams sent",
    ["device_id", "kind", "outcome"],
)

gree_packet_recv_total: Final = Counter(  # type: ignore[assignment]
    "gree_packet_recv_total",
    "Total datagrams received",
    ["device_id", "kind"],
)

gree_decode_errors_total: Final = Counter(  # type: ignore[assignment]
    "gree_decode_errors_total",
    "Total inbound datagrams dropped on decode failure",
    ["reason"],
)

gree_unexpected_payload_total: Final = Counter(  # type: ignore[assignment]
    "gree_unexpected_payload_total",
    "Total well-formed payloads dropped as out of sequence",
    ["kind", "state"],
)

gree_handshake_total: Final = Counter(  # type: ignore[assignment]
    "gree_handshake_total",
    "Handshake steps completed",
    ["device_id", "step"],
)

gree_bind_retry_total: Final = Counter(  # type: ignore[assignment]
    "gree_bind_retry_total",
    "Local socket bind failures that scheduled a retry",
    ["port"],
)

gree_device_bound: Final = Gauge(  # type: ignore[assignment]
    "gree_device_bound",
    "1 once the device has confirmed binding",
    ["device_id"],
)

_server_state = {"started": False}
_server_lock = threading.Lock()


def start_metrics_server(port: int = 9400) -> None:
    """Start Prometheus HTTP metrics server (idempotent)."""
    with _server_lock:
        if not _server_state["started"]:
            start_http_server(port)  # type: ignore[no-untyped-call]
            _server_state["started"] = True


def record_packet_sent(device_id: str, kind: str, outcome: str) -> None:
    """Record a sent datagram."""
    gree_packet_sent_total.labels(device_id=device_id, kind=kind, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_packet_recv(device_id: str, kind: str) -> None:
    """Record a received, decoded datagram."""
    gree_packet_recv_total.labels(device_id=device_id, kind=kind).inc()  # type: ignore[no-untyped-call]


def record_decode_error(reason: str) -> None:
    """Record a datagram dropped on decode failure."""
    gree_decode_errors_total.labels(reason=reason).inc()  # type: ignore[no-untyped-call]


def record_unexpected_payload(kind: str, state: str) -> None:
    """Record an out-of-sequence payload."""
    gree_unexpected_payload_total.labels(kind=kind, state=state).inc()  # type: ignore[no-untyped-call]


def record_handshake(device_id: str, step: str) -> None:
    """Record a handshake step (``dev`` or ``bindok``)."""
    gree_handshake_total.labels(device_id=device_id, step=step).inc()  # type: ignore[no-untyped-call]


def record_bind_retry(port: int) -> None:
    """Record a scheduled bind retry."""
    gree_bind_retry_total.labels(port=str(port)).inc()  # type: ignore[no-untyped-call]


def record_device_bound(device_id: str, bound: bool) -> None:
    """Set the bound gauge for a device."""
    gree_device_bound.labels(device_id=device_id).set(1 if bound else 0)  # type: ignore[no-untyped-call]
