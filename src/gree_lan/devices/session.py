"""Session state machine for a single Gree appliance.

Drives discovery (``scan``/``dev``) and binding (``bind``/``bindok``), then
polls status on a fixed interval and forwards commands. All work happens on
the event loop: datagram callbacks, the reconnect timer and the poll task.

    DISCONNECTED -> AWAITING_HANDSHAKE -> AWAITING_BIND_CONFIRMATION -> BOUND
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, assert_never

from gree_lan.commands import all_codes
from gree_lan.const import GREE_ENABLE_METRICS, GREE_METRICS_PORT, V2_VERSION_PREFIX
from gree_lan.correlation import correlation_context
from gree_lan.devices.device_commands import DeviceCommands
from gree_lan.logging_abstraction import get_logger, session_log_context
from gree_lan.metrics import (
    record_bind_retry,
    record_decode_error,
    record_device_bound,
    record_handshake,
    record_packet_recv,
    record_packet_sent,
    record_unexpected_payload,
    start_metrics_server,
)
from gree_lan.protocol import (
    BindOkPayload,
    DatPayload,
    DecodeError,
    DevPayload,
    EncryptionVersion,
    Envelope,
    InboundPayload,
    PacketCodec,
    ResPayload,
    SequenceKind,
    UnexpectedPayloadError,
    UnknownPayload,
    bind_payload,
    command_payload,
    status_payload,
)
from gree_lan.structs import Device, DeviceCallback, SessionConfig, SessionState
from gree_lan.transport import TransportBindError, TransportSendError, UDPTransport

__all__ = [
    "DeviceSession",
    "connect",
]

logger = get_logger(__name__)

_HANDSHAKE_STATES = (SessionState.AWAITING_HANDSHAKE, SessionState.AWAITING_BIND_CONFIRMATION)


def _noop_callback(_device: Device) -> None:
    """Placeholder for callbacks the caller did not supply."""


class DeviceSession(DeviceCommands):
    """Owns one device's identity, key and bound flag.

    The transport is injected (or created) per session and its receive
    callback is pointed at :meth:`handle_datagram`.
    """

    lp: str = "DeviceSession:"

    def __init__(
        self,
        config: SessionConfig | None = None,
        *,
        on_status: DeviceCallback | None = None,
        on_update: DeviceCallback | None = None,
        on_connected: DeviceCallback | None = None,
        transport: UDPTransport | None = None,
        codec: PacketCodec | None = None,
        status_codes: Sequence[str] | None = None,
    ) -> None:
        """
        Initialize the session (no I/O until :meth:`start`).

        Args:
            config: Host, ports and timer intervals
            on_status: Called with the device after each ``dat`` report
            on_update: Called with the device after each ``res`` response
            on_connected: Called once with the device when binding completes
            transport: Datagram transport (a new UDPTransport by default)
            codec: Envelope codec (default GreeCipher-backed PacketCodec)
            status_codes: Codes requested on each poll (default: whole catalog)

        """
        self.config: SessionConfig = config if config is not None else SessionConfig()
        self.on_status: DeviceCallback = on_status or _noop_callback
        self.on_update: DeviceCallback = on_update or _noop_callback
        self.on_connected: DeviceCallback = on_connected or _noop_callback
        self.codec: PacketCodec = codec if codec is not None else PacketCodec()
        self.status_codes: list[str] = list(status_codes) if status_codes is not None else all_codes()

        self.device: Device = Device()
        self.state: SessionState = SessionState.DISCONNECTED
        self.version: EncryptionVersion = EncryptionVersion.V1
        self.version_negotiated: bool = False
        self.packet_sent_no: int = 0
        self.packet_received_no: int = 0

        self.transport: UDPTransport = transport if transport is not None else UDPTransport()
        self.transport.on_message = self.handle_datagram

        self._retry_handle: asyncio.TimerHandle | None = None
        self._connect_task: asyncio.Task[None] | None = None
        self._poll_task: asyncio.Task[None] | None = None
        self._background_tasks: set[asyncio.Future[Any]] = set()

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Bind the socket and broadcast discovery (retries bind on failure)."""
        await self._connect()

    async def _connect(self) -> None:
        lp = f"{self.lp}connect:"
        self._retry_handle = None
        try:
            await self.transport.bind(self.config.local_port)
        except TransportBindError as e:
            delay = self.config.reconnect_delay
            logger.error(
                "%s Unable to connect (%s). Retrying in %ss...",
                lp,
                e.reason,
                delay,
                extra={"port": e.port, "retry_in": delay},
            )
            record_bind_retry(e.port)
            self._schedule_reconnect(delay)
            return

        self.transport.set_broadcast(True)
        self.state = SessionState.AWAITING_HANDSHAKE
        self._send_datagram(self.codec.encode_scan(), self.config.device_port, self.config.host, kind="scan")
        if self.config.local_port == 0:
            logger.info("%s Connected to device at %s", lp, self.config.host)
        else:
            logger.info(
                "%s Connected to device at %s from port %d",
                lp,
                self.config.host,
                self.config.local_port,
            )

    def _schedule_reconnect(self, delay: float) -> None:
        loop = asyncio.get_running_loop()
        self._retry_handle = loop.call_later(delay, self._start_connect_task)

    def _start_connect_task(self) -> None:
        self._connect_task = asyncio.get_running_loop().create_task(self._connect())

    async def close(self) -> None:
        """Cancel timers and close the socket."""
        if self._retry_handle is not None:
            self._retry_handle.cancel()
            self._retry_handle = None
        for task in (self._poll_task, self._connect_task):
            if task is not None and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._poll_task = None
        self._connect_task = None
        self.transport.close()

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def handle_datagram(self, data: bytes, address: str, port: int) -> None:
        """Decode one inbound datagram and apply it to the session.

        Malformed or out-of-sequence traffic is logged and dropped.
        """
        lp = f"{self.lp}handle_datagram:"
        self.packet_received_no += 1
        with correlation_context(), session_log_context(device_id=self.device.id, state=str(self.state)):
            try:
                envelope, payload = self.codec.decode_datagram(
                    data,
                    key=self.device.key,
                    version=self.version,
                )
            except DecodeError as e:
                logger.warning(
                    "%s Dropping datagram #%d from %s:%d: %s",
                    lp,
                    self.packet_received_no,
                    address,
                    port,
                    e.reason,
                    extra={"reason": e.reason, "preview": e.data_preview.hex()},
                )
                record_decode_error(e.reason)
                return

            try:
                self._dispatch(envelope, payload, address, port)
            except UnexpectedPayloadError as e:
                logger.warning(
                    "%s Unknown message of type %s in state %s: %s",
                    lp,
                    e.kind,
                    e.state,
                    payload,
                    extra={"kind": e.kind, "state": e.state, "cid": envelope.cid},
                )
                record_unexpected_payload(e.kind, e.state)

    def _dispatch(self, envelope: Envelope, payload: InboundPayload, address: str, port: int) -> None:
        match payload:
            case DevPayload():
                self._handle_dev(envelope, payload, address, port)
                kind = "dev"
            case BindOkPayload():
                self._handle_bindok(payload, address, port)
                kind = "bindok"
            case DatPayload():
                self._handle_dat(payload)
                kind = "dat"
            case ResPayload():
                self._handle_res(payload)
                kind = "res"
            case UnknownPayload():
                raise UnexpectedPayloadError(payload.kind or "<missing>", self.state)
            case _:
                assert_never(payload)
        record_packet_recv(self.device.id or "", kind)

    def _handle_dev(self, envelope: Envelope, payload: DevPayload, address: str, port: int) -> None:
        lp = f"{self.lp}handle_dev:"
        if self.state not in _HANDSHAKE_STATES:
            raise UnexpectedPayloadError("dev", self.state)

        if self.state == SessionState.AWAITING_BIND_CONFIRMATION:
            # repeated scan reply, the bind request was probably lost
            self.device.address = address
            self.device.port = port
            logger.info("%s Device %s answered again, re-sending bind request", lp, self.device.id)
            self._send_bind_request()
            return

        device_id: str | None = envelope.cid or None
        version = self.version
        if (
            not self.version_negotiated
            and self.version == EncryptionVersion.V1
            and payload.version is not None
            and payload.version.startswith(V2_VERSION_PREFIX)
        ):
            # these firmwares answer scan under v1 but only bind under v2
            version = EncryptionVersion.V2
            device_id = payload.cid or device_id

        if not device_id:
            raise UnexpectedPayloadError("dev", self.state)

        if not self.version_negotiated:
            self.version_negotiated = True
            if version != self.version:
                self.version = version
                logger.info(
                    "%s Firmware %s requires encryption version 2",
                    lp,
                    payload.version,
                    extra={"firmware": payload.version},
                )

        self._set_device(device_id, payload, address, port)
        self.state = SessionState.AWAITING_BIND_CONFIRMATION
        record_handshake(device_id, "dev")
        self._send_bind_request()

    def _set_device(self, device_id: str, payload: DevPayload, address: str, port: int) -> None:
        self.device.id = device_id
        self.device.name = payload.name
        self.device.firmware_version = payload.version
        self.device.address = address
        self.device.port = port
        self.device.bound = False
        self.device.properties = {}
        logger.info(
            "%s New device registered: %s @ %s",
            self.lp,
            device_id,
            address,
            extra={"device_id": device_id, "name": payload.name, "port": port},
        )

    def _handle_bindok(self, payload: BindOkPayload, address: str, port: int) -> None:
        if self.device.id is None or self.state != SessionState.AWAITING_BIND_CONFIRMATION:
            raise UnexpectedPayloadError("bindok", self.state)

        self.device.address = address
        self.device.port = port
        self.device.key = payload.key
        self.device.bound = True
        self.state = SessionState.BOUND
        logger.info("%s Device %s is bound!", self.lp, self.device.id, extra={"version": int(self.version)})
        record_handshake(self.device.id, "bindok")
        record_device_bound(self.device.id, True)

        self._poll_task = asyncio.get_running_loop().create_task(self._poll_status())
        self._notify(self.on_connected)

    def _handle_dat(self, payload: DatPayload) -> None:
        if not self.device.bound:
            raise UnexpectedPayloadError("dat", self.state)
        self._apply_properties(payload.pairs())
        self._notify(self.on_status)

    def _handle_res(self, payload: ResPayload) -> None:
        if not self.device.bound:
            raise UnexpectedPayloadError("res", self.state)
        self._apply_properties(payload.pairs())
        self._notify(self.on_update)

    def _apply_properties(self, pairs: Iterable[tuple[str, Any]]) -> None:
        for code, value in pairs:
            self.device.properties[code] = value

    def _notify(self, callback: DeviceCallback) -> None:
        try:
            result = callback(self.device)
        except Exception:
            logger.exception("%s Callback %s failed", self.lp, getattr(callback, "__name__", callback))
            return
        if inspect.isawaitable(result):
            future = asyncio.ensure_future(result)
            self._background_tasks.add(future)
            future.add_done_callback(self._background_tasks.discard)

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    async def _poll_status(self) -> None:
        with session_log_context(device_id=self.device.id, version=int(self.version)):
            while True:
                await asyncio.sleep(self.config.poll_interval)
                self.request_status()

    def request_status(self) -> bool:
        """Ask the bound device to report every code in ``status_codes``."""
        if not self.device.bound or self.device.id is None:
            return False
        return self._send_payload(status_payload(self.device.id, self.status_codes), SequenceKind.STEADY)

    def send_command(self, codes: Sequence[str], values: Sequence[Any]) -> bool:
        """
        Send a ``cmd`` payload setting each code to the value at the same index.

        Never raises; returns False when nothing was sent (not bound, length
        mismatch or socket failure).
        """
        lp = f"{self.lp}send_command:"
        if not self.device.bound:
            logger.warning("%s Device is not bound yet, dropping command %s", lp, list(codes))
            return False
        try:
            payload = command_payload(codes, values)
        except ValueError:
            logger.exception("%s Invalid command", lp, extra={"codes": list(codes), "values": list(values)})
            return False
        return self._send_payload(payload, SequenceKind.STEADY)

    def _send_bind_request(self) -> bool:
        if self.device.id is None:
            return False
        return self._send_payload(bind_payload(self.device.id), SequenceKind.HANDSHAKE)

    def _send_payload(self, payload: Mapping[str, Any], sequence: SequenceKind) -> bool:
        if self.device.id is None or self.device.address is None or self.device.port is None:
            return False
        lp = f"{self.lp}send_payload:"
        kind = str(payload.get("t"))
        try:
            envelope = self.codec.encode(
                payload,
                target_id=self.device.id,
                key=self.device.key,
                sequence=sequence,
                version=self.version,
            )
        except ValueError as e:
            # cryptography rejects keys that are not a valid AES length
            logger.error(
                "%s Unable to encrypt '%s' for %s: %s",
                lp,
                kind,
                self.device.id,
                e,
                extra={"kind": kind, "version": int(self.version)},
            )
            record_packet_sent(self.device.id, kind, "failed")
            return False
        return self._send_datagram(
            envelope.to_bytes(),
            self.device.port,
            self.device.address,
            kind=kind,
        )

    def _send_datagram(self, data: bytes, port: int, address: str, *, kind: str) -> bool:
        lp = f"{self.lp}send:"
        self.packet_sent_no += 1
        device_id = self.device.id or ""
        try:
            self.transport.send(data, port, address)
        except TransportSendError as e:
            logger.error(
                "%s Failed to send '%s' #%d to %s:%d: %s",
                lp,
                kind,
                self.packet_sent_no,
                address,
                port,
                e.reason,
                extra={"kind": kind, "host": address, "port": port},
            )
            record_packet_sent(device_id, kind, "failed")
            return False
        logger.debug("%s Sent[%d] '%s' to %s:%d", lp, self.packet_sent_no, kind, address, port)
        record_packet_sent(device_id, kind, "success")
        return True

    def __repr__(self) -> str:
        """String representation."""
        return f"DeviceSession({self.device!r}, state={self.state}, v{int(self.version)})"


async def connect(
    config: SessionConfig | None = None,
    *,
    on_status: DeviceCallback | None = None,
    on_update: DeviceCallback | None = None,
    on_connected: DeviceCallback | None = None,
) -> DeviceSession:
    """Create a session and start discovery on the running loop."""
    if GREE_ENABLE_METRICS:
        start_metrics_server(GREE_METRICS_PORT)
    session = DeviceSession(
        config,
        on_status=on_status,
        on_update=on_update,
        on_connected=on_connected,
    )
    await session.start()
    return session
