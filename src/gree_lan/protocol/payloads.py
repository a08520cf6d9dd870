"""Logical payloads carried inside the encrypted ``pack`` field.

Inbound payloads are parsed into a closed set of dataclasses keyed by the
``t`` field; anything else becomes :class:`UnknownPayload`. Outbound payloads
are plain dicts built by the ``*_payload`` helpers.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from gree_lan.protocol.exceptions import DecodeError

__all__ = [
    "PAYLOAD_TYPE_BIND",
    "PAYLOAD_TYPE_BINDOK",
    "PAYLOAD_TYPE_CMD",
    "PAYLOAD_TYPE_DAT",
    "PAYLOAD_TYPE_DEV",
    "PAYLOAD_TYPE_RES",
    "PAYLOAD_TYPE_SCAN",
    "PAYLOAD_TYPE_STATUS",
    "SESSION_KEY_BYTES",
    "BindOkPayload",
    "DatPayload",
    "DevPayload",
    "InboundPayload",
    "ResPayload",
    "UnknownPayload",
    "bind_payload",
    "command_payload",
    "parse_payload",
    "scan_payload",
    "status_payload",
]

# Inbound kinds
PAYLOAD_TYPE_DEV = "dev"
PAYLOAD_TYPE_BINDOK = "bindok"
PAYLOAD_TYPE_DAT = "dat"
PAYLOAD_TYPE_RES = "res"
# Outbound kinds
PAYLOAD_TYPE_SCAN = "scan"
PAYLOAD_TYPE_BIND = "bind"
PAYLOAD_TYPE_STATUS = "status"
PAYLOAD_TYPE_CMD = "cmd"

SESSION_KEY_BYTES = 16


@dataclass(frozen=True, slots=True)
class DevPayload:
    """Reply to a scan: identifies the device and its firmware."""

    cid: str | None
    name: str | None
    version: str | None
    mac: str | None = None


@dataclass(frozen=True, slots=True)
class BindOkPayload:
    """Bind confirmation carrying the session key."""

    key: str


@dataclass(frozen=True, slots=True)
class DatPayload:
    """Status report: parallel ``cols``/``dat`` lists."""

    cols: tuple[str, ...]
    values: tuple[Any, ...]

    def pairs(self) -> Iterator[tuple[str, Any]]:
        """Yield (code, value) aligned by position."""
        return zip(self.cols, self.values, strict=False)


@dataclass(frozen=True, slots=True)
class ResPayload:
    """Command response: parallel ``opt`` and ``p`` (or ``val``) lists."""

    opt: tuple[str, ...]
    values: tuple[Any, ...]

    def pairs(self) -> Iterator[tuple[str, Any]]:
        """Yield (option, value) aligned by position."""
        return zip(self.opt, self.values, strict=False)


@dataclass(frozen=True, slots=True)
class UnknownPayload:
    """Any payload kind the session does not handle."""

    kind: str | None
    raw: Mapping[str, Any] = field(default_factory=dict)


InboundPayload = DevPayload | BindOkPayload | DatPayload | ResPayload | UnknownPayload


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


def _list_field(raw: Mapping[str, Any], name: str, kind: str) -> tuple[Any, ...]:
    value = raw.get(name)
    if not isinstance(value, list):
        reason = f"malformed_{kind}"
        raise DecodeError(reason, repr(dict(raw)))
    return tuple(value)


def parse_payload(raw: Mapping[str, Any]) -> InboundPayload:
    """Turn a decrypted payload dict into its typed variant.

    Raises:
        DecodeError: If a known kind is missing its required fields

    """
    kind = raw.get("t")
    match kind:
        case "dev":
            return DevPayload(
                cid=_optional_str(raw.get("cid")),
                name=_optional_str(raw.get("name")),
                version=_optional_str(raw.get("ver")),
                mac=_optional_str(raw.get("mac")),
            )
        case "bindok":
            key = raw.get("key")
            # the key is used directly as an AES-128 key
            if not isinstance(key, str) or len(key.encode("utf-8")) != SESSION_KEY_BYTES:
                raise DecodeError("malformed_bindok", repr(dict(raw)))
            return BindOkPayload(key=key)
        case "dat":
            return DatPayload(
                cols=tuple(str(c) for c in _list_field(raw, "cols", "dat")),
                values=_list_field(raw, "dat", "dat"),
            )
        case "res":
            # older firmware answers with "val" instead of "p"
            value_field = "p" if raw.get("p") is not None else "val"
            return ResPayload(
                opt=tuple(str(o) for o in _list_field(raw, "opt", "res")),
                values=_list_field(raw, value_field, "res"),
            )
        case _:
            return UnknownPayload(kind=_optional_str(kind), raw=dict(raw))


def scan_payload() -> dict[str, Any]:
    """Discovery request, sent as bare JSON."""
    return {"t": PAYLOAD_TYPE_SCAN}


def bind_payload(device_id: str) -> dict[str, Any]:
    """Request the session key for ``device_id``."""
    return {"mac": device_id, "t": PAYLOAD_TYPE_BIND, "uid": 0}


def status_payload(device_id: str, codes: Sequence[str]) -> dict[str, Any]:
    """Ask the device to report ``codes``."""
    return {"cols": list(codes), "mac": device_id, "t": PAYLOAD_TYPE_STATUS}


def command_payload(codes: Sequence[str], values: Sequence[Any]) -> dict[str, Any]:
    """Set each code to the value at the same position.

    Raises:
        ValueError: If the lists differ in length

    """
    if len(codes) != len(values):
        msg = f"codes and values must be the same length ({len(codes)} != {len(values)})"
        raise ValueError(msg)
    return {"opt": list(codes), "p": list(values), "t": PAYLOAD_TYPE_CMD}
