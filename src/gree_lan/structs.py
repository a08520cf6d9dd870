"""Core data structures for the gree_lan session."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from gree_lan.const import (
    GREE_DEVICE_PORT,
    GREE_HOST,
    GREE_LOCAL_PORT,
    GREE_POLL_INTERVAL,
    GREE_RECONNECT_DELAY,
)

__all__ = [
    "Device",
    "DeviceCallback",
    "SessionConfig",
    "SessionState",
]

MAX_PORT = 65535


class SessionState(StrEnum):
    """Handshake progress of a device session."""

    DISCONNECTED = "disconnected"
    AWAITING_HANDSHAKE = "awaiting_handshake"
    AWAITING_BIND_CONFIRMATION = "awaiting_bind_confirmation"
    BOUND = "bound"


class SessionConfig(BaseModel):
    """Settings consumed by a DeviceSession.

    Defaults come from the GREE_* environment variables.
    """

    model_config = ConfigDict(frozen=True)

    host: str = GREE_HOST
    local_port: int = Field(default=GREE_LOCAL_PORT, ge=0, le=MAX_PORT)
    device_port: int = Field(default=GREE_DEVICE_PORT, ge=1, le=MAX_PORT)
    reconnect_delay: float = Field(default=GREE_RECONNECT_DELAY, gt=0)
    poll_interval: float = Field(default=GREE_POLL_INTERVAL, gt=0)


@dataclass
class Device:
    """The remote appliance a session is bound to.

    ``properties`` maps protocol code to last reported value and is only
    written once the device is bound.
    """

    id: str | None = None
    name: str | None = None
    firmware_version: str | None = None
    address: str | None = None
    port: int | None = None
    bound: bool = False
    key: str | None = None
    properties: dict[str, Any] = field(default_factory=dict)

    def __repr__(self) -> str:
        # omits the session key
        return (
            f"Device(id={self.id!r}, name={self.name!r}, address={self.address!r}, "
            f"port={self.port!r}, bound={self.bound})"
        )


DeviceCallback = Callable[[Device], Any]
