"""Device session and command API."""

from gree_lan.devices.device_commands import DeviceCommands
from gree_lan.devices.session import DeviceSession, connect

__all__ = [
    "DeviceCommands",
    "DeviceSession",
    "connect",
]
