"""Typed setters translating named capabilities into command codes."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from gree_lan.commands import Command, get_command
from gree_lan.logging_abstraction import get_logger

logger = get_logger(__name__)


# Mixin class for device command methods
class DeviceCommands:
    """Command methods for DeviceSession instances.

    Values may be given as the catalog's numeric value or its label
    (e.g. ``set_mode("cool")``). No range checks are made.
    """

    lp: str
    send_command: Callable[[Sequence[str], Sequence[Any]], bool]

    def _set(self, name: str, value: int | str | bool) -> bool:
        command = get_command(name)
        resolved = self._resolve(command, value)
        if resolved is None:
            return False
        return self.send_command([command.code], [resolved])

    def _resolve(self, command: Command, value: int | str | bool) -> int | None:
        if isinstance(value, bool):
            return 1 if value else 0
        if isinstance(value, str):
            try:
                return command.value(value)
            except KeyError:
                logger.error(
                    "%s Unknown value '%s' for %s (expected one of %s)",
                    self.lp,
                    value,
                    command.name,
                    ", ".join(command.values),
                )
                return None
        return value

    def set_power(self, value: bool) -> bool:
        """Turn on/off."""
        return self._set("power", bool(value))

    def set_temperature(self, value: int, unit: int | str = "celsius") -> bool:
        """Set target temperature; the unit is sent alongside it."""
        unit_cmd = get_command("temperature_unit")
        resolved_unit = self._resolve(unit_cmd, unit)
        if resolved_unit is None:
            return False
        return self.send_command([unit_cmd.code, get_command("temperature").code], [resolved_unit, value])

    def set_mode(self, value: int | str) -> bool:
        """Set mode (auto, cool, dry, fan_only, heat)."""
        return self._set("mode", value)

    def set_fan_speed(self, value: int | str) -> bool:
        """Set fan speed (0-5)."""
        return self._set("fan_speed", value)

    def set_swing_hor(self, value: int | str) -> bool:
        """Set horizontal swing (0-7)."""
        return self._set("swing_hor", value)

    def set_swing_vert(self, value: int | str) -> bool:
        """Set vertical swing (0-11)."""
        return self._set("swing_vert", value)

    def set_power_save(self, value: bool) -> bool:
        """Turn power-save mode on/off."""
        return self._set("power_save", bool(value))

    def set_lights(self, value: bool) -> bool:
        """Turn the display lights on/off."""
        return self._set("lights", bool(value))

    def set_health(self, value: bool) -> bool:
        """Turn health (ionizer) mode on/off."""
        return self._set("health", bool(value))

    def set_quiet(self, value: int | str) -> bool:
        """Set quiet mode (off, mode1-3)."""
        return self._set("quiet", value)

    def set_blow(self, value: bool) -> bool:
        """Turn blow (coil drying) mode on/off."""
        return self._set("blow", bool(value))

    def set_air(self, value: int | str) -> bool:
        """Set air valve mode (off, inside, outside, mode3)."""
        return self._set("air", value)

    def set_sleep(self, value: bool) -> bool:
        """Turn sleep mode on/off."""
        return self._set("sleep", bool(value))

    def set_turbo(self, value: bool) -> bool:
        """Turn turbo mode on/off."""
        return self._set("turbo", bool(value))
