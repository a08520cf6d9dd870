"""Catalog of controllable device properties.

Maps a logical name to the protocol code sent on the wire, plus the named
values the appliance understands. Codes are opaque to the session.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Final

__all__ = [
    "COMMANDS",
    "Command",
    "all_codes",
    "get_command",
]


@dataclass(frozen=True, slots=True)
class Command:
    """A single catalog entry."""

    name: str
    code: str
    values: MappingProxyType[str, int] = field(default_factory=lambda: MappingProxyType({}))

    def value(self, label: str) -> int:
        """Numeric value for a named setting (KeyError if unknown)."""
        return self.values[label]


def _cmd(name: str, code: str, **values: int) -> Command:
    return Command(name=name, code=code, values=MappingProxyType(values))


_ON_OFF = {"off": 0, "on": 1}

COMMANDS: Final[MappingProxyType[str, Command]] = MappingProxyType(
    {
        c.name: c
        for c in (
            _cmd("power", "Pow", **_ON_OFF),
            _cmd("mode", "Mod", auto=0, cool=1, dry=2, fan_only=3, heat=4),
            _cmd("temperature_unit", "TemUn", celsius=0, fahrenheit=1),
            _cmd("temperature", "SetTem"),
            _cmd(
                "fan_speed",
                "WdSpd",
                auto=0,
                low=1,
                medium_low=2,
                medium=3,
                medium_high=4,
                high=5,
            ),
            _cmd("air", "Air", off=0, inside=1, outside=2, mode3=3),
            _cmd("blow", "Blo", **_ON_OFF),
            _cmd("health", "Health", **_ON_OFF),
            _cmd("sleep", "SwhSlp", **_ON_OFF),
            _cmd("lights", "Lig", **_ON_OFF),
            _cmd(
                "swing_hor",
                "SwingLfRig",
                default=0,
                full=1,
                fixed_left=2,
                fixed_mid_left=3,
                fixed_mid=4,
                fixed_mid_right=5,
                fixed_right=6,
                full_alt=7,
            ),
            _cmd(
                "swing_vert",
                "SwUpDn",
                default=0,
                full=1,
                fixed_top=2,
                fixed_mid_top=3,
                fixed_mid=4,
                fixed_mid_bottom=5,
                fixed_bottom=6,
                swing_bottom=7,
                swing_mid_bottom=8,
                swing_mid=9,
                swing_mid_top=10,
                swing_top=11,
            ),
            _cmd("quiet", "Quiet", off=0, mode1=1, mode2=2, mode3=3),
            _cmd("turbo", "Tur", **_ON_OFF),
            _cmd("power_save", "SvSt", **_ON_OFF),
        )
    },
)


def get_command(name: str) -> Command:
    """Look up a catalog entry by logical name."""
    return COMMANDS[name]


def all_codes() -> list[str]:
    """Every protocol code, in catalog order (requested on each status poll)."""
    return [c.code for c in COMMANDS.values()]
