"""Unit tests for the DeviceCommands setters."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from gree_lan.devices import DeviceCommands, DeviceSession


@pytest.fixture
def commands(session: DeviceSession) -> DeviceSession:
    """Session whose send_command is replaced by a mock."""
    session.send_command = MagicMock(return_value=True)  # type: ignore[method-assign]
    return session


class TestBooleanSetters:
    """Tests for on/off setters."""

    @pytest.mark.parametrize(
        ("method", "code"),
        [
            ("set_power", "Pow"),
            ("set_power_save", "SvSt"),
            ("set_lights", "Lig"),
            ("set_health", "Health"),
            ("set_blow", "Blo"),
            ("set_sleep", "SwhSlp"),
            ("set_turbo", "Tur"),
        ],
    )
    def test_true_and_false_map_to_one_and_zero(self, commands: DeviceSession, method: str, code: str) -> None:
        """Test booleans are sent as 1/0 under the catalog code."""
        setter = getattr(commands, method)

        assert setter(True) is True
        assert setter(False) is True

        send = commands.send_command
        assert send.call_args_list[0].args == ([code], [1])  # type: ignore[attr-defined]
        assert send.call_args_list[1].args == ([code], [0])  # type: ignore[attr-defined]

    def test_truthy_value_is_coerced(self, commands: DeviceSession) -> None:
        """Test non-bool truthy values still send 1."""
        commands.set_power(5)  # type: ignore[arg-type]

        commands.send_command.assert_called_once_with(["Pow"], [1])  # type: ignore[attr-defined]


class TestValueSetters:
    """Tests for multi-valued setters."""

    @pytest.mark.parametrize(
        ("method", "label", "code", "value"),
        [
            ("set_mode", "cool", "Mod", 1),
            ("set_mode", "heat", "Mod", 4),
            ("set_fan_speed", "medium", "WdSpd", 3),
            ("set_swing_hor", "fixed_right", "SwingLfRig", 6),
            ("set_swing_vert", "swing_top", "SwUpDn", 11),
            ("set_quiet", "mode2", "Quiet", 2),
            ("set_air", "outside", "Air", 2),
        ],
    )
    def test_labels_resolve_to_catalog_values(
        self, commands: DeviceSession, method: str, label: str, code: str, value: int
    ) -> None:
        """Test named values are translated before sending."""
        assert getattr(commands, method)(label) is True

        commands.send_command.assert_called_once_with([code], [value])  # type: ignore[attr-defined]

    def test_numeric_value_passes_through(self, commands: DeviceSession) -> None:
        """Test raw numbers are sent unchanged without range checks."""
        commands.set_fan_speed(9)

        commands.send_command.assert_called_once_with(["WdSpd"], [9])  # type: ignore[attr-defined]

    def test_unknown_label_is_rejected(self, commands: DeviceSession, caplog: pytest.LogCaptureFixture) -> None:
        """Test an unknown label sends nothing and is logged."""
        assert commands.set_mode("arctic") is False

        commands.send_command.assert_not_called()  # type: ignore[attr-defined]
        assert "Unknown value 'arctic' for mode" in caplog.text


class TestSetTemperature:
    """Tests for set_temperature."""

    def test_defaults_to_celsius(self, commands: DeviceSession) -> None:
        """Test the unit code is sent before the temperature."""
        commands.set_temperature(22)

        commands.send_command.assert_called_once_with(["TemUn", "SetTem"], [0, 22])  # type: ignore[attr-defined]

    def test_fahrenheit_label(self, commands: DeviceSession) -> None:
        """Test a named unit is resolved."""
        commands.set_temperature(72, unit="fahrenheit")

        commands.send_command.assert_called_once_with(["TemUn", "SetTem"], [1, 72])  # type: ignore[attr-defined]

    def test_numeric_unit(self, commands: DeviceSession) -> None:
        """Test a numeric unit is sent as given."""
        commands.set_temperature(72, unit=1)

        commands.send_command.assert_called_once_with(["TemUn", "SetTem"], [1, 72])  # type: ignore[attr-defined]

    def test_unknown_unit_is_rejected(self, commands: DeviceSession) -> None:
        """Test an unknown unit label sends nothing."""
        assert commands.set_temperature(300, unit="kelvin") is False

        commands.send_command.assert_not_called()  # type: ignore[attr-defined]


@pytest.mark.asyncio
async def test_setter_on_bound_session_sends_datagram(bound_session: DeviceSession, mock_transport: MagicMock) -> None:
    """Test a setter reaches the socket once the session is bound."""
    sends = mock_transport.send.call_count

    assert bound_session.set_power(True) is True

    assert mock_transport.send.call_count == sends + 1


def test_setter_before_bound_returns_false(session: DeviceSession, mock_transport: MagicMock) -> None:
    """Test setters report failure when nothing could be sent."""
    assert session.set_lights(True) is False

    mock_transport.send.assert_not_called()


def test_mixin_leaves_send_command_to_the_session() -> None:
    """Test the mixin only declares send_command and DeviceSession provides it."""
    assert "send_command" not in vars(DeviceCommands)
    assert "send_command" in DeviceCommands.__annotations__
    assert callable(vars(DeviceSession)["send_command"])


def test_every_setter_is_documented() -> None:
    """Test each setter on the mixin carries a docstring."""
    setters = {name: attr for name, attr in vars(DeviceCommands).items() if name.startswith("set_")}

    assert len(setters) == 14
    assert [name for name, attr in setters.items() if not (attr.__doc__ or "").strip()] == []
