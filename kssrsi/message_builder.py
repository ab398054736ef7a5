"""Parsing of RSI motion states and building of RSI control signals."""

from __future__ import annotations

import math
import re
from collections.abc import Iterable
from itertools import islice

from kssrsi.configuration import GPIOConfiguration, GPIOValueType
from kssrsi.gpio import GPIOConfig, GPIOValue

_MAX_ROBOT_AXES = 6
_MAX_EXTERNAL_AXES = 6

_FLOAT = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_INTEGER = re.compile(r"[+-]?\d+")

_DOF_ERROR = "Received XML is not valid for the given degree of freedom"
_GPIO_ERROR = "Received XML is not valid for the given GPIO configuration"
_DELAY_ERROR = _DOF_ERROR + ", Delay value is not a valid number"
_IPOC_ERROR = _DOF_ERROR + ", IPOC value is not a valid number"

# The controller expects fixed-size fields: longer values are cut to these widths.
_AXIS_FIELD_WIDTH = 11
_GPIO_DOUBLE_FIELD_WIDTH = 27
_GPIO_LONG_FIELD_WIDTH = 20


def _split_dof(dof: int) -> tuple[int, int]:
    robot_dof = min(dof, _MAX_ROBOT_AXES)
    external_dof = min(dof - _MAX_ROBOT_AXES, _MAX_EXTERNAL_AXES) if dof > _MAX_ROBOT_AXES else 0
    return robot_dof, external_dof


def _make_gpio_values(configs: Iterable[GPIOConfiguration]) -> list[GPIOValue]:
    return [GPIOValue(GPIOConfig.from_configuration(config)) for config in configs]


class _Reader:
    """Sequential reader over an RSI message."""

    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0

    def expect(self, literal: str, error: str) -> None:
        if not self._text.startswith(literal, self._pos):
            raise ValueError(error)
        self._pos += len(literal)

    def token(self, pattern: re.Pattern[str], error: str) -> str:
        match = pattern.match(self._text, self._pos)
        if match is None:
            raise ValueError(error)
        self._pos = match.end()
        return match.group()

    def attribute(self, name: str, error: str) -> float:
        self.expect(f' {name}="', error)
        value = float(self.token(_FLOAT, error))
        self.expect('"', error)
        return value


class MotionState:
    """Measured robot state as reported by the RSI server."""

    def __init__(self, dof: int, gpio_configs: Iterable[GPIOConfiguration] = ()) -> None:
        self.dof = dof
        self.robot_dof, self.external_dof = _split_dof(dof)
        self.measured_positions = [math.nan] * dof
        self.measured_torques = [math.nan] * dof
        self.measured_velocities = [math.nan] * dof
        self.measured_cartesian_positions = [math.nan] * 6
        self.measured_gpio_values = _make_gpio_values(gpio_configs)
        self.ipoc = 0
        self.delay = 0
        self.has_positions = False
        self.has_cartesian_positions = False

    def create_from_xml(self, incoming_xml: str | bytes | None) -> None:
        """Update the state from an RSI message; raise ValueError if it is malformed.

        Values parsed before an error is found are kept.
        """
        if incoming_xml is None:
            raise ValueError("Received XML can not be null")
        if isinstance(incoming_xml, (bytes, bytearray)):
            incoming_xml = bytes(incoming_xml).decode("ascii", errors="replace")
        reader = _Reader(incoming_xml)

        reader.expect('<Rob Type="KUKA">', _DOF_ERROR)
        reader.expect("<RIst", _DOF_ERROR)
        for index, name in enumerate("XYZABC"):
            value = reader.attribute(name, _DOF_ERROR)
            self.measured_cartesian_positions[index] = math.radians(value) if index > 2 else value
        reader.expect("/>", _DOF_ERROR)

        reader.expect("<AIPos", _DOF_ERROR)
        for axis in range(self.robot_dof):
            self.measured_positions[axis] = math.radians(reader.attribute(f"A{axis + 1}", _DOF_ERROR))
        reader.expect("/>", _DOF_ERROR)

        if self.external_dof > 0:
            # All external axes are present even if not all are used; they are linear (mm).
            reader.expect("<EIPos", _DOF_ERROR)
            for axis in range(_MAX_EXTERNAL_AXES):
                value = reader.attribute(f"E{axis + 1}", _DOF_ERROR)
                if axis < self.external_dof:
                    self.measured_positions[self.robot_dof + axis] = value * 0.001
            reader.expect("/>", _DOF_ERROR)

        reader.expect('<Delay D="', _DOF_ERROR + ", Delay node is missing")
        self.delay = int(reader.token(_INTEGER, _DELAY_ERROR))
        reader.expect('"/>', _DOF_ERROR)

        if self.measured_gpio_values:
            reader.expect("<GPIO", _GPIO_ERROR)
            for gpio in self.measured_gpio_values:
                gpio.set_value(reader.attribute(gpio.config.name, _GPIO_ERROR))
            reader.expect("/>", _GPIO_ERROR)

        reader.expect("<IPOC>", _DOF_ERROR + ", IPOC node is missing")
        self.ipoc = int(reader.token(_INTEGER, _IPOC_ERROR))

        self.has_positions = True
        self.has_cartesian_positions = True


class ControlSignal:
    """Joint commands to send to the RSI server, relative to the initial positions."""

    def __init__(self, dof: int, gpio_configs: Iterable[GPIOConfiguration] = ()) -> None:
        self.dof = dof
        self.robot_dof, self.external_dof = _split_dof(dof)
        self.joint_position_values = [0.0] * dof
        self.cartesian_position_values = [0.0] * 6
        self.gpio_values = _make_gpio_values(gpio_configs)
        self._initial_positions = [0.0] * dof
        self._has_initial_positions = False

    @property
    def initial_positions_set(self) -> bool:
        return self._has_initial_positions

    def add_joint_position_values(self, values: Iterable[float]) -> None:
        """Overwrite the leading joint positions (radians, metres for external axes)."""
        for index, value in enumerate(islice(values, self.dof)):
            self.joint_position_values[index] = float(value)

    def set_initial_positions(self, initial_positions: MotionState) -> None:
        self._has_initial_positions = True
        for index, value in enumerate(islice(initial_positions.measured_positions, self.dof)):
            self._initial_positions[index] = value

    def reset(self) -> None:
        self._has_initial_positions = False

    def create_xml_string(self, last_ipoc: int, stop_control: bool = False) -> str:
        """Build the RSI reply; raise ValueError if a GPIO value cannot be encoded."""
        parts = ['<Sen Type="KROSHU">', "<AK"]
        for axis in range(self.robot_dof):
            delta = math.degrees(self.joint_position_values[axis] - self._initial_positions[axis])
            parts.append(f' A{axis + 1}="{f"{delta:.6f}"[:_AXIS_FIELD_WIDTH]}"')
        parts.append("/>")

        if self.external_dof > 0:
            parts.append("<EK")
            for axis in range(self.external_dof):
                index = self.robot_dof + axis
                delta_mm = (self.joint_position_values[index] - self._initial_positions[index]) * 1000.0
                parts.append(f' E{axis + 1}="{f"{delta_mm:.6f}"[:_AXIS_FIELD_WIDTH]}"')
            parts.append("/>")

        parts.append(f"<Stop>{1 if stop_control else 0}</Stop>")

        if self.gpio_values:
            parts.append("<GPIO")
            for gpio in self.gpio_values:
                parts.append(f' {gpio.config.name}="{_format_gpio(gpio)}"')
            parts.append("/>")

        parts.append(f"<IPOC>{int(last_ipoc)}</IPOC></Sen>")
        return "".join(parts)


def _format_gpio(gpio: GPIOValue) -> str:
    value_type = gpio.value_type
    if value_type is GPIOValueType.BOOL:
        flag = gpio.get_bool_value()
        if flag is not None:
            return "1" if flag else "0"
    elif value_type is GPIOValueType.DOUBLE:
        number = gpio.get_double_value()
        if number is not None:
            return f"{number:.6f}"[:_GPIO_DOUBLE_FIELD_WIDTH]
    elif value_type is GPIOValueType.LONG:
        integer = gpio.get_long_value()
        if integer is not None:
            return str(integer)[:_GPIO_LONG_FIELD_WIDTH]
    raise ValueError(f"GPIO {gpio.config.name!r} has no value of a supported type")