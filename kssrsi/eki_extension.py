"""Data and handler interfaces used by the EKI connection."""

from __future__ import annotations

import abc
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Optional

from kssrsi.configuration import ControlMode, CycleTime, OperationMode

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _to_uint8(text: str, name: str) -> int:
    match = _LEADING_INT.match(text)
    if match is None:
        raise ValueError(f"Attribute {name} is not a number: {text!r}")
    return int(match.group(1)) & 0xFF


class EventHandler:
    """Receives events of the external control session.

    The default handler remembers the latest event of each kind, so a caller
    can inspect what the controller last reported.
    """

    sampling: bool = False
    last_stop_reason: Optional[str] = None
    last_error: Optional[str] = None
    last_control_mode_switch: Optional[str] = None

    def on_sampling(self) -> None:
        """Called when the RSI program has started sampling."""
        self.sampling = True

    def on_stopped(self, reason: str) -> None:
        """Called when the RSI program has stopped or was cancelled."""
        self.sampling = False
        self.last_stop_reason = reason

    def on_error(self, reason: str) -> None:
        """Called when the controller reports an error."""
        self.last_error = reason

    def on_control_mode_switch(self, reason: str) -> None:
        """Called when the control mode was switched."""
        self.last_control_mode_switch = reason


@dataclass
class InitializationData:
    """Data sent by the EKI server when the connection is made."""

    semantic_version: str = ""
    num_axes: int = 0
    num_external_axes: int = 0
    model_name: str = ""
    hw_version: str = ""
    sw_version: str = ""

    def parse(self, data: str | bytes) -> None:
        """Fill the fields from an init message; raise ValueError if it is malformed."""
        if isinstance(data, (bytes, bytearray)):
            data = bytes(data).decode("utf-8", errors="replace")
        data = data.split("\0", 1)[0]
        try:
            root = ET.fromstring(data)
        except ET.ParseError as exc:
            raise ValueError(f"Malformed initialization message: {exc}") from exc
        init = root.find("Init")
        if init is None:
            raise ValueError("Initialization message has no Init element")

        def attribute(name: str) -> str:
            value = init.get(name)
            if value is None:
                raise ValueError(f"Initialization message has no {name} attribute")
            return value

        semantic_version = attribute("VER")
        num_axes = _to_uint8(attribute("NumAxes"), "NumAxes")
        num_external_axes = _to_uint8(attribute("NumExternalAxes"), "NumExternalAxes")
        model_name = attribute("Model")
        # Hardware and software versions are separated by a slash.
        rob_ver = attribute("RobVer")
        hw_version, sep, sw_version = rob_ver.partition("/")
        if not sep:
            sw_version = rob_ver

        self.semantic_version = semantic_version
        self.num_axes = num_axes
        self.num_external_axes = num_external_axes
        self.model_name = model_name
        self.hw_version = hw_version
        self.sw_version = sw_version

    @property
    def total_axis_count(self) -> int:
        return (self.num_axes + self.num_external_axes) & 0xFF


@dataclass
class StatusUpdate:
    """Status report sent periodically by the EKI server."""

    control_mode: ControlMode = ControlMode.UNSPECIFIED
    cycle_time: CycleTime = CycleTime.UNSPECIFIED
    drives_powered: bool = False
    emergency_stop: bool = False
    guard_stop: bool = False
    in_motion: bool = False
    motion_possible: bool = False
    operation_mode: OperationMode = OperationMode.UNSPECIFIED
    robot_stopped: bool = False

    def reset(self) -> None:
        self.control_mode = ControlMode.UNSPECIFIED
        self.cycle_time = CycleTime.UNSPECIFIED
        self.drives_powered = False
        self.emergency_stop = False
        self.guard_stop = False
        self.in_motion = False
        self.motion_possible = False
        self.operation_mode = OperationMode.UNSPECIFIED
        self.robot_stopped = False


class EventHandlerExtension(abc.ABC):
    """Receives the initialization data once the EKI connection is made."""

    @abc.abstractmethod
    def on_connected(self, init_data: InitializationData) -> None:
        """Called with the data the server sent on connection."""


class StatusUpdateHandler(abc.ABC):
    """Receives the status reports of the EKI server."""

    @abc.abstractmethod
    def on_status_update_received(self, status: StatusUpdate) -> None:
        """Called with each received status report."""