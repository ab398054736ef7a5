"""Robot facade choosing the interface installed on the controller."""

from __future__ import annotations

from collections.abc import Callable

from kssrsi.configuration import (
    Configuration,
    ControlMode,
    InstalledInterface,
    Status,
)
from kssrsi.eki_extension import EventHandler
from kssrsi.eki_robot import EkiRobot
from kssrsi.message_builder import ControlSignal, MotionState
from kssrsi.rsi_robot import RsiRobot


class Robot:
    """KSS robot driven through the interface named in the configuration."""

    def __init__(self, config: Configuration) -> None:
        interface = config.installed_interface
        if interface is InstalledInterface.EKI_RSI:
            self._interface: RsiRobot = EkiRobot(config)
        elif interface is InstalledInterface.RSI_ONLY:
            self._interface = RsiRobot(config)
        else:
            raise ValueError(
                "Configuration contains invalid interface, please choose between EKI or plain RSI."
            )

    def __enter__(self) -> Robot:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def interface(self) -> RsiRobot:
        return self._interface

    @property
    def control_signal(self) -> ControlSignal:
        return self._interface.control_signal

    @property
    def last_motion_state(self) -> MotionState:
        return self._interface.last_motion_state

    def setup(self) -> Status:
        return self._interface.setup()

    def start_controlling(self, control_mode: ControlMode) -> Status:
        return self._interface.start_controlling(control_mode)

    def start_monitoring(self) -> Status:
        return self._interface.start_monitoring()

    def stop_controlling(self) -> Status:
        return self._interface.stop_controlling()

    def stop_monitoring(self) -> Status:
        return self._interface.stop_monitoring()

    def create_monitoring_subscription(self, callback: Callable[[MotionState], None]) -> Status:
        return self._interface.create_monitoring_subscription(callback)

    def cancel_monitoring_subscription(self) -> Status:
        return self._interface.cancel_monitoring_subscription()

    def has_monitoring_subscription(self) -> bool:
        return self._interface.has_monitoring_subscription()

    def send_control_signal(self) -> Status:
        return self._interface.send_control_signal()

    def receive_motion_state(self, timeout: float | None) -> Status:
        return self._interface.receive_motion_state(timeout)

    def switch_control_mode(self, control_mode: ControlMode) -> Status:
        return self._interface.switch_control_mode(control_mode)

    def register_event_handler(self, event_handler: EventHandler) -> Status:
        return self._interface.register_event_handler(event_handler)

    def close(self) -> None:
        self._interface.close()