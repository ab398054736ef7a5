"""Robot controlled over plain RSI."""

from __future__ import annotations

from collections.abc import Callable

from kssrsi.configuration import (
    Configuration,
    ControlError,
    ControlMode,
    ReturnCode,
    Status,
    UnsupportedOperation,
)
from kssrsi.eki_extension import EventHandler
from kssrsi.message_builder import ControlSignal, MotionState
from kssrsi.rsi_endpoint import Endpoint

_UNSUPPORTED = "Not supported by plain RSI"
STOP_RECEIVE_TIMEOUT = 0.040


class RsiRobot:
    """Exchanges motion states and control signals with the controller over RSI.

    Failures raise ControlError; operations plain RSI cannot do raise UnsupportedOperation.
    """

    def __init__(self, config: Configuration) -> None:
        self.config = config
        self.last_motion_state = MotionState(config.dof, config.gpio_state_configs)
        self.initial_motion_state = MotionState(config.dof, config.gpio_state_configs)
        self.control_signal = ControlSignal(config.dof, config.gpio_command_configs)
        self.last_ipoc = 0
        self.endpoint = Endpoint()

    def __enter__(self) -> RsiRobot:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def setup(self) -> Status:
        try:
            self.endpoint.setup(self.config.client_port)
        except OSError as exc:
            raise ControlError("Setup of RSI UDP endpoint failed") from exc
        return Status(ReturnCode.OK, "Necessary network setup succeeded")

    def start_controlling(self, control_mode: ControlMode) -> Status:
        raise UnsupportedOperation(_UNSUPPORTED)

    def start_monitoring(self) -> Status:
        raise UnsupportedOperation(_UNSUPPORTED)

    def stop_controlling(self) -> Status:
        """Send the stop signal, then reset the endpoint and the control signal."""
        if not self.endpoint.is_request_active():
            try:
                self.receive_motion_state(STOP_RECEIVE_TIMEOUT)
            except ControlError as exc:
                raise ControlError("Failed to receive before sending stop signal") from exc

        failure = None
        try:
            try:
                message = self.control_signal.create_xml_string(self.last_ipoc, True)
            except ValueError:
                failure = "Parsing last control signal to proper XML format failed"
            else:
                try:
                    self.endpoint.message_send(message)
                except (OSError, ControlError):
                    failure = "Sending last RSI stop command failed - cancelling RSI program"
        finally:
            self.endpoint.reset()
            self.control_signal.reset()
        if failure is not None:
            raise ControlError(failure)
        return Status(ReturnCode.OK, "")

    def stop_monitoring(self) -> Status:
        raise UnsupportedOperation(_UNSUPPORTED)

    def create_monitoring_subscription(self, callback: Callable[[MotionState], None]) -> Status:
        raise UnsupportedOperation(_UNSUPPORTED)

    def cancel_monitoring_subscription(self) -> Status:
        raise UnsupportedOperation(_UNSUPPORTED)

    def has_monitoring_subscription(self) -> bool:
        return False

    def send_control_signal(self) -> Status:
        if not self.control_signal.initial_positions_set:
            raise ControlError(
                "Control signal not initialized, please call receive_motion_state() first"
            )
        try:
            message = self.control_signal.create_xml_string(self.last_ipoc, False)
        except ValueError as exc:
            raise ControlError("Parsing control signal to proper XML format failed") from exc
        try:
            self.endpoint.message_send(message)
        except (OSError, ControlError) as exc:
            raise ControlError("Sending RSI control signal failed") from exc
        return Status(ReturnCode.OK, "Sent RSI control signal")

    def receive_motion_state(self, timeout: float | None) -> Status:
        """Wait up to timeout seconds for a motion state and parse it.

        ValueError is raised if the received message is malformed.
        """
        try:
            message = self.endpoint.receive_or_timeout(timeout)
        except (OSError, ControlError) as exc:
            raise ControlError("Receiving RSI state failed") from exc

        if not self.control_signal.initial_positions_set:
            self.initial_motion_state.create_from_xml(message)
            self.control_signal.set_initial_positions(self.initial_motion_state)

        self.last_motion_state.create_from_xml(message)
        self.last_ipoc = self.last_motion_state.ipoc
        return Status(ReturnCode.OK, "Parsed incoming RSI server message")

    def switch_control_mode(self, control_mode: ControlMode) -> Status:
        raise UnsupportedOperation(_UNSUPPORTED)

    def register_event_handler(self, event_handler: EventHandler) -> Status:
        raise UnsupportedOperation(_UNSUPPORTED)

    def close(self) -> None:
        self.endpoint.close()