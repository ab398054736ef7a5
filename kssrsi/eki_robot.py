"""Robot controlled over RSI, with the RSI program driven through EKI."""

from __future__ import annotations

from kssrsi.configuration import (
    Configuration,
    ControlError,
    ControlMode,
    CycleTime,
    ReturnCode,
    Status,
    UnsupportedOperation,
)
from kssrsi.eki_client import EkiClient
from kssrsi.eki_extension import EventHandler, EventHandlerExtension, StatusUpdateHandler
from kssrsi.rsi_robot import RsiRobot


class EkiRobot(RsiRobot):
    """RSI robot whose RSI program is started and stopped over an EKI connection."""

    def __init__(self, config: Configuration) -> None:
        super().__init__(config)
        self.tcp_client = EkiClient(config.kli_ip_address, config.eki_port)

    def __enter__(self) -> EkiRobot:
        return self

    def setup(self) -> Status:
        """Open the EKI connection and the RSI endpoint.

        Returns a WARN status when no event handler was registered beforehand.
        """
        start_status = self.tcp_client.start()
        try:
            self.endpoint.setup(self.config.client_port)
        except OSError as exc:
            raise ControlError("Setup of RSI UDP endpoint failed") from exc
        return start_status

    def start_controlling(self, control_mode: ControlMode) -> Status:
        return self.tcp_client.start_rsi(control_mode)

    def stop_controlling(self) -> Status:
        """Send the RSI stop signal, then cancel the RSI program."""
        super().stop_controlling()
        return self.tcp_client.stop_rsi()

    def switch_control_mode(self, control_mode: ControlMode) -> Status:
        raise UnsupportedOperation("Changing control modes via EKI is not yet implemented")

    def register_event_handler(self, event_handler: EventHandler) -> Status:
        return self.tcp_client.register_event_handler(event_handler)

    def cancel_rsi_program(self) -> Status:
        return self.tcp_client.stop_rsi()

    def turn_on_drives(self) -> Status:
        return self.tcp_client.turn_on_drives()

    def turn_off_drives(self) -> Status:
        return self.tcp_client.turn_off_drives()

    def set_cycle_time(self, cycle_time: CycleTime) -> Status:
        return self.tcp_client.set_cycle_time(cycle_time)

    def register_event_handler_extension(self, extension: EventHandlerExtension) -> Status:
        return self.tcp_client.register_event_handler_extension(extension)

    def register_status_response_handler(self, handler: StatusUpdateHandler) -> Status:
        return self.tcp_client.register_status_response_handler(handler)

    def close(self) -> None:
        """Cancel a running RSI program and release the connections."""
        try:
            self.tcp_client.close()
        finally:
            super().close()


__all__ = ["EkiRobot", "ReturnCode"]