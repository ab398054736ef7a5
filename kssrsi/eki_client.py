"""TCP client for the EKI service that starts and supervises RSI programs."""

from __future__ import annotations

import enum
import re
import socket
import threading
import xml.etree.ElementTree as ET
from dataclasses import dataclass

from kssrsi.configuration import (
    ControlError,
    ControlMode,
    CycleTime,
    OperationMode,
    ReturnCode,
    Status,
)
from kssrsi.eki_extension import (
    EventHandler,
    EventHandlerExtension,
    InitializationData,
    StatusUpdate,
    StatusUpdateHandler,
)

RECV_BUFFER_SIZE = 4096
SEND_BUFFER_SIZE = 4096
SEMANTIC_VERSION = "1.0.0"
RESPONSE_TIMEOUT = 4.0
_MESSAGE_LIMIT = 127

_OPENING_TAG = b"<Robot>"
_CLOSING_TAG = b"</Robot>"

_EVENT_PATTERN = re.compile(r'<Robot><Response\s+EventID="\s*([+-]?\d+)">([^<]*)')
_STATUS_FIELDS = (
    "ControlMode",
    "CycleTime",
    "DrivesPowered",
    "EmergencyStop",
    "GuardStop",
    "InMotion",
    "MotionPossible",
    "OperationMode",
    "RobotStopped",
)
_STATUS_PATTERN = re.compile(
    r"<Robot><Status"
    + "".join(rf'\s+{name}="\s*\+?(\d+)"' for name in _STATUS_FIELDS)
)


class CommandType(enum.IntEnum):
    """Request types understood by the EKI server."""

    CONNECT = 0
    START = 1
    RESET = 2
    CANCEL = 3
    CHANGE = 4
    CMD_NONE = 5
    DRIVES_ON = 6
    DRIVES_OFF = 7
    CHANGE_CYCLE_TIME = 8


class EventType(enum.IntEnum):
    """Events reported by the EKI server."""

    STARTED = 0
    STOPPED = 1
    CANCELLED = 2
    RESET_OK = 3
    ERROR = 4
    CONNECTED = 5
    SWITCH_OK = 6
    INVALID = 7
    NONE = 8
    DRIVES_TURNED_ON = 9
    DRIVES_TURNED_OFF = 10
    CYCLE_TIME_CHANGED = 11
    STATUS = 12


@dataclass
class EventResponse:
    """The last event received from the server."""

    event_type: EventType = EventType.NONE
    message: str = ""


def _leading_uint8(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    if match is None:
        raise ValueError(f"Version component is not a number: {text!r}")
    return int(match.group(1)) & 0xFF


def extract_version_numbers(version: str) -> tuple[int, int, int]:
    """Return the numbers of a dotted version; only components followed by a dot count."""
    numbers = [0, 0, 0]
    components = version.split(".")[:-1]
    for index, component in enumerate(components[:3]):
        numbers[index] = _leading_uint8(component)
    return numbers[0], numbers[1], numbers[2]


def _to_enum(cls: type[enum.IntEnum], value: int, name: str) -> enum.IntEnum:
    try:
        return cls(value)
    except ValueError:
        raise ValueError(f"Status field {name} has unknown value {value}") from None


class EkiClient:
    """Connection to the EKI server of the robot controller.

    Requests block until the server answers; failures raise ControlError, and a
    missing answer raises ControlError with return code TIMEOUT.
    """

    def __init__(
        self,
        server_address: str,
        server_port: int,
        response_timeout: float = RESPONSE_TIMEOUT,
    ) -> None:
        self.server_address = server_address
        self.server_port = server_port
        self.response_timeout = response_timeout

        self.init_data = InitializationData()
        self.status_update = StatusUpdate()
        self.last_event = EventResponse()

        self._socket: socket.socket | None = None
        self._receiver: threading.Thread | None = None
        self._request_lock = threading.Lock()
        self._response_cv = threading.Condition()
        self._request_active = False
        self._rsi_running = False

        self._handler_lock = threading.Lock()
        self._event_handler: EventHandler = EventHandler()
        self._event_handler_set = False
        self._extension: EventHandlerExtension | None = None
        self._status_handler: StatusUpdateHandler | None = None

    def __enter__(self) -> EkiClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def rsi_running(self) -> bool:
        return self._rsi_running

    # Session control

    def start(self) -> Status:
        """Connect to the server and send the connect request.

        Returns a WARN status when no event handler has been registered.
        """
        if self._socket is None:
            try:
                sock = socket.create_connection((self.server_address, self.server_port))
            except OSError as exc:
                raise ControlError(f"Setup failed: {exc}") from exc
            sock.settimeout(None)
            self._socket = sock
        if self._receiver is None or not self._receiver.is_alive():
            self._receiver = threading.Thread(
                target=self._receive_loop, name="eki-receiver", daemon=True
            )
            self._receiver.start()

        self._send_command(CommandType.CONNECT)
        if self._event_handler_set:
            return Status(ReturnCode.OK, "EKI communication started")
        return Status(ReturnCode.WARN, "EKI communication started but default event handler used")

    def start_rsi(self, control_mode: ControlMode) -> Status:
        self._send_and_wait(
            f'<External REQTYPE="4" ControlMode="{int(control_mode)}"></External>'
        )
        self._send_command(CommandType.START)
        self._rsi_running = True
        return Status(ReturnCode.OK, "RSI started")

    def stop_rsi(self) -> Status:
        if not self._rsi_running:
            return Status(ReturnCode.WARN, "RSI already stopped")
        self._send_command(CommandType.CANCEL)
        self._rsi_running = False
        return Status(ReturnCode.OK, "RSI stopped")

    def turn_on_drives(self) -> Status:
        return self._send_command(CommandType.DRIVES_ON)

    def turn_off_drives(self) -> Status:
        return self._send_command(CommandType.DRIVES_OFF)

    def set_cycle_time(self, cycle_time: CycleTime) -> Status:
        return self._send_and_wait(
            f'<External REQTYPE="8" CycleTime="{int(cycle_time)}"></External>'
        )

    # Handlers

    def register_event_handler(self, event_handler: EventHandler) -> Status:
        if event_handler is None:
            raise ControlError("RegisterEventHandler failed: please provide a valid handler.")
        with self._handler_lock:
            self._event_handler = event_handler
            self._event_handler_set = True
        return Status(ReturnCode.OK)

    def register_event_handler_extension(self, extension: EventHandlerExtension) -> Status:
        if extension is None:
            raise ControlError(
                "RegisterEventHandlerExtension failed: please provide a valid handler"
            )
        with self._handler_lock:
            self._extension = extension
        return Status(ReturnCode.OK)

    def register_status_response_handler(self, handler: StatusUpdateHandler) -> Status:
        if handler is None:
            raise ControlError(
                "RegisterStatusResponseHandler failed: please provide a valid handler"
            )
        with self._handler_lock:
            self._status_handler = handler
        return Status(ReturnCode.OK)

    # Incoming messages

    def dissect(self, data: bytes) -> int | None:
        """Parse the first complete message in data and return how many bytes it used.

        Returns None while the message is still incomplete; raises ValueError if the
        data is not a valid server message.
        """
        data = bytes(data)
        stripped = data.lstrip()
        offset = len(data) - len(stripped)
        if len(stripped) < len(_OPENING_TAG):
            if _OPENING_TAG.startswith(stripped):
                return None
            raise ValueError("Message does not start with <Robot>")
        if not stripped.startswith(_OPENING_TAG):
            raise ValueError("Message does not start with <Robot>")
        end = stripped.find(_CLOSING_TAG)
        if end < 0:
            if len(stripped) > RECV_BUFFER_SIZE:
                raise ValueError("Message exceeds the receive buffer")
            return None
        end += len(_CLOSING_TAG)
        self.parse_message(stripped[:end])
        return offset + end

    def parse_message(self, data: str | bytes) -> EventResponse:
        """Parse an init, status or event message and return the resulting event.

        Raises ValueError if the message cannot be parsed.
        """
        if isinstance(data, (bytes, bytearray)):
            data = bytes(data).decode("utf-8", errors="replace")
        text = data.split("\0", 1)[0]
        try:
            root = ET.fromstring(text)
        except ET.ParseError as exc:
            raise ValueError(f"Malformed server message: {exc}") from exc

        if root.find("Init") is not None:
            self._parse_init(text)
        elif root.find("Status") is not None:
            self._parse_status(text)
        else:
            self._parse_event(text)
        return self.last_event

    def is_compatible_with_server(self) -> bool:
        server_major = extract_version_numbers(self.init_data.semantic_version)[0]
        client_major = extract_version_numbers(SEMANTIC_VERSION)[0]
        return server_major == client_major

    def _parse_init(self, text: str) -> None:
        self.last_event = EventResponse(EventType.CONNECTED)
        self.init_data.parse(text)
        if not self.is_compatible_with_server():
            self._tear_down()
            self.last_event = EventResponse(
                EventType.ERROR,
                f"The server ({self.init_data.semantic_version}) and client "
                f"({SEMANTIC_VERSION}) versions are not compatible",
            )

    def _parse_event(self, text: str) -> None:
        self.last_event = EventResponse()
        match = _EVENT_PATTERN.match(text)
        if match is None:
            raise ValueError("Event message has no valid EventID")
        event_id = int(match.group(1))
        try:
            event_type = EventType(event_id)
        except ValueError:
            event_type = EventType.INVALID
        self.last_event = EventResponse(event_type, match.group(2)[:_MESSAGE_LIMIT])

    def _parse_status(self, text: str) -> None:
        self.last_event = EventResponse(EventType.STATUS)
        self.status_update.reset()
        match = _STATUS_PATTERN.match(text)
        if match is None:
            raise ValueError("Status message does not hold all fields")
        values = [int(group) & 0xFF for group in match.groups()]
        (control_mode, cycle_time, drives_powered, emergency_stop, guard_stop,
         in_motion, motion_possible, operation_mode, robot_stopped) = values
        status = self.status_update
        status.control_mode = _to_enum(ControlMode, control_mode, "ControlMode")
        status.cycle_time = _to_enum(CycleTime, cycle_time, "CycleTime")
        status.drives_powered = drives_powered != 0
        status.emergency_stop = emergency_stop != 0
        status.guard_stop = guard_stop != 0
        status.in_motion = in_motion != 0
        status.motion_possible = motion_possible != 0
        status.operation_mode = _to_enum(OperationMode, operation_mode, "OperationMode")
        status.robot_stopped = robot_stopped != 0

    def _handle_event(self, event: EventResponse) -> None:
        with self._handler_lock:
            handler = self._event_handler
            kind = event.event_type
            if kind is EventType.STARTED:
                handler.on_sampling()
            elif kind is EventType.STOPPED:
                handler.on_stopped("RSI program stopped")
            elif kind is EventType.CANCELLED:
                handler.on_stopped("RSI program cancelled")
            elif kind is EventType.ERROR:
                handler.on_error(event.message)
            elif kind is EventType.SWITCH_OK:
                handler.on_control_mode_switch(event.message)
            elif kind is EventType.CONNECTED:
                if self._extension is not None:
                    self._extension.on_connected(self.init_data)
            elif kind is EventType.STATUS:
                if self._status_handler is not None:
                    self._status_handler.on_status_update_received(self.status_update)

    def _receive_loop(self) -> None:
        sock = self._socket
        if sock is None:
            return
        buffer = b""
        while True:
            try:
                chunk = sock.recv(RECV_BUFFER_SIZE)
            except OSError:
                return
            if not chunk:
                return
            buffer += chunk
            while buffer:
                try:
                    consumed = self.dissect(buffer)
                except ValueError:
                    buffer = b""
                    break
                if consumed is None:
                    break
                buffer = buffer[consumed:]
                event = self.last_event
                self._handle_event(event)
                # Status reports arrive unrequested and never answer a request.
                if event.event_type is EventType.STATUS:
                    continue
                with self._response_cv:
                    if self._request_active:
                        self._request_active = False
                        self._response_cv.notify_all()

    # Outgoing requests

    def _send_command(self, command: CommandType) -> Status:
        return self._send_and_wait(f'<External REQTYPE="{int(command)}"></External>')

    def _send_and_wait(self, message: str) -> Status:
        sock = self._socket
        if sock is None:
            raise ControlError("Sending message failed")
        payload = message.encode("ascii").ljust(SEND_BUFFER_SIZE, b"\0")
        with self._request_lock:
            with self._response_cv:
                self._request_active = True
            try:
                sock.sendall(payload)
            except OSError as exc:
                with self._response_cv:
                    self._request_active = False
                raise ControlError("Sending message failed") from exc
            with self._response_cv:
                answered = self._response_cv.wait_for(
                    lambda: not self._request_active, self.response_timeout
                )
                if not answered:
                    self._request_active = False
        if not answered:
            raise ControlError("Request sent but response timeouted", ReturnCode.TIMEOUT)
        return Status(ReturnCode.OK, "Request sent and response arrived")

    # Shutdown

    def _tear_down(self) -> None:
        # The receiver thread cannot wait for its own answer.
        if threading.current_thread() is not self._receiver:
            try:
                self.stop_rsi()
            except ControlError:
                pass
        if self._socket is not None:
            try:
                self._socket.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass

    def close(self) -> None:
        """Cancel a running RSI program and close the connection."""
        self._tear_down()
        receiver = self._receiver
        if receiver is not None and receiver is not threading.current_thread():
            receiver.join()
        self._receiver = None
        if self._socket is not None:
            self._socket.close()
        self._socket = None