"""UDP endpoint answering the RSI requests of the robot controller."""

from __future__ import annotations

import socket

from kssrsi.configuration import ControlError


class Endpoint:
    """Receives RSI requests over UDP and replies to the sender of the last one."""

    BUFFER_SIZE = 1024

    def __init__(self) -> None:
        self._socket: socket.socket | None = None
        self._peer: tuple[str, int] | None = None
        self.received_message = ""

    def __enter__(self) -> Endpoint:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def local_address(self) -> tuple[str, int]:
        return self._require_socket().getsockname()

    def _require_socket(self) -> socket.socket:
        if self._socket is None:
            raise ControlError("Endpoint is not set up")
        return self._socket

    def setup(self, local_udp_port: int) -> None:
        """Bind the endpoint to the given local UDP port; raise OSError on failure."""
        self.close()
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.bind(("", local_udp_port))
        except OSError:
            sock.close()
            raise
        self._socket = sock
        self._peer = None
        self.received_message = ""

    def receive_or_timeout(self, timeout: float | None) -> str:
        """Wait for a request and return its text.

        A timeout of None or below zero waits indefinitely; TimeoutError is raised
        when nothing arrives in time.
        """
        sock = self._require_socket()
        sock.settimeout(None if timeout is None or timeout < 0 else timeout)
        try:
            data, peer = sock.recvfrom(self.BUFFER_SIZE)
        except TimeoutError:
            raise TimeoutError("No RSI request arrived in time") from None
        self._peer = peer
        self.received_message = data.split(b"\0", 1)[0].decode("latin-1")
        return self.received_message

    def message_send(self, send_msg: str | bytes) -> None:
        """Reply to the active request; raise ControlError if there is none."""
        sock = self._require_socket()
        if self._peer is None:
            raise ControlError("No active request to reply to")
        data = send_msg.encode("latin-1") if isinstance(send_msg, str) else bytes(send_msg)
        sock.sendto(data, self._peer)
        self._peer = None

    def is_request_active(self) -> bool:
        return self._peer is not None

    def _empty_buffer(self) -> None:
        sock = self._require_socket()
        sock.setblocking(False)
        try:
            while True:
                try:
                    sock.recvfrom(self.BUFFER_SIZE)
                except BlockingIOError:
                    return
        finally:
            sock.setblocking(True)

    def reset(self) -> None:
        """Drop all pending requests and forget the active one."""
        self._empty_buffer()
        self._peer = None

    def close(self) -> None:
        if self._socket is not None:
            self._socket.close()
        self._socket = None
        self._peer = None