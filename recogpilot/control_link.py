"""UDP link to the vehicle control computer with a background receiver."""

from __future__ import annotations

import socket
import struct
import threading
from dataclasses import dataclass
from typing import ClassVar

CONTROL_COM_IP = ""
CONTROL_COM_PORT = 1

_RECV = struct.Struct("<b3xf")
_SEND = struct.Struct("<b3xff")


def _pack(layout: struct.Struct, *values: object) -> bytes:
    try:
        return layout.pack(*values)
    except struct.error as exc:
        raise ValueError(str(exc)) from exc


def _check_size(data: bytes, size: int) -> None:
    if len(data) < size:
        raise ValueError(f"packet needs {size} bytes, got {len(data)}")


@dataclass(frozen=True)
class RecvPacket:
    """Flag and global steering angle sent by the control computer."""

    flag: int = 0
    global_steer: float = 0.0

    SIZE: ClassVar[int] = _RECV.size

    def pack(self) -> bytes:
        return _pack(_RECV, self.flag, self.global_steer)

    @staticmethod
    def unpack(data: bytes) -> RecvPacket:
        _check_size(data, RecvPacket.SIZE)
        flag, steer = _RECV.unpack_from(data)
        return RecvPacket(flag, steer)


@dataclass(frozen=True)
class SendPacket:
    """Flag and two values sent to the control computer."""

    flag: int = 0
    data1: float = 0.0
    data2: float = 0.0

    SIZE: ClassVar[int] = _SEND.size

    def pack(self) -> bytes:
        return _pack(_SEND, self.flag, self.data1, self.data2)

    @staticmethod
    def unpack(data: bytes) -> SendPacket:
        _check_size(data, SendPacket.SIZE)
        flag, first, second = _SEND.unpack_from(data)
        return SendPacket(flag, first, second)


class ControlLink:
    """UDP client that sends packets and keeps the latest packet received."""

    def __init__(
        self,
        host: str = CONTROL_COM_IP,
        port: int = CONTROL_COM_PORT,
        timeout: float = 0.1,
    ) -> None:
        if timeout is None or timeout <= 0:
            raise ValueError("timeout must be positive")
        self._address = (host, port)
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            self._sock.bind(("", 0))
            self._sock.settimeout(timeout)
        except OSError:
            self._sock.close()
            raise
        self._lock = threading.Lock()
        self._latest: RecvPacket | None = None
        self._running = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def local_address(self) -> tuple[str, int]:
        """Address the link receives on."""
        return self._sock.getsockname()

    @property
    def running(self) -> bool:
        """Whether the receiver thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start receiving in the background."""
        if self._thread is not None:
            raise RuntimeError("receiver already started")
        self._running.set()
        self._thread = threading.Thread(target=self._receive_loop, daemon=True)
        self._thread.start()

    def _receive_loop(self) -> None:
        while self._running.is_set():
            try:
                data = self._sock.recv(65535)
            except TimeoutError:
                continue
            except ConnectionResetError:
                continue
            except OSError:
                break
            if len(data) < RecvPacket.SIZE:
                continue
            packet = RecvPacket.unpack(data)
            with self._lock:
                self._latest = packet

    def send(self, packet: SendPacket) -> int:
        """Send a packet to the control computer; returns the bytes sent."""
        return self._sock.sendto(packet.pack(), self._address)

    def latest(self) -> RecvPacket | None:
        """The most recent packet received, or None before the first."""
        with self._lock:
            return self._latest

    def close(self) -> None:
        """Stop the receiver and close the socket."""
        self._running.clear()
        if self._thread is not None:
            self._thread.join()
        self._sock.close()

    def __enter__(self) -> ControlLink:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()