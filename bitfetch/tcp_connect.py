"""A TCP connection with connect and read timeouts, speaking length-prefixed frames."""

import ipaddress
import socket
import time

from .byte_tools import bytes_to_int

_HEADER_SIZE = 4


class TcpConnect:
    """A TCP connection to one IPv4 endpoint. Timeouts are in seconds."""

    def __init__(self, ip, port, connect_timeout=1.0, read_timeout=3.0):
        self.ip = ip
        self.port = port
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def establish_connection(self):
        """Connect, raising if it takes longer than the connect timeout."""
        try:
            ipaddress.IPv4Address(self.ip)
        except ValueError:
            raise ValueError(f"Invalid IP address: {self.ip}") from None
        self._sock.settimeout(self.connect_timeout)
        try:
            self._sock.connect((self.ip, self.port))
        except TimeoutError:
            raise TimeoutError("Connection timeout") from None
        except OSError as exc:
            raise ConnectionError(f"Connection failed: {exc}") from exc

    def send_data(self, data):
        """Send all of ``data``."""
        self._sock.settimeout(self.read_timeout)
        try:
            self._sock.sendall(data)
        except OSError as exc:
            raise ConnectionError(f"Send error: {exc}") from exc

    def receive_data(self, size=0):
        """Read ``size`` bytes, or a whole frame if ``size`` is 0.

        A frame is a 4-byte big-endian length followed by that many bytes;
        only the bytes after the length are returned.
        """
        if size == 0:
            size = bytes_to_int(self._read_exact(_HEADER_SIZE, "Header"))
        return self._read_exact(size, "Body")

    def close(self):
        """Close the socket; closing twice is harmless."""
        self._sock.close()

    def _read_exact(self, size, what):
        buffer = bytearray()
        deadline = time.monotonic() + self.read_timeout
        while len(buffer) < size:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise TimeoutError(f"{what} read timeout")
            self._sock.settimeout(remaining)
            try:
                chunk = self._sock.recv(size - len(buffer))
            except TimeoutError:
                raise TimeoutError(f"{what} read timeout") from None
            except OSError as exc:
                raise ConnectionError(f"{what} read error: {exc}") from exc
            if not chunk:
                raise ConnectionError("Connection closed")
            buffer.extend(chunk)
        return bytes(buffer)