"""Peer wire protocol messages."""

from dataclasses import dataclass
from enum import IntEnum


class MessageId(IntEnum):
    """Message type identifiers of the peer wire protocol."""

    CHOKE = 0
    UNCHOKE = 1
    INTERESTED = 2
    NOT_INTERESTED = 3
    HAVE = 4
    BITFIELD = 5
    REQUEST = 6
    PIECE = 7
    CANCEL = 8
    PORT = 9
    KEEP_ALIVE = 10


@dataclass
class Message:
    """A single peer message: its type, declared length and payload."""

    message_id: MessageId
    length: int
    payload: bytes = b""

    @classmethod
    def parse(cls, data):
        """Build a message from a body read off the wire (without the length prefix)."""
        if not data:
            return cls(MessageId.KEEP_ALIVE, 0, b"")
        return cls(MessageId(data[0]), len(data), bytes(data[1:]))

    @classmethod
    def create(cls, message_id, payload=b""):
        """Build a message of the given type; the length is derived from the payload."""
        if message_id == MessageId.KEEP_ALIVE:
            return cls(MessageId.KEEP_ALIVE, 0, b"")
        return cls(MessageId(message_id), 1 + len(payload), bytes(payload))

    def to_bytes(self):
        """Serialise as ``<length><id><payload>`` with a 4-byte big-endian length."""
        header = self.length.to_bytes(4, "big")
        if self.message_id == MessageId.KEEP_ALIVE:
            return header
        return header + bytes([self.message_id]) + self.payload