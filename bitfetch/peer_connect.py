"""Talking to a single peer: handshake, bitfield, and the block request loop."""

import threading
import time

from .byte_tools import bytes_to_int, to_be
from .message import Message, MessageId
from .piece import BlockStatus
from .tcp_connect import TcpConnect

PROTOCOL = b"BitTorrent protocol"
_RESERVED = b"\0" * 8
_HASH_SIZE = 20
_PEER_ID_SIZE = 20


def build_handshake(info_hash, peer_id):
    """Return the handshake message announcing ``info_hash`` and our ``peer_id``."""
    if isinstance(peer_id, str):
        peer_id = peer_id.encode()
    return bytes([len(PROTOCOL)]) + PROTOCOL + _RESERVED + bytes(info_hash) + bytes(peer_id)


class PeerPiecesAvailability:
    """Which pieces a peer has, kept as the bitfield the peer sent."""

    def __init__(self, bitfield=b""):
        self._bitfield = bytearray(bitfield)

    def is_piece_available(self, index):
        """Whether the peer has the piece with the given index."""
        byte_index, bit = divmod(index, 8)
        if byte_index >= len(self._bitfield):
            return False
        return bool(self._bitfield[byte_index] & (0x80 >> bit))

    def set_piece_available(self, index):
        """Mark the piece with the given index as present at the peer."""
        byte_index, bit = divmod(index, 8)
        if byte_index >= len(self._bitfield):
            self._bitfield.extend(bytes(byte_index + 1 - len(self._bitfield)))
        self._bitfield[byte_index] |= 0x80 >> bit

    @property
    def size(self):
        """Number of bits held in the bitfield."""
        return len(self._bitfield) * 8


class PeerConnect:
    """A connection to one peer that downloads pieces into a piece storage."""

    def __init__(self, peer, torrent, self_peer_id, piece_storage,
                 connect_timeout=1.0, read_timeout=3.0, handshake_delay=1.0):
        self.peer = peer
        self.torrent = torrent
        self.self_peer_id = self_peer_id.encode() if isinstance(self_peer_id, str) else bytes(self_peer_id)
        self.piece_storage = piece_storage
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self.handshake_delay = handshake_delay
        self.peer_id = b""
        self.availability = PeerPiecesAvailability()
        self._connection = None
        self._lock = threading.Lock()
        self._terminated = False
        self._failed = False
        self._choked = True
        self._pending_block = False
        self._piece_in_progress = None

    @property
    def failed(self):
        """Whether the connection could not be set up or broke with an error."""
        with self._lock:
            return self._failed

    def run(self):
        """Talk to the peer until terminated; raise RuntimeError if the exchange breaks."""
        try:
            while not self._is_terminated():
                if self._establish_connection():
                    self._failed = False
                    self._choked = True
                    self._pending_block = False
                    try:
                        self._main_loop()
                    except (OSError, RuntimeError, ValueError) as exc:
                        if self._piece_in_progress is not None:
                            self.piece_storage.requeue_piece(self._piece_in_progress)
                        self._piece_in_progress = None
                        self._failed = True
                        self._choked = True
                        self._pending_block = False
                        raise RuntimeError(f"MainLoop error {exc}") from exc
                else:
                    self.terminate()
        finally:
            self._close_connection()

    def terminate(self):
        """Ask the exchange loop to stop."""
        with self._lock:
            self._terminated = True
            self._failed = False

    def _is_terminated(self):
        with self._lock:
            return self._terminated

    def _close_connection(self):
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def _establish_connection(self):
        try:
            self._perform_handshake()
            self._receive_bitfield()
            self._send_interested()
        except (OSError, RuntimeError, ValueError):
            self._failed = True
            return False
        return True

    def _perform_handshake(self):
        self._close_connection()
        self._connection = TcpConnect(
            self.peer.ip, self.peer.port, self.connect_timeout, self.read_timeout
        )
        self._connection.establish_connection()
        self._connection.send_data(build_handshake(self.torrent.info_hash, self.self_peer_id))
        time.sleep(self.handshake_delay)
        protocol_size = self._connection.receive_data(1)[0]
        protocol = self._connection.receive_data(protocol_size) if protocol_size else b""
        if protocol != PROTOCOL:
            raise RuntimeError(f"bad protocol: {protocol!r}")
        self._connection.receive_data(len(_RESERVED))
        if self._connection.receive_data(_HASH_SIZE) != self.torrent.info_hash:
            raise RuntimeError("Info hash mismatch")
        self.peer_id = self._connection.receive_data(_PEER_ID_SIZE)

    def _receive_message(self):
        body = self._connection.receive_data()
        try:
            return Message.parse(body)
        except ValueError:
            return None

    def _receive_bitfield(self):
        message = self._receive_message()
        if message is None:
            return
        if message.message_id == MessageId.BITFIELD:
            self.availability = PeerPiecesAvailability(message.payload)
        elif message.message_id == MessageId.UNCHOKE:
            self._choked = False

    def _send_interested(self):
        self._connection.send_data(Message.create(MessageId.INTERESTED).to_bytes())

    def _request_piece(self):
        if self._piece_in_progress is None:
            self._piece_in_progress = self.piece_storage.next_piece_to_download()
            if self._piece_in_progress is None:
                self.terminate()
                return
        block = self._piece_in_progress.first_missing_block()
        payload = to_be(self._piece_in_progress.index) + to_be(block.offset) + to_be(block.length)
        self._connection.send_data(Message.create(MessageId.REQUEST, payload).to_bytes())
        block.status = BlockStatus.PENDING
        self._pending_block = True

    def _main_loop(self):
        while not self._is_terminated():
            if not self._choked and not self._pending_block:
                self._request_piece()
            if self._is_terminated():
                return
            message = self._receive_message()
            if message is None:
                continue
            kind = message.message_id
            if kind == MessageId.HAVE:
                self.availability.set_piece_available(bytes_to_int(message.payload))
            elif kind == MessageId.PIECE:
                self._handle_block(message.payload)
            elif kind == MessageId.CHOKE:
                self._choked = True
            elif kind == MessageId.UNCHOKE:
                self._choked = False

    def _handle_block(self, payload):
        piece = self._piece_in_progress
        if piece is None:
            raise RuntimeError("Received a block that was not requested")
        offset = bytes_to_int(payload[4:8])
        piece.save_block(offset, payload[8:])
        if piece.all_blocks_retrieved():
            self.piece_storage.piece_processed(piece)
            self._piece_in_progress = None
        self._pending_block = False