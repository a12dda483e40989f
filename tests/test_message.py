import pytest

from bitfetch.byte_tools import bytes_to_int, to_be
from bitfetch.message import Message, MessageId


def test_interested_wire_bytes():
    assert Message.create(MessageId.INTERESTED, b"").to_bytes() == b"\x00\x00\x00\x01\x02"


def test_keep_alive_wire_bytes():
    assert Message.create(MessageId.KEEP_ALIVE, b"ignored").to_bytes() == b"\x00\x00\x00\x00"


def test_create_keep_alive_drops_payload():
    message = Message.create(MessageId.KEEP_ALIVE, b"data")
    assert message.length == 0
    assert message.payload == b""


def test_request_layout():
    payload = to_be(3) + to_be(0) + to_be(16384)
    wire = Message.create(MessageId.REQUEST, payload).to_bytes()
    assert bytes_to_int(wire) == 1 + len(payload)
    assert wire[4] == MessageId.REQUEST
    assert wire[5:] == payload


def test_parse_empty_is_keep_alive():
    message = Message.parse(b"")
    assert message.message_id is MessageId.KEEP_ALIVE
    assert message.length == 0
    assert message.payload == b""


def test_parse_id_only():
    message = Message.parse(bytes([MessageId.UNCHOKE]))
    assert message.message_id is MessageId.UNCHOKE
    assert message.length == 1
    assert message.payload == b""


@pytest.mark.parametrize("message_id", [MessageId.HAVE, MessageId.PIECE, MessageId.BITFIELD])
def test_roundtrip(message_id):
    original = Message.create(message_id, b"\x01\x02\x03\x04payload")
    parsed = Message.parse(original.to_bytes()[4:])
    assert parsed == original


def test_parse_unknown_id():
    with pytest.raises(ValueError):
        Message.parse(b"\x63abc")