import pytest

from bitfetch.byte_tools import calculate_sha1
from bitfetch.torrent_file import load_torrent_file, parse_torrent


def _bstr(value):
    return str(len(value)).encode() + b":" + value


ANNOUNCE = b"http://tracker.example.com/announce"
BACKUP = b"http://backup.example.com/announce"
PIECES = bytes(range(20)) + bytes(range(20, 40)) + b"\x07" * 5
INFO = (
    b"d6:lengthi40000e4:name"
    + _bstr(b"file.bin")
    + b"12:piece lengthi16384e6:pieces"
    + _bstr(PIECES)
    + b"e"
)


def _torrent(with_list=True):
    body = b"d8:announce" + _bstr(ANNOUNCE)
    if with_list:
        body += b"13:announce-listll" + _bstr(ANNOUNCE) + b"el" + _bstr(BACKUP) + b"ee"
    body += b"7:comment" + _bstr(b"test torrent") + b"4:info" + INFO + b"e"
    return body


def test_parse_fields():
    torrent = parse_torrent(_torrent())
    assert torrent.announce == ANNOUNCE.decode()
    assert torrent.comment == "test torrent"
    assert torrent.name == "file.bin"
    assert torrent.length == 40000
    assert torrent.piece_length == 16384


def test_piece_hashes_split_in_twenties():
    torrent = parse_torrent(_torrent())
    assert torrent.piece_hashes == [PIECES[:20], PIECES[20:40], PIECES[40:]]
    assert b"".join(torrent.piece_hashes) == PIECES


def test_info_hash_covers_raw_info():
    assert parse_torrent(_torrent()).info_hash == calculate_sha1(INFO)


def test_announce_list():
    assert parse_torrent(_torrent()).announce_list == [ANNOUNCE.decode(), BACKUP.decode()]


def test_no_announce_list():
    assert parse_torrent(_torrent(with_list=False)).announce_list == []


def test_missing_piece_length():
    data = b"d8:announce" + _bstr(ANNOUNCE) + b"4:infod6:lengthi5e4:name1:xee"
    with pytest.raises(ValueError):
        parse_torrent(data)


def test_load_from_disk(tmp_path):
    path = tmp_path / "sample.torrent"
    path.write_bytes(_torrent())
    assert load_torrent_file(path) == parse_torrent(_torrent())


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_torrent_file(tmp_path / "absent.torrent")