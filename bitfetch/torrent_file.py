"""Loading the metadata of a single-file .torrent."""

from dataclasses import dataclass, field
from pathlib import Path

from .bencode import find_in_torrent, parse_announce_list
from .byte_tools import calculate_sha1

_HASH_SIZE = 20


@dataclass
class TorrentFile:
    """Metadata of a single-file torrent."""

    announce: str = ""
    comment: str = ""
    piece_hashes: list = field(default_factory=list)
    piece_length: int = 0
    length: int = 0
    name: str = ""
    info_hash: bytes = b""
    announce_list: list = field(default_factory=list)


def _text(data, key):
    return find_in_torrent(data, key).decode("utf-8", errors="replace")


def _integer(data, key):
    raw = find_in_torrent(data, key)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"torrent has no valid {key!r} field") from None


def parse_torrent(data):
    """Parse the bytes of a .torrent file."""
    hashes = find_in_torrent(data, "pieces")
    announce_list = find_in_torrent(data, "announce-list")
    return TorrentFile(
        announce=_text(data, "announce"),
        comment=_text(data, "comment"),
        piece_length=_integer(data, "piece length"),
        length=_integer(data, "length"),
        name=_text(data, "name"),
        piece_hashes=[
            hashes[start:start + _HASH_SIZE]
            for start in range(0, len(hashes), _HASH_SIZE)
        ],
        info_hash=calculate_sha1(find_in_torrent(data, "info")),
        announce_list=parse_announce_list(announce_list) if announce_list else [],
    )


def load_torrent_file(filename):
    """Read and parse a .torrent file from disk."""
    return parse_torrent(Path(filename).read_bytes())