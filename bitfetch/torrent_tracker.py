"""Asking HTTP trackers for the peers of a torrent."""

import sys
from dataclasses import dataclass

import requests

from .bencode import find_in_torrent

_COMPACT_PEER_SIZE = 6
_REQUEST_TIMEOUT = 5.0


@dataclass(frozen=True)
class Peer:
    """Address of a peer."""

    ip: str
    port: int


def parse_compact_peers(data):
    """Decode the compact peer list: 4 bytes of IPv4 address and 2 of port per peer."""
    return [
        Peer(
            ip=".".join(str(octet) for octet in data[start:start + 4]),
            port=int.from_bytes(data[start + 4:start + 6], "big"),
        )
        for start in range(0, len(data) - _COMPACT_PEER_SIZE + 1, _COMPACT_PEER_SIZE)
    ]


class TorrentTracker:
    """Client for the trackers of a torrent, remembering the last peer list."""

    def __init__(self, url):
        self.url = url
        self.peers = []

    def update_peers(self, torrent, peer_id, port):
        """Fetch peers from the first tracker that answers, trying each in turn."""
        trackers = ([torrent.announce] if torrent.announce else []) + list(torrent.announce_list)
        for tracker_url in trackers:
            print(f"Trying tracker: {tracker_url}")
            self.url = tracker_url
            try:
                self.peers = self._request_peers(torrent, peer_id, port)
            except (requests.RequestException, RuntimeError, ValueError) as exc:
                print(f"Failed to connect to tracker {tracker_url}: {exc}", file=sys.stderr)
                continue
            print(f"Successfully got {len(self.peers)} peers from {tracker_url}")
            return
        raise RuntimeError("All trackers failed")

    def _request_peers(self, torrent, peer_id, port):
        response = requests.get(
            self.url,
            params={
                "info_hash": torrent.info_hash,
                "peer_id": peer_id,
                "port": str(port),
                "uploaded": "0",
                "downloaded": "0",
                "left": str(torrent.length),
                "compact": "1",
            },
            timeout=_REQUEST_TIMEOUT,
        )
        if response.status_code != 200:
            raise RuntimeError(f"HTTP status {response.status_code}")
        if not response.content:
            raise RuntimeError("Empty response")
        peers_data = find_in_torrent(response.content, "peers")
        if not peers_data:
            raise RuntimeError("No peers in response")
        return parse_compact_peers(peers_data)