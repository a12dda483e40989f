# bitfetch

bitfetch is a small BitTorrent client for single-file torrents. It reads a
`.torrent` file and asks the tracker for peers. If that tracker fails, it
tries the trackers listed in `announce-list` in turn. It downloads pieces
from those peers in parallel, one thread per peer. Each piece is checked
against its SHA-1 hash and then written to its place in the output file.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Command line

```
bitfetch -d <download_dir> [-p <percent>] <torrent_file>
```

- `-d` is the directory where the file is written. It is required.
- `-p` is the share of the torrent's pieces to download, as a whole number.
  The pieces are counted from the first one. The default is 100.
- Any other option starting with `-` is rejected, and the command exits with
  status 1. It does the same when the directory or the torrent file is
  missing.

The output file takes its name from the torrent and is created at full size
before the download starts. When the download finishes, every saved piece is
read back from disk and checked against the hash from the torrent. The
command stops with an error if the file has the wrong size or a piece does
not match.

A peer connection that breaks is retried up to three times. If every peer
connection stops working before enough pieces have arrived, the client asks
the trackers for a new list of peers and starts again.

## Library use

The building blocks can also be used on their own:

- `bitfetch.torrent_file.load_torrent_file(filename)` and
  `parse_torrent(data)` return a `TorrentFile`. It holds `announce`,
  `announce_list`, `comment`, `name`, `length`, `piece_length`,
  `piece_hashes` and `info_hash`.
- `bitfetch.bencode` reads bencoded data:
  - `find_in_torrent(data, key)` returns the value stored under a key, or
    `b""` if the key is absent.
  - `parse_value(data, index)` returns the raw encoding of one value and the
    offset after it.
  - `parse_announce_list(data)` flattens an announce list into URLs.
- `bitfetch.byte_tools` has helpers for big-endian integers (`bytes_to_int`,
  `to_be`), IPv4 addresses (`ip_to_int`), SHA-1 digests (`calculate_sha1`)
  and hex dumps (`hex_encode`).
- `bitfetch.message.Message` parses and builds peer wire messages:
  - `Message.parse` reads a message.
  - `Message.create` builds one.
  - `to_bytes` encodes it.
  - The message types are listed in `MessageId`.
- `bitfetch.piece.Piece` tracks the 16 KiB blocks (`Block`, `BlockStatus`)
  of one piece.
- `bitfetch.piece_storage.PieceStorage` hands out pieces to download,
  requeues pieces whose download failed, and writes finished pieces to disk.
  It can be used as a context manager that closes the output file.
- `bitfetch.torrent_tracker.TorrentTracker.update_peers` fetches peers from
  the HTTP trackers. `parse_compact_peers` decodes the compact peer list into
  `Peer` values.
- `bitfetch.peer_connect.PeerConnect` talks to one peer. It does the
  handshake, reads the bitfield, sends interested, and requests blocks until
  `terminate` is called. It runs over a `bitfetch.tcp_connect.TcpConnect`
  connection, which reads length-prefixed frames with timeouts.

```python
from bitfetch.torrent_file import load_torrent_file

torrent = load_torrent_file("example.torrent")
print(torrent.name, torrent.length, len(torrent.piece_hashes))
```

## What it does not do

- It downloads only. It does not upload to other peers or listen for
  incoming connections. The port it reports to the tracker is not opened.
- It handles single-file torrents only. It does not read the file list of a
  multi-file torrent.
- It speaks only to HTTP trackers that return the compact peer list, and
  only to IPv4 peers.
- It does not resume an interrupted download. The output file is created
  afresh on every run.