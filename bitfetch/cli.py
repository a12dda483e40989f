"""Command-line client that downloads a single-file torrent."""

import secrets
import sys
import threading
import time
from pathlib import Path

from .byte_tools import calculate_sha1, hex_encode
from .peer_connect import PeerConnect
from .piece_storage import PieceStorage
from .torrent_file import load_torrent_file
from .torrent_tracker import TorrentTracker

_ID_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXY"
_LISTEN_PORT = 12345
_MAX_ATTEMPTS = 3
_STARTUP_DELAY = 10.0
_POLL_INTERVAL = 3.0
_USAGE = "Usage: bitfetch -d <download_dir> -p <percent> <torrent_file>"

_output_lock = threading.Lock()


def random_string(length):
    """Return ``length`` random upper-case letters."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


PEER_ID = "TESTAPPDONTWORRY" + random_string(4)


def _log(text, error=False):
    with _output_lock:
        print(text, file=sys.stderr if error else sys.stdout, flush=True)


def check_downloaded_pieces_integrity(output_path, torrent, pieces, pieces_to_download):
    """Verify the size of the output file and the hash of every saved piece."""
    pieces.close_output_file()
    output_path = Path(output_path)
    if output_path.stat().st_size != torrent.length:
        raise RuntimeError("Output file has wrong size")
    indices = pieces.saved_indices()
    if len(indices) != pieces.pieces_saved_count():
        raise RuntimeError("Cannot determine real amount of saved pieces")
    if len(indices) < pieces_to_download:
        raise RuntimeError("Downloaded pieces amount is not enough")
    with open(output_path, "rb") as file:
        for index in sorted(indices):
            position = index * torrent.piece_length
            file.seek(position)
            data = file.read(torrent.piece_length)
            real_hash = calculate_sha1(data)
            expected = torrent.piece_hashes[index]
            if real_hash != expected:
                _log(
                    f"File piece with index {index} started at position {position} "
                    f"with length {len(data)} has wrong hash {hex_encode(real_hash)}. "
                    f"Expected hash is {hex_encode(expected)}",
                    error=True,
                )
                raise RuntimeError("Wrong piece hash")
    _log("Pieces are correct")


def _serve_peer(connection):
    attempts = 0
    while True:
        attempts += 1
        try:
            connection.run()
        except RuntimeError as exc:
            _log(f"Runtime error: {exc} on attempt {attempts}", error=True)
        except Exception as exc:
            _log(f"Exception: {exc}", error=True)
        if not (connection.failed and attempts < _MAX_ATTEMPTS):
            return


def _stop_all(connections, threads):
    for connection in connections:
        connection.terminate()
    for thread in threads:
        thread.join()


def run_download_multithread(pieces, torrent, our_id, tracker, pieces_to_download):
    """Download from all known peers at once.

    Returns True when every connection has stalled and new peers are wanted,
    False once enough pieces are saved.
    """
    connections = [PeerConnect(peer, torrent, our_id, pieces) for peer in tracker.peers]
    threads = [
        threading.Thread(target=_serve_peer, args=(connection,), daemon=True)
        for connection in connections
    ]
    for thread in threads:
        thread.start()
    _log(f"Started {len(threads)} threads for peers")

    time.sleep(_STARTUP_DELAY)
    _log(f"Waiting to download: {pieces_to_download} pieces")

    while pieces.pieces_saved_count() < pieces_to_download:
        _log(f"Already downloaded: {pieces.pieces_saved_count()} pieces")
        if pieces.pieces_in_progress_count() == 0:
            _log("Want to download more pieces but all peer connections are not working. "
                 "Let's request new peers")
            _stop_all(connections, threads)
            return True
        time.sleep(_POLL_INTERVAL)

    _log("Terminating all peer connections")
    _stop_all(connections, threads)
    _log("Downloaded successfully")
    return False


def download_torrent_file(torrent, pieces, our_id, pieces_to_download):
    """Fetch peers from the trackers and download until enough pieces are saved."""
    _log(f"Connecting to tracker {torrent.announce}")
    tracker = TorrentTracker(torrent.announce)
    while True:
        tracker.update_peers(torrent, our_id, _LISTEN_PORT)
        if not tracker.peers:
            _log("No peers found. Cannot download a file", error=True)
        _log(f"Found {len(tracker.peers)} peers")
        for peer in tracker.peers:
            _log(f"Found peer {peer.ip}:{peer.port}")
        if not run_download_multithread(pieces, torrent, our_id, tracker, pieces_to_download):
            return


def torrent_client(file, download_dir, percent):
    """Load ``file``, download its content into ``download_dir`` and verify it."""
    try:
        torrent = load_torrent_file(file)
    except (OSError, ValueError) as exc:
        _log(str(exc), error=True)
        return
    _log(f"Loaded torrent file {file}. {torrent.comment}")

    output_directory = Path(download_dir)
    pieces = PieceStorage(torrent, output_directory, percent)
    pieces_to_download = pieces.total_pieces_count()
    download_torrent_file(torrent, pieces, PEER_ID, pieces_to_download)
    check_downloaded_pieces_integrity(
        output_directory / torrent.name, torrent, pieces, pieces_to_download
    )


def parse_args(argv):
    """Return (download_dir, percent, torrent_path); exit with status 1 on bad usage."""
    download_dir = ""
    torrent_path = ""
    percent = 100
    args = iter(argv)
    remaining = len(argv)
    for position, arg in enumerate(args):
        has_value = position + 1 < remaining
        if arg == "-d" and has_value:
            download_dir = next(args)
        elif arg == "-p" and has_value:
            value = next(args)
            try:
                percent = int(value)
            except ValueError:
                print(f"Invalid percent: {value}", file=sys.stderr)
                raise SystemExit(1) from None
        elif arg.startswith("-"):
            print(f"Unknown option: {arg}", file=sys.stderr)
            raise SystemExit(1)
        else:
            torrent_path = arg
    if not download_dir or not torrent_path:
        print(_USAGE, file=sys.stderr)
        raise SystemExit(1)
    return download_dir, percent, torrent_path


def main(argv=None):
    """Entry point of the command."""
    if argv is None:
        argv = sys.argv[1:]
    download_dir, percent, torrent_path = parse_args(list(argv))
    torrent_client(torrent_path, download_dir, percent)
    return 0