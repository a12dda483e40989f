"""Bookkeeping of which pieces remain to be downloaded, and writing them to disk."""

import threading
from collections import deque
from pathlib import Path

from .piece import Piece


class PieceStorage:
    """Queue of pieces still to download and the output file they are saved to.

    All public methods are safe to call from several threads at once.
    """

    def __init__(self, torrent, output_directory, percent=100):
        self.path = Path(output_directory) / torrent.name
        try:
            self._file = open(self.path, "wb")
        except OSError as exc:
            raise RuntimeError(f"Cannot create file: {self.path}") from exc
        if torrent.length > 0:
            self._file.seek(torrent.length - 1)
            self._file.write(b"\0")
            self._file.flush()
        self._lock = threading.Lock()
        available = len(torrent.piece_hashes)
        self._total = min(available, int(available * (percent / 100.0)))
        self._queue = deque(
            Piece(index, torrent.piece_length, torrent.piece_hashes[index])
            for index in range(self._total)
        )
        self._saved = []
        self._in_progress = 0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close_output_file()

    def next_piece_to_download(self):
        """Take the next piece off the queue, or return None if none are left."""
        with self._lock:
            if not self._queue:
                return None
            self._in_progress += 1
            return self._queue.popleft()

    def piece_processed(self, piece):
        """Save a fully downloaded piece; raise if its data does not match its hash."""
        with self._lock:
            self._in_progress -= 1
            if not (piece.all_blocks_retrieved() and piece.hash_matches()):
                raise RuntimeError("Piece hash mismatch")
            self._save_piece_to_disk(piece)
            self._saved.append(piece.index)

    def queue_is_empty(self):
        """Whether no pieces are waiting to be downloaded."""
        with self._lock:
            return not self._queue

    def pieces_saved_count(self):
        """Number of pieces written to disk so far."""
        with self._lock:
            return len(self._saved)

    def total_pieces_count(self):
        """Number of pieces this storage was asked to download."""
        with self._lock:
            return self._total

    def close_output_file(self):
        """Close the output file."""
        with self._lock:
            if not self._file.closed:
                self._file.close()

    def saved_indices(self):
        """Indices of the pieces written to disk, in the order they were saved."""
        with self._lock:
            return list(self._saved)

    def pieces_in_progress_count(self):
        """Number of pieces currently handed out for download."""
        with self._lock:
            return self._in_progress

    def requeue_piece(self, piece):
        """Put a piece back on the queue with all its data discarded."""
        with self._lock:
            self._in_progress -= 1
            piece.reset()
            self._queue.append(piece)

    def _save_piece_to_disk(self, piece):
        self._file.seek(piece.length * piece.index)
        self._file.write(piece.data())
        self._file.flush()