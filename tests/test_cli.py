import dataclasses

import pytest
import responses

from bitfetch import cli
from bitfetch.byte_tools import calculate_sha1
from bitfetch.piece_storage import PieceStorage
from bitfetch.torrent_file import TorrentFile
from bitfetch.torrent_tracker import TorrentTracker

ANNOUNCE = "http://tracker.example.com/announce"
PIECE_LENGTH = 1024
CONTENT = bytes(i % 256 for i in range(3 * PIECE_LENGTH))


@pytest.fixture
def mocked():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


@pytest.fixture
def torrent():
    hashes = [
        calculate_sha1(CONTENT[start:start + PIECE_LENGTH])
        for start in range(0, len(CONTENT), PIECE_LENGTH)
    ]
    return TorrentFile(
        announce=ANNOUNCE,
        piece_hashes=hashes,
        piece_length=PIECE_LENGTH,
        length=len(CONTENT),
        name="data.bin",
        info_hash=b"\x11" * 20,
    )


@pytest.fixture
def filled_storage(torrent, tmp_path):
    storage = PieceStorage(torrent, tmp_path)
    while (piece := storage.next_piece_to_download()) is not None:
        start = piece.index * PIECE_LENGTH
        piece.save_block(0, CONTENT[start:start + PIECE_LENGTH])
        storage.piece_processed(piece)
    return storage


@pytest.fixture
def no_delays(monkeypatch):
    monkeypatch.setattr(cli, "_STARTUP_DELAY", 0)
    monkeypatch.setattr(cli, "_POLL_INTERVAL", 0)


def test_random_string_letters():
    value = cli.random_string(50)
    assert len(value) == 50
    assert set(value) <= set("ABCDEFGHIJKLMNOPQRSTUVWXY")


def test_peer_id_shape():
    assert len(cli.PEER_ID) == 20
    assert cli.PEER_ID.startswith("TESTAPPDONTWORRY")


def test_parse_args_all_options():
    assert cli.parse_args(["-d", "out", "-p", "50", "file.torrent"]) == ("out", 50, "file.torrent")


def test_parse_args_default_percent():
    assert cli.parse_args(["file.torrent", "-d", "out"]) == ("out", 100, "file.torrent")


@pytest.mark.parametrize(
    "argv",
    [["-x", "file.torrent"], ["file.torrent"], ["-d", "out"], ["file.torrent", "-d"],
     ["-d", "out", "-p", "many", "file.torrent"]],
)
def test_parse_args_rejects_bad_usage(argv):
    with pytest.raises(SystemExit) as info:
        cli.parse_args(argv)
    assert info.value.code == 1


def test_main_rejects_unknown_option():
    with pytest.raises(SystemExit) as info:
        cli.main(["-q"])
    assert info.value.code == 1


def test_integrity_check_passes(torrent, filled_storage, tmp_path, capsys):
    cli.check_downloaded_pieces_integrity(tmp_path / "data.bin", torrent, filled_storage, 3)
    assert "Pieces are correct" in capsys.readouterr().out


def test_integrity_check_wrong_size(torrent, filled_storage, tmp_path):
    bigger = dataclasses.replace(torrent, length=torrent.length + 1)
    with pytest.raises(RuntimeError, match="wrong size"):
        cli.check_downloaded_pieces_integrity(tmp_path / "data.bin", bigger, filled_storage, 3)


def test_integrity_check_not_enough(torrent, filled_storage, tmp_path):
    with pytest.raises(RuntimeError, match="not enough"):
        cli.check_downloaded_pieces_integrity(tmp_path / "data.bin", torrent, filled_storage, 4)


def test_integrity_check_wrong_hash(torrent, filled_storage, tmp_path):
    filled_storage.close_output_file()
    path = tmp_path / "data.bin"
    with open(path, "r+b") as file:
        file.seek(PIECE_LENGTH)
        file.write(b"\xff" * 8)
    with pytest.raises(RuntimeError, match="Wrong piece hash"):
        cli.check_downloaded_pieces_integrity(path, torrent, filled_storage, 3)


def test_run_download_finishes_when_nothing_needed(torrent, tmp_path, no_delays, capsys):
    storage = PieceStorage(torrent, tmp_path)
    tracker = TorrentTracker(ANNOUNCE)
    assert cli.run_download_multithread(storage, torrent, cli.PEER_ID, tracker, 0) is False
    assert "Terminating all peer connections" in capsys.readouterr().out


def test_run_download_asks_for_new_peers_when_stalled(torrent, tmp_path, no_delays):
    storage = PieceStorage(torrent, tmp_path)
    tracker = TorrentTracker(ANNOUNCE)
    assert cli.run_download_multithread(storage, torrent, cli.PEER_ID, tracker, 1) is True
    assert storage.pieces_saved_count() == 0


def test_download_fails_when_trackers_fail(torrent, tmp_path, mocked):
    mocked.add(responses.GET, ANNOUNCE, status=500)
    storage = PieceStorage(torrent, tmp_path)
    with pytest.raises(RuntimeError, match="All trackers failed"):
        cli.download_torrent_file(torrent, storage, cli.PEER_ID, 3)


def test_torrent_client_missing_file(tmp_path, capsys):
    result = cli.torrent_client(str(tmp_path / "missing.torrent"), str(tmp_path), 100)
    assert result is None
    assert capsys.readouterr().err
    assert list(tmp_path.iterdir()) == []


def test_torrent_client_invalid_file(tmp_path, capsys):
    path = tmp_path / "bad.torrent"
    path.write_bytes(b"garbage")
    assert cli.torrent_client(str(path), str(tmp_path), 100) is None
    assert capsys.readouterr().err
    assert [entry.name for entry in tmp_path.iterdir()] == ["bad.torrent"]