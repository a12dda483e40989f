"""A small BitTorrent client for downloading single-file torrents."""

__version__ = "0.1.0"