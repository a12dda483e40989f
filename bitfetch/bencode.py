"""Lightweight bencode scanning for .torrent files and tracker replies."""

_DICT = ord("d")
_LIST = ord("l")
_INT = ord("i")
_END = ord("e")
_COLON = ord(":")


def _string_bounds(data, index):
    """Return the (start, end) of the content of the string starting at ``index``."""
    colon = data.find(b":", index)
    if colon < 0:
        raise ValueError(f"missing ':' after string length at offset {index}")
    digits = data[index:colon]
    if not digits.isdigit():
        raise ValueError(f"bad string length {digits!r} at offset {index}")
    start = colon + 1
    end = start + int(digits)
    if end > len(data):
        raise ValueError(f"string at offset {index} runs past the end of data")
    return start, end


def _value_end(data, index):
    """Return the offset just past the bencoded value starting at ``index``."""
    if index >= len(data):
        raise ValueError("unexpected end of data")
    kind = data[index]
    if kind == _INT:
        end = data.find(b"e", index)
        if end < 0:
            raise ValueError(f"unterminated integer at offset {index}")
        return end + 1
    if kind in (_DICT, _LIST):
        index += 1
        while True:
            if index >= len(data):
                raise ValueError("unterminated dictionary or list")
            if data[index] == _END:
                return index + 1
            index = _value_end(data, index)
    return _string_bounds(data, index)[1]


def parse_value(data, index):
    """Return the raw encoding of the value at ``index`` and the offset after it."""
    end = _value_end(data, index)
    return data[index:end], end


def _extract(data, start):
    kind = data[start]
    if kind == _INT:
        end = data.find(b"e", start)
        if end < 0:
            raise ValueError(f"unterminated integer at offset {start}")
        return data[start + 1:end]
    if kind in (_DICT, _LIST):
        return parse_value(data, start)[0]
    content_start, content_end = _string_bounds(data, start)
    return data[content_start:content_end]


def find_in_torrent(data, key):
    """Return the value stored under ``key``, or ``b""`` if the key is absent.

    Integers come back as their digits, strings as their content, and
    dictionaries and lists as their raw encoding.
    """
    if isinstance(key, str):
        key = key.encode()
    if not key:
        raise ValueError("key must not be empty")
    pos = data.find(key, 1)
    while pos >= 0:
        value_start = pos + len(key)
        if data[pos - 1] == _COLON and value_start < len(data):
            return _extract(data, value_start)
        pos = data.find(key, pos + 1)
    return b""


def parse_announce_list(data):
    """Flatten a raw bencoded announce-list into a list of tracker URLs."""
    trackers = []
    size = len(data)
    pos = 1
    while pos < size and data[pos] != _END:
        pos += 1
        while pos < size and data[pos] != _END:
            start, end = _string_bounds(data, pos)
            trackers.append(data[start:end].decode("utf-8", errors="replace"))
            pos = end
        if pos < size:
            pos += 1
    return trackers