"""Byte-level helpers: big-endian integers, IPv4 addresses, SHA-1 and hex dumps."""

import hashlib


def bytes_to_int(data):
    """Interpret the first four bytes of ``data`` as a big-endian unsigned integer."""
    if len(data) < 4:
        raise ValueError("need at least 4 bytes")
    return int.from_bytes(data[:4], "big")


def ip_to_int(ip):
    """Convert a dotted IPv4 address into a 32-bit integer."""
    parts = ip.split(".")
    if len(parts) != 4:
        raise ValueError(f"invalid IPv4 address: {ip!r}")
    try:
        octets = [int(part) for part in parts]
    except ValueError:
        raise ValueError(f"invalid IPv4 address: {ip!r}") from None
    result = 0
    for octet in octets:
        result = (result << 8) + octet
    return result


def calculate_sha1(data):
    """Return the raw 20-byte SHA-1 digest of ``data``."""
    return hashlib.sha1(data).digest()


def to_be(value):
    """Encode ``value`` as four big-endian bytes."""
    return (value & 0xFFFFFFFF).to_bytes(4, "big")


def hex_encode(data):
    """Render bytes as space-separated two-digit hex values."""
    return data.hex(" ")