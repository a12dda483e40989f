"""Pieces of the downloaded file and the blocks they are fetched in."""

from dataclasses import dataclass
from enum import Enum

from .byte_tools import calculate_sha1

BLOCK_SIZE = 1 << 14


class BlockStatus(Enum):
    """Download state of a block."""

    MISSING = 0
    PENDING = 1
    RETRIEVED = 2


@dataclass
class Block:
    """A slice of a piece, requested from a peer in one message."""

    piece: int
    offset: int
    length: int
    status: BlockStatus = BlockStatus.MISSING
    data: bytes = b""


class Piece:
    """One piece of the file, split into blocks of at most ``BLOCK_SIZE`` bytes."""

    def __init__(self, index, length, hash):
        self.index = index
        self.length = length
        self.hash = hash
        full, tail = divmod(length, BLOCK_SIZE)
        sizes = [BLOCK_SIZE] * full + ([tail] if tail else [])
        self.blocks = [
            Block(piece=index, offset=number * BLOCK_SIZE, length=size)
            for number, size in enumerate(sizes)
        ]

    def hash_matches(self):
        """Whether the downloaded data hashes to the expected value."""
        return self.data_hash() == self.hash

    def first_missing_block(self):
        """Return the first block that is neither requested nor retrieved."""
        for block in self.blocks:
            if block.status is BlockStatus.MISSING:
                return block
        raise RuntimeError("All blocks are pending or retrieved")

    def save_block(self, offset, data):
        """Store downloaded data for the block starting at ``offset``."""
        number, remainder = divmod(offset, BLOCK_SIZE)
        if remainder or not 0 <= number < len(self.blocks):
            raise ValueError(f"Bad block offset: {offset}")
        block = self.blocks[number]
        block.data = bytes(data)
        block.status = BlockStatus.RETRIEVED

    def all_blocks_retrieved(self):
        """Whether every block has been downloaded."""
        return all(block.status is BlockStatus.RETRIEVED for block in self.blocks)

    def data(self):
        """Return the concatenated data of all blocks."""
        if any(not block.data for block in self.blocks):
            raise RuntimeError("Empty block exists")
        return b"".join(block.data for block in self.blocks)

    def data_hash(self):
        """Return the SHA-1 digest of the downloaded data."""
        return calculate_sha1(self.data())

    def reset(self):
        """Drop all downloaded data and mark every block missing."""
        for block in self.blocks:
            block.data = b""
            block.status = BlockStatus.MISSING