from __future__ import annotations

from typing import List, TYPE_CHECKING

from .bitboard import MASK64, iter_squares

if TYPE_CHECKING:  # pragma: no cover
    from .position import Position


CASTLING_ORDER = "KQkq"


class _SplitMix64:
    def __init__(self, seed: int) -> None:
        self.state = seed & MASK64

    def next(self) -> int:
        self.state = (self.state + 0x9E3779B97F4A7C15) & MASK64
        z = self.state
        z = (z ^ (z >> 30)) * 0xBF58476D1CE4E5B9 & MASK64
        z = (z ^ (z >> 27)) * 0x94D049BB133111EB & MASK64
        return (z ^ (z >> 31)) & MASK64


class Zobrist:
    """Random keys for structural position hashing.

    Table layout:
    - piece_square[12][64]: indices follow the position's piece order (WP..BK)
    - side_to_move: toggled when black is to move
    - castling[4]: K, Q, k, q
    - ep_file[8]: files a..h

    Move counters are not part of the key, so positions that only differ in
    their clocks hash equally (repetition detection relies on this).
    """

    piece_square: List[List[int]]
    side_to_move: int
    castling: List[int]
    ep_file: List[int]

    def __init__(self, seed: int = 0xB17B0A4D_C4E55) -> None:
        prng = _SplitMix64(seed)
        self.piece_square = [[prng.next() for _ in range(64)] for _ in range(12)]
        self.side_to_move = prng.next()
        self.castling = [prng.next() for _ in range(4)]
        self.ep_file = [prng.next() for _ in range(8)]

    def castling_key(self, rights: str) -> int:
        h = 0
        for i, ch in enumerate(CASTLING_ORDER):
            if ch in rights:
                h ^= self.castling[i]
        return h


ZOBRIST = Zobrist()


def compute_hash_from_scratch(position: "Position") -> int:
    """Compute the 64-bit Zobrist key of ``position``."""
    h = 0
    for p in range(12):
        keys = ZOBRIST.piece_square[p]
        for sq in iter_squares(position.bb[p]):
            h ^= keys[sq]
    if position.side_to_move == "b":
        h ^= ZOBRIST.side_to_move
    h ^= ZOBRIST.castling_key(position.castling)
    if position.ep_square is not None:
        h ^= ZOBRIST.ep_file[position.ep_square % 8]
    return h & MASK64


def incremental_hash_update(current_hash: int, before: "Position", after: "Position") -> int:
    """Derive the key of ``after`` from the key of ``before``.

    Only the squares, rights and flags that differ are toggled, so the cost
    is proportional to the size of the change.
    """
    h = current_hash & MASK64
    for p in range(12):
        keys = ZOBRIST.piece_square[p]
        for sq in iter_squares(before.bb[p] ^ after.bb[p]):
            h ^= keys[sq]
    if before.side_to_move != after.side_to_move:
        h ^= ZOBRIST.side_to_move
    h ^= ZOBRIST.castling_key(before.castling) ^ ZOBRIST.castling_key(after.castling)
    if before.ep_square is not None:
        h ^= ZOBRIST.ep_file[before.ep_square % 8]
    if after.ep_square is not None:
        h ^= ZOBRIST.ep_file[after.ep_square % 8]
    return h & MASK64
