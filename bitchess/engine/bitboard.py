from __future__ import annotations

from typing import Iterable, Iterator, Tuple

from .errors import EmptyBitboardError


MASK64 = 0xFFFFFFFFFFFFFFFF

FILE_A = 0x0101010101010101
FILE_H = FILE_A << 7
RANK_1 = 0xFF
RANK_8 = RANK_1 << 56

# Directions: diagonals first, then orthogonals
NE, NW, SW, SE, N, S, E, W = range(8)
DIRECTIONS = (NE, NW, SW, SE, N, S, E, W)
# (file step, rank step) per direction
DIRECTION_STEPS = ((1, 1), (-1, 1), (-1, -1), (1, -1), (0, 1), (0, -1), (1, 0), (-1, 0))
DIRECTION_DELTAS = tuple(df + 8 * dr for df, dr in DIRECTION_STEPS)


def lsb(bb: int) -> int:
    """Index of the lowest set bit of a non-zero int."""
    return (bb & -bb).bit_length() - 1


def msb(bb: int) -> int:
    """Index of the highest set bit of a non-zero int."""
    return bb.bit_length() - 1


def iter_squares(bb: int) -> Iterator[int]:
    """Yield set square indices in ascending order."""
    while bb:
        low = bb & -bb
        yield low.bit_length() - 1
        bb ^= low


def iter_squares_reversed(bb: int) -> Iterator[int]:
    """Yield set square indices in descending order."""
    while bb:
        sq = bb.bit_length() - 1
        yield sq
        bb ^= 1 << sq


def shift_int(bb: int, direction: int, steps: int = 1) -> int:
    """Shift raw bits ``steps`` squares towards ``direction`` without file wrap."""
    df, _ = DIRECTION_STEPS[direction]
    delta = DIRECTION_DELTAS[direction]
    for _ in range(steps):
        if df == 1:
            bb &= ~FILE_H
        elif df == -1:
            bb &= ~FILE_A
        bb = (bb << delta) if delta > 0 else (bb >> -delta)
        bb &= MASK64
    return bb


class Bitboard:
    """Immutable 64-bit set of squares.

    Bit ``i`` stands for square ``i`` (a1 = 0 .. h8 = 63). Every operation
    returns a new instance; equality and hashing follow the integer value.
    """

    __slots__ = ("_value",)

    def __init__(self, value: int = 0) -> None:
        object.__setattr__(self, "_value", value & MASK64)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("Bitboard is immutable")

    @classmethod
    def from_squares(cls, *squares: int) -> "Bitboard":
        value = 0
        for sq in squares:
            if sq < 0 or sq > 63:
                raise ValueError(f"invalid square index: {sq}")
            value |= 1 << sq
        return cls(value)

    @property
    def value(self) -> int:
        return self._value

    def __int__(self) -> int:
        return self._value

    def __index__(self) -> int:
        return self._value

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Bitboard):
            return self._value == other._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)

    def __bool__(self) -> bool:
        return self._value != 0

    def __len__(self) -> int:
        return self._value.bit_count()

    def __contains__(self, square: int) -> bool:
        return 0 <= square < 64 and (self._value >> square) & 1 == 1

    def __iter__(self) -> Iterator[int]:
        return iter_squares(self._value)

    def __repr__(self) -> str:
        return f"Bitboard(0x{self._value:016x})"

    def __and__(self, other: "Bitboard") -> "Bitboard":
        return and_(self, other)

    def __or__(self, other: "Bitboard") -> "Bitboard":
        return or_(self, other)

    def __xor__(self, other: "Bitboard") -> "Bitboard":
        return xor(self, other)

    def __invert__(self) -> "Bitboard":
        return not_(self)

    def popcount(self) -> int:
        return self._value.bit_count()

    def first_square(self) -> int:
        if not self._value:
            raise EmptyBitboardError("bitboard is empty")
        return lsb(self._value)

    def last_square(self) -> int:
        if not self._value:
            raise EmptyBitboardError("bitboard is empty")
        return msb(self._value)

    def pop_first(self) -> Tuple["Bitboard", "Bitboard"]:
        """Split off the lowest set bit.

        Returns:
            Tuple[Bitboard, Bitboard]: The isolated lowest bit and the
                remaining bits.

        Raises:
            EmptyBitboardError: If no bit is set.
        """
        if not self._value:
            raise EmptyBitboardError("cannot pop from an empty bitboard")
        low = self._value & -self._value
        return Bitboard(low), Bitboard(self._value ^ low)

    def pop_last(self) -> Tuple["Bitboard", "Bitboard"]:
        """Split off the highest set bit; see :meth:`pop_first`."""
        if not self._value:
            raise EmptyBitboardError("cannot pop from an empty bitboard")
        high = 1 << msb(self._value)
        return Bitboard(high), Bitboard(self._value ^ high)

    def shift_left(self, n: int) -> "Bitboard":
        """Raw shift towards higher square indices, truncated to 64 bits."""
        if n < 0:
            raise ValueError("shift must be >= 0")
        return Bitboard(self._value << n)

    def shift_right(self, n: int) -> "Bitboard":
        """Raw shift towards lower square indices."""
        if n < 0:
            raise ValueError("shift must be >= 0")
        return Bitboard(self._value >> n)

    def shift(self, direction: int, steps: int = 1) -> "Bitboard":
        """Move every square ``steps`` squares towards ``direction``.

        Squares that would leave the board (including across the a/h file
        edge) are dropped.
        """
        if steps < 0:
            raise ValueError("steps must be >= 0")
        return Bitboard(shift_int(self._value, direction, steps))

    def pretty(self) -> str:
        rows = []
        for rank in range(7, -1, -1):
            cells = ["1" if (self._value >> (rank * 8 + f)) & 1 else "." for f in range(8)]
            rows.append(" ".join(cells))
        return "\n".join(rows)


def _values(bitboards: Iterable[Bitboard | int]) -> Iterator[int]:
    for b in bitboards:
        yield b.value if isinstance(b, Bitboard) else b


def and_(*bitboards: Bitboard | int) -> Bitboard:
    value = MASK64
    for v in _values(bitboards):
        value &= v
    return Bitboard(value)


def or_(*bitboards: Bitboard | int) -> Bitboard:
    value = 0
    for v in _values(bitboards):
        value |= v
    return Bitboard(value)


def xor(*bitboards: Bitboard | int) -> Bitboard:
    value = 0
    for v in _values(bitboards):
        value ^= v
    return Bitboard(value)


def not_(bitboard: Bitboard | int) -> Bitboard:
    value = bitboard.value if isinstance(bitboard, Bitboard) else bitboard
    return Bitboard(~value & MASK64)
