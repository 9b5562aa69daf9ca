from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .bitboard import Bitboard
from .errors import InvalidMoveError


PROMOTION_PIECES = ("q", "r", "b", "n")


@dataclass(frozen=True)
class Move:
    """Move value: origin, target and optional promotion kind.

    Attributes:
        from_sq (int): Origin square index (0-based).
        to_sq (int): Destination square index (0-based).
        promotion (Optional[str]): Lowercase promotion piece, if any.
    """

    from_sq: int
    to_sq: int
    promotion: Optional[str] = None

    def __post_init__(self) -> None:
        if not (0 <= self.from_sq <= 63 and 0 <= self.to_sq <= 63):
            raise InvalidMoveError((self.from_sq, self.to_sq), "square out of range")
        if self.from_sq == self.to_sq:
            raise InvalidMoveError(square_to_str(self.from_sq) * 2, "origin equals target")
        if self.promotion is not None and self.promotion not in PROMOTION_PIECES:
            raise InvalidMoveError(self.promotion, "invalid promotion piece")

    @property
    def bitboard(self) -> Bitboard:
        """Origin and target combined, for fast membership tests."""
        return Bitboard((1 << self.from_sq) | (1 << self.to_sq))

    def to_uci(self) -> str:
        """Serialize the move into long algebraic UCI form.

        Returns:
            str: Move encoded like ``"e2e4"`` or ``"e7e8q"``.
        """
        return square_to_str(self.from_sq) + square_to_str(self.to_sq) + (self.promotion or "")

    def __str__(self) -> str:
        return self.to_uci()


def parse_uci(uci: str) -> Move:
    """Parse a UCI move string.

    Args:
        uci (str): Move encoded in long algebraic notation (e.g. ``"e2e4"``).

    Returns:
        Move: Parsed move.

    Raises:
        InvalidMoveError: If the string has an invalid length, squares, or
            promotion piece.
    """
    if not isinstance(uci, str) or len(uci) not in (4, 5):
        raise InvalidMoveError(uci, "expected 4 or 5 characters")
    try:
        from_sq = str_to_square(uci[0:2])
        to_sq = str_to_square(uci[2:4])
    except ValueError as e:
        raise InvalidMoveError(uci, str(e)) from e
    promo: Optional[str] = None
    if len(uci) == 5:
        promo = uci[4].lower()
        if promo not in PROMOTION_PIECES:
            raise InvalidMoveError(uci, f"invalid promotion piece {promo!r}")
    return Move(from_sq, to_sq, promo)


def str_to_square(s: str) -> int:
    """Convert algebraic notation into a 0-based square index.

    Raises:
        ValueError: If ``s`` is not a valid square.
    """
    if len(s) != 2 or s[0] < "a" or s[0] > "h" or s[1] < "1" or s[1] > "8":
        raise ValueError(f"invalid square: {s!r}")
    file = ord(s[0]) - ord("a")
    rank = int(s[1]) - 1
    return rank * 8 + file


def square_to_str(idx: int) -> str:
    """Convert a 0-based square index into algebraic notation.

    Raises:
        ValueError: If ``idx`` is outside the valid square range.
    """
    if idx < 0 or idx > 63:
        raise ValueError(f"invalid square index: {idx}")
    file = idx % 8
    rank = idx // 8
    return chr(ord("a") + file) + str(rank + 1)
