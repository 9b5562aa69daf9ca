from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover
    from .move import Move
    from .position import Position


class ChessError(ValueError):
    """Base class for errors raised by the engine core."""


class InvalidFenError(ChessError):
    """Raised when a FEN string cannot be turned into a Position."""

    def __init__(self, fen: Any, reason: str) -> None:
        self.fen = fen
        self.reason = reason
        super().__init__(f"invalid FEN {fen!r}: {reason}")


class InvalidMoveError(ChessError):
    """Raised for malformed move text or out-of-range move fields."""

    def __init__(self, text: Any, reason: str) -> None:
        self.text = text
        self.reason = reason
        super().__init__(f"invalid move {text!r}: {reason}")


class IllegalMoveError(ChessError):
    """Raised when a well-formed move is not legal in the given position."""

    def __init__(self, move: "Move", position: "Position") -> None:
        self.move = move
        self.position = position
        super().__init__(f"illegal move {move.to_uci()} in {position.to_fen()}")


class EmptyBitboardError(ChessError):
    """Raised when popping a bit from an empty bitboard."""


class MoveDetectionError(ChessError):
    """Raised when no single legal move turns ``parent`` into ``child``."""

    def __init__(self, parent: "Position", child: "Position") -> None:
        self.parent = parent
        self.child = child
        super().__init__(f"positions not related: {parent.to_fen()} -> {child.to_fen()}")
