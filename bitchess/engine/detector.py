from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .bitboard import lsb
from .errors import IllegalMoveError, MoveDetectionError
from .generator import Generator
from .move import Move
from .position import (
    BISHOP,
    CASTLING_ROOK_MOVES,
    KING,
    KNIGHT,
    PAWN,
    QUEEN,
    ROOK,
    Position,
    side_offset,
)


# Kinds checked for a plain origin/target change, king first so that castling
# is read off the king rather than the rook
_DETECTION_ORDER = (KING, PAWN, KNIGHT, BISHOP, ROOK, QUEEN)
_PROMOTION_CHARS = {KNIGHT: "n", BISHOP: "b", ROOK: "r", QUEEN: "q"}


@dataclass(frozen=True)
class DetectedMove:
    """A reconstructed move and how it transformed the parent position.

    Attributes:
        move (Move): The move played.
        kind (str): ``"castle"``, ``"en_passant"``, ``"promotion"`` or
            ``"normal"``.
        capture (bool): Whether an opposing piece was removed.
    """

    move: Move
    kind: str
    capture: bool


class MoveDetector:
    """Infer which move turned one position into another.

    Used by notation layers that only see position pairs. The diff is read
    straight off the mover's bitboards; the candidate is then confirmed by
    replaying it, so unrelated pairs are rejected.
    """

    def __init__(self, generator: Optional[Generator] = None) -> None:
        self.generator = generator or Generator()

    def detect(self, parent: Position, child: Position) -> DetectedMove:
        """Return the move leading from ``parent`` to ``child``.

        Raises:
            MoveDetectionError: If no legal move of ``parent`` produces
                ``child``.
        """
        move = self._candidate(parent, child)
        if move is None:
            raise MoveDetectionError(parent, child)
        try:
            replayed = parent.apply_move(move, generator=self.generator)
        except IllegalMoveError as e:
            raise MoveDetectionError(parent, child) from e
        if (
            replayed != child
            or replayed.halfmove_clock != child.halfmove_clock
            or replayed.fullmove_number != child.fullmove_number
        ):
            raise MoveDetectionError(parent, child)
        return DetectedMove(
            move=move,
            kind=self._classify(parent, move),
            capture=self._is_capture(parent, child),
        )

    def try_detect(self, parent: Position, child: Position) -> Optional[DetectedMove]:
        try:
            return self.detect(parent, child)
        except MoveDetectionError:
            return None

    def _candidate(self, parent: Position, child: Position) -> Optional[Move]:
        own = side_offset(parent.side_to_move)
        for kind in _DETECTION_ORDER:
            before = parent.bb[own + kind]
            after = child.bb[own + kind]
            changed = before ^ after
            if changed.bit_count() != 2:
                continue
            origin = changed & before
            target = changed & after
            if origin and target:
                return Move(lsb(origin), lsb(target))

        # Promotion: one pawn vanished and one promoted piece appeared
        pawns_changed = parent.bb[own + PAWN] ^ child.bb[own + PAWN]
        if pawns_changed.bit_count() != 1 or not pawns_changed & parent.bb[own + PAWN]:
            return None
        origin_sq = lsb(pawns_changed)
        for kind, char in _PROMOTION_CHARS.items():
            appeared = child.bb[own + kind] & ~parent.bb[own + kind]
            if appeared.bit_count() == 1:
                return Move(origin_sq, lsb(appeared), promotion=char)
        return None

    @staticmethod
    def _classify(parent: Position, move: Move) -> str:
        if move.promotion:
            return "promotion"
        piece = parent.piece_at(move.from_sq)
        own = side_offset(parent.side_to_move)
        if piece == own + KING and (move.from_sq, move.to_sq) in CASTLING_ROOK_MOVES:
            return "castle"
        diagonal = (move.to_sq - move.from_sq) % 8 != 0
        if piece == own + PAWN and move.to_sq == parent.ep_square and diagonal:
            return "en_passant"
        return "normal"

    @staticmethod
    def _is_capture(parent: Position, child: Position) -> bool:
        opp = 6 - side_offset(parent.side_to_move)
        return any(parent.bb[p] & ~child.bb[p] for p in range(opp, opp + 6))
