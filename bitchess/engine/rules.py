from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Mapping, Optional, Tuple

from .generator import Generator
from .move import Move
from .position import Position


FIFTY_MOVE_HALFMOVES = 100
REPETITION_DRAW_PRIOR = 2  # the position occurred twice before: threefold


def _signature(white: str, black: str) -> Tuple[int, ...]:
    counts = []
    for pieces in (white, black):
        counts.extend(pieces.count(kind) for kind in "PNBRQ")
    return tuple(counts)


# Material combinations (besides the kings) that are always scored as a draw,
# as counts of P, N, B, R, Q for white then black.
LACK_OF_MATERIAL: FrozenSet[Tuple[int, ...]] = frozenset(
    _signature(w, b)
    for w, b in (
        ("", ""),
        ("N", "N"),
        ("N", ""),
        ("", "N"),
        ("N", "B"),
        ("B", "N"),
        ("B", "B"),
        ("B", ""),
        ("", "B"),
    )
)


@dataclass(frozen=True)
class Status:
    """Snapshot of the terminal and draw flags of a position."""

    in_check: bool
    checkmate: bool
    stalemate: bool
    fifty_moves: bool
    lack_of_material: bool
    repetitions: bool

    @property
    def is_draw(self) -> bool:
        return self.stalemate or self.fifty_moves or self.lack_of_material or self.repetitions

    @property
    def is_terminal(self) -> bool:
        return self.checkmate or self.is_draw

    @property
    def result(self) -> Optional[str]:
        """Checkmate or draw result from the side to move's point of view."""
        if self.checkmate:
            return "loss"
        if self.is_draw:
            return "draw"
        return None


class Rules:
    """Check, checkmate, stalemate and draw classification.

    The generator is injected so callers control which implementation backs
    legality; a default :class:`Generator` is created otherwise.
    """

    def __init__(self, generator: Optional[Generator] = None) -> None:
        self.generator = generator or Generator()

    def is_in_check(self, position: Position) -> bool:
        return self.generator.is_in_check(position)

    def set_status(
        self, position: Position, history: Optional[Mapping[Position, int]] = None
    ) -> Status:
        """Compute, memoize on ``position`` and return its status flags.

        Args:
            position (Position): Position to classify.
            history (Optional[Mapping[Position, int]]): How often each
                position occurred earlier in the game, not counting this
                occurrence. Positions compare structurally, so move counters
                do not matter. Without a history no repetition is reported
                and a repetition flag already memoized is left as is.

        Returns:
            Status: The computed flags.
        """
        in_check = self.generator.is_in_check(position)
        no_moves = not self.generator.has_legal_moves(position)
        status = Status(
            in_check=in_check,
            checkmate=no_moves and in_check,
            stalemate=no_moves and not in_check,
            fifty_moves=self.is_fifty_moves(position),
            lack_of_material=self.is_lack_of_material(position),
            repetitions=self.is_repetition(position, history),
        )
        position._status.update(
            checkmate=status.checkmate,
            stalemate=status.stalemate,
            fifty_moves=status.fifty_moves,
            lack_of_material=status.lack_of_material,
        )
        # Only a call with a history may change the repetition flag
        if history is not None:
            position._status["repetitions"] = status.repetitions
        else:
            position._status.setdefault("repetitions", False)
        return status

    def is_checkmate(self, position: Position) -> bool:
        return self.generator.is_in_check(position) and not self.generator.has_legal_moves(
            position
        )

    def is_stalemate(self, position: Position) -> bool:
        return not self.generator.is_in_check(position) and not self.generator.has_legal_moves(
            position
        )

    @staticmethod
    def is_fifty_moves(position: Position) -> bool:
        return position.halfmove_clock >= FIFTY_MOVE_HALFMOVES

    @staticmethod
    def is_lack_of_material(position: Position) -> bool:
        return position.material_signature() in LACK_OF_MATERIAL

    @staticmethod
    def is_repetition(position: Position, history: Optional[Mapping[Position, int]]) -> bool:
        if not history:
            return False
        return history.get(position, 0) >= REPETITION_DRAW_PRIOR

    def legal(self, position: Position, move: Move) -> bool:
        return move in self.generator.generate_moves(position)

    def apply_move(self, position: Position, move: Move) -> Position:
        """Play a legal move; raises ``IllegalMoveError`` otherwise."""
        return position.apply_move(move, generator=self.generator)

    def replay(self, position: Position, moves: Iterable[Move]) -> Position:
        """Play ``moves`` in order from ``position``, validating each one."""
        for move in moves:
            position = self.apply_move(position, move)
        return position
