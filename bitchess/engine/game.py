from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Union

from .move import Move, parse_uci
from .position import Position
from .rules import Rules, Status


logger = logging.getLogger(__name__)


@dataclass
class Game:
    """Game record around immutable positions.

    Responsibility: keep the position chain, the applied moves and the
    repetition accumulator that a single Position cannot carry.
    """

    positions: List[Position]
    rules: Rules = field(default_factory=Rules)
    move_stack: List[Move] = field(default_factory=list)
    repetition: Counter = field(default_factory=Counter)

    @classmethod
    def new(cls, rules: Optional[Rules] = None) -> "Game":
        return cls.from_position(Position.startpos(), rules)

    @classmethod
    def from_fen(cls, fen: str, rules: Optional[Rules] = None) -> "Game":
        return cls.from_position(Position.from_fen(fen), rules)

    @classmethod
    def from_position(cls, position: Position, rules: Optional[Rules] = None) -> "Game":
        if rules is None:
            return cls(positions=[position])
        return cls(positions=[position], rules=rules)

    @classmethod
    def from_moves(
        cls,
        moves: Iterable[Union[Move, str]],
        start: Optional[Position] = None,
        rules: Optional[Rules] = None,
    ) -> "Game":
        """Replay ``moves`` (Move values or UCI strings) from ``start``.

        Raises:
            InvalidMoveError: If a UCI string is malformed.
            IllegalMoveError: If a move is not legal where it is played.
        """
        game = cls.from_position(start or Position.startpos(), rules)
        for move in moves:
            game.apply_move(parse_uci(move) if isinstance(move, str) else move)
        return game

    def __post_init__(self) -> None:
        if not self.positions:
            raise ValueError("a game needs a starting position")
        # Seed repetition with every position already in the chain
        if not self.repetition:
            self.repetition.update(self.positions)

    @property
    def position(self) -> Position:
        return self.positions[-1]

    def to_fen(self) -> str:
        return self.position.to_fen()

    def legal_moves(self) -> List[Move]:
        return self.rules.generator.generate_moves(self.position)

    def apply_move(self, move: Move) -> Position:
        """Play ``move``, raising ``IllegalMoveError`` if it is not legal."""
        child = self.rules.apply_move(self.position, move)
        self.positions.append(child)
        self.move_stack.append(move)
        self.repetition[child] += 1
        logger.debug("move applied", extra={"move": move.to_uci(), "fen": child.to_fen()})
        return child

    def apply_uci(self, uci: str) -> Position:
        return self.apply_move(parse_uci(uci))

    def undo_move(self) -> Move:
        if not self.move_stack:
            raise ValueError("no moves to undo")
        current = self.positions.pop()
        self.repetition[current] -= 1
        if self.repetition[current] <= 0:
            del self.repetition[current]
        return self.move_stack.pop()

    def repetition_count(self, position: Optional[Position] = None) -> int:
        """Occurrences of ``position`` (default: current) in this game."""
        return self.repetition.get(position or self.position, 0)

    def prior_occurrences(self) -> Counter:
        """Repetition counts excluding the current occurrence."""
        prior = Counter(self.repetition)
        prior[self.position] -= 1
        return prior

    # --- State flags ---
    def status(self) -> Status:
        return self.rules.set_status(self.position, self.prior_occurrences())

    def in_check(self) -> bool:
        return self.rules.is_in_check(self.position)

    def checkmate(self) -> bool:
        return self.rules.is_checkmate(self.position)

    def stalemate(self) -> bool:
        return self.rules.is_stalemate(self.position)

    def is_draw(self) -> bool:
        # Fifty-move rule, stalemate, dead material or threefold repetition
        return self.status().is_draw

    def move_history_uci(self) -> List[str]:
        return [m.to_uci() for m in self.move_stack]
