from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Tuple

from bitchess.engine.generator import Generator
from bitchess.engine.move import Move
from bitchess.engine.position import Position
from bitchess.engine.rules import REPETITION_DRAW_PRIOR, Rules
from bitchess.eval import Evaluator


logger = logging.getLogger(__name__)

MATE_SCORE = 1_000_000  # mate scores are within +/- MATE_SCORE window


@dataclass
class SearchResult:
    best_move: Optional[Move]
    score_cp: Optional[int]
    mate_in: Optional[int]
    pv: List[Move] = field(default_factory=list)
    nodes: int = 0
    depth: int = 0
    time_ms: int = 0


class SearchService:
    """Fixed-depth negamax over the legal move generator.

    The evaluator, generator and rules are injected. There is no move
    ordering, pruning or transposition table: every legal line down to
    ``depth`` is visited.
    """

    def __init__(
        self,
        evaluator: Evaluator,
        generator: Optional[Generator] = None,
        rules: Optional[Rules] = None,
    ) -> None:
        self.evaluator = evaluator
        self.generator = generator or (rules.generator if rules else Generator())
        self.rules = rules or Rules(self.generator)

    def search(
        self,
        position: Position,
        depth: int = 1,
        history: Optional[Mapping[Position, int]] = None,
    ) -> SearchResult:
        """Search ``position`` to ``depth`` plies.

        Args:
            position (Position): Root position.
            depth (int): Plies to search, at least 1.
            history (Optional[Mapping[Position, int]]): Earlier occurrences
                of positions in the game, excluding the root itself, used
                for repetition draws.

        Returns:
            SearchResult: Best move and principal variation. ``score_cp`` is in
                centipawns from the side to move's point of view and is
                ``None`` when a mate is reported through ``mate_in``
                (negative when the side to move gets mated).
        """
        if depth < 1:
            raise ValueError("depth must be >= 1")
        start = time.perf_counter()
        self._nodes = 0
        rep_counts: Counter = Counter(history or {})
        rep_counts[position] += 1

        score, pv = self._negamax(position, depth, 0, rep_counts)
        time_ms = int((time.perf_counter() - start) * 1000)

        mate_in: Optional[int] = None
        cp: Optional[int] = score
        if abs(score) >= MATE_SCORE - 1000:
            plies = MATE_SCORE - abs(score)
            moves_to_mate = (plies + 1) // 2
            mate_in = moves_to_mate if score > 0 else -moves_to_mate
            cp = None

        logger.debug(
            "search finished",
            extra={"depth": depth, "nodes": self._nodes, "score": score, "time_ms": time_ms},
        )
        return SearchResult(
            best_move=pv[0] if pv else None,
            score_cp=cp,
            mate_in=mate_in,
            pv=pv,
            nodes=self._nodes,
            depth=depth,
            time_ms=time_ms,
        )

    def _negamax(
        self, position: Position, depth: int, ply: int, rep_counts: Counter
    ) -> Tuple[int, List[Move]]:
        self._nodes += 1
        plays = self.generator.generate_plays(position)
        if not plays:
            if self.generator.is_in_check(position):
                return -(MATE_SCORE - ply), []
            return 0, []
        # rep_counts includes the current occurrence
        if (
            self.rules.is_fifty_moves(position)
            or self.rules.is_lack_of_material(position)
            or rep_counts[position] > REPETITION_DRAW_PRIOR
        ):
            return 0, []

        if depth == 0:
            sign = 1 if position.side_to_move == "w" else -1
            return sign * int(self.evaluator(position)), []

        best_score = -MATE_SCORE - 1
        best_pv: List[Move] = []
        for move, child in plays:
            rep_counts[child] += 1
            score, line = self._negamax(child, depth - 1, ply + 1, rep_counts)
            rep_counts[child] -= 1
            score = -score
            if score > best_score:
                best_score = score
                best_pv = [move] + line
        return best_score, best_pv
