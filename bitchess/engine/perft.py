from __future__ import annotations

import logging
from typing import Dict, Optional

from .generator import Generator
from .position import Position


logger = logging.getLogger(__name__)


def perft(position: Position, depth: int, generator: Optional[Generator] = None) -> int:
    """Compute the perft node count for ``position`` at ``depth``.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over all legal child positions' perft(depth-1).
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    gen = generator or Generator()
    return _perft(gen, position, depth)


def divide(
    position: Position, depth: int, generator: Optional[Generator] = None
) -> Dict[str, int]:
    """Split the perft count of ``position`` by root move (UCI keys)."""
    if depth < 1:
        raise ValueError("depth must be >= 1")
    gen = generator or Generator()
    counts: Dict[str, int] = {}
    for move, child in gen.generate_plays(position):
        counts[move.to_uci()] = _perft(gen, child, depth - 1)
    logger.debug("divide", extra={"depth": depth, "nodes": sum(counts.values())})
    return counts


def _perft(gen: Generator, position: Position, depth: int) -> int:
    if depth == 0:
        return 1
    children = gen.generate_children(position)
    if depth == 1:
        return len(children)
    return sum(_perft(gen, child, depth - 1) for child in children)
