"""Evaluator plugin interface.

The engine core never scores positions itself: a search supplies an
evaluator. ``material`` is a plain material count usable as a default.
"""

from __future__ import annotations

from typing import Final, Protocol

from bitchess.engine.position import Position


# Material values in centipawns
P_VAL: Final = 100
N_VAL: Final = 320
B_VAL: Final = 330
R_VAL: Final = 500
Q_VAL: Final = 900

PIECE_VALUES: Final = (P_VAL, N_VAL, B_VAL, R_VAL, Q_VAL)


class Evaluator(Protocol):
    def __call__(self, position: Position) -> int:
        """Score ``position`` in centipawns, positive meaning White is better."""
        ...


def material(position: Position) -> int:
    """Return the material balance in centipawns.

    Positive means advantage for White. Side-to-move adjustment is done by
    the search (negamax) so this function is side-agnostic.
    """
    score = 0
    for kind, value in enumerate(PIECE_VALUES):
        score += value * position.bb[kind].bit_count()
        score -= value * position.bb[kind + 6].bit_count()
    return score
