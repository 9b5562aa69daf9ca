"""Precomputed attack geometry.

All tables are built once at import time and only read afterwards. Values are
plain ints so the generator can combine them without wrapping.
"""

from __future__ import annotations

from typing import List, Tuple

from .bitboard import (
    DIRECTION_STEPS,
    DIRECTIONS,
    E,
    N,
    NE,
    NW,
    S,
    SE,
    SW,
    W,
    lsb,
    msb,
)


WHITE, BLACK = 0, 1

BISHOP_DIRECTIONS = (NE, NW, SW, SE)
ROOK_DIRECTIONS = (N, S, E, W)
QUEEN_DIRECTIONS = BISHOP_DIRECTIONS + ROOK_DIRECTIONS
# Rays in these directions run towards higher square indices
POSITIVE_DIRECTIONS = frozenset({NE, NW, N, E})

KNIGHT_STEPS = ((-1, 2), (1, 2), (-2, 1), (2, 1), (-2, -1), (2, -1), (-1, -2), (1, -2))
KING_STEPS = ((-1, -1), (0, -1), (1, -1), (-1, 0), (1, 0), (-1, 1), (0, 1), (1, 1))


def _on_board(f: int, r: int) -> bool:
    return 0 <= f < 8 and 0 <= r < 8


def _step_table(steps: Tuple[Tuple[int, int], ...]) -> Tuple[int, ...]:
    table: List[int] = []
    for sq in range(64):
        f, r = sq % 8, sq // 8
        mask = 0
        for df, dr in steps:
            if _on_board(f + df, r + dr):
                mask |= 1 << ((r + dr) * 8 + f + df)
        table.append(mask)
    return tuple(table)


def _ray_table() -> Tuple[Tuple[int, ...], ...]:
    rays: List[Tuple[int, ...]] = []
    for direction in DIRECTIONS:
        df, dr = DIRECTION_STEPS[direction]
        per_square: List[int] = []
        for sq in range(64):
            f, r = sq % 8 + df, sq // 8 + dr
            mask = 0
            while _on_board(f, r):
                mask |= 1 << (r * 8 + f)
                f += df
                r += dr
            per_square.append(mask)
        rays.append(tuple(per_square))
    return tuple(rays)


RAYS = _ray_table()
KNIGHT_ATTACKS = _step_table(KNIGHT_STEPS)
KING_ATTACKS = _step_table(KING_STEPS)
PAWN_ATTACKS = (
    _step_table(((-1, 1), (1, 1))),  # white captures towards rank 8
    _step_table(((-1, -1), (1, -1))),  # black captures towards rank 1
)


def ray_attacks(square: int, direction: int, occupancy: int) -> int:
    """Squares visible from ``square`` along ``direction``.

    The ray stops at the first occupied square and includes it.
    """
    ray = RAYS[direction][square]
    blockers = ray & occupancy
    if not blockers:
        return ray
    first = lsb(blockers) if direction in POSITIVE_DIRECTIONS else msb(blockers)
    return ray ^ RAYS[direction][first]


def slider_attacks(square: int, directions: Tuple[int, ...], occupancy: int) -> int:
    attacks = 0
    for direction in directions:
        attacks |= ray_attacks(square, direction, occupancy)
    return attacks


def bishop_attacks(square: int, occupancy: int) -> int:
    return slider_attacks(square, BISHOP_DIRECTIONS, occupancy)


def rook_attacks(square: int, occupancy: int) -> int:
    return slider_attacks(square, ROOK_DIRECTIONS, occupancy)


def queen_attacks(square: int, occupancy: int) -> int:
    return slider_attacks(square, QUEEN_DIRECTIONS, occupancy)


def between(a: int, b: int) -> int:
    """Squares strictly between two aligned squares, 0 when not aligned."""
    for direction in DIRECTIONS:
        ray = RAYS[direction][a]
        if (ray >> b) & 1:
            return ray & ~RAYS[direction][b] & ~(1 << b)
    return 0
