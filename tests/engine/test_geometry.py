from __future__ import annotations

import pytest

from bitchess.engine.bitboard import FILE_A, N, NE, S, SW, W
from bitchess.engine.geometry import (
    BLACK,
    KING_ATTACKS,
    KNIGHT_ATTACKS,
    PAWN_ATTACKS,
    RAYS,
    WHITE,
    between,
    bishop_attacks,
    queen_attacks,
    ray_attacks,
    rook_attacks,
)
from bitchess.engine.move import str_to_square


def _bits(*names: str) -> int:
    mask = 0
    for name in names:
        mask |= 1 << str_to_square(name)
    return mask


def test_knight_and_king_tables_corner_and_center() -> None:
    assert KNIGHT_ATTACKS[0] == _bits("b3", "c2")
    assert KING_ATTACKS[0] == _bits("a2", "b1", "b2")
    assert KNIGHT_ATTACKS[str_to_square("d4")].bit_count() == 8
    assert KING_ATTACKS[str_to_square("d4")].bit_count() == 8
    assert KNIGHT_ATTACKS[str_to_square("h8")] == _bits("f7", "g6")


def test_pawn_attack_tables() -> None:
    assert PAWN_ATTACKS[WHITE][str_to_square("a2")] == _bits("b3")
    assert PAWN_ATTACKS[WHITE][str_to_square("e4")] == _bits("d5", "f5")
    assert PAWN_ATTACKS[BLACK][str_to_square("h7")] == _bits("g6")
    assert PAWN_ATTACKS[BLACK][str_to_square("e5")] == _bits("d4", "f4")


def test_rays_exclude_origin() -> None:
    assert RAYS[N][0] == FILE_A & ~1
    assert RAYS[NE][0] == _bits("b2", "c3", "d4", "e5", "f6", "g7", "h8")
    assert RAYS[W][0] == 0
    assert RAYS[SW][str_to_square("c3")] == _bits("b2", "a1")


@pytest.mark.parametrize(
    ("square", "direction", "blocker", "expected"),
    [
        # Positive direction stops at the lowest blocker
        ("a1", N, "a4", ("a2", "a3", "a4")),
        # Negative direction stops at the highest blocker
        ("h8", S, "h5", ("h7", "h6", "h5")),
        ("e4", SW, "c2", ("d3", "c2")),
    ],
)
def test_ray_attacks_stop_at_first_blocker(
    square: str, direction: int, blocker: str, expected: tuple
) -> None:
    occ = _bits(blocker, "a8")  # a8 never lies between these squares and blockers
    assert ray_attacks(str_to_square(square), direction, occ) == _bits(*expected)


def test_slider_attacks_on_empty_board() -> None:
    d4 = str_to_square("d4")
    assert rook_attacks(0, 0).bit_count() == 14
    assert bishop_attacks(d4, 0).bit_count() == 13
    assert queen_attacks(d4, 0).bit_count() == 27


def test_between() -> None:
    assert between(0, 63) == _bits("b2", "c3", "d4", "e5", "f6", "g7")
    assert between(63, 0) == between(0, 63)
    assert between(str_to_square("e1"), str_to_square("e4")) == _bits("e2", "e3")
    # Adjacent or unaligned squares have nothing between them
    assert between(0, 1) == 0
    assert between(0, str_to_square("c2")) == 0
