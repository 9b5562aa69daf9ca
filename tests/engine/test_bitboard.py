from __future__ import annotations

import pytest

from bitchess.engine.bitboard import (
    E,
    FILE_A,
    FILE_H,
    MASK64,
    N,
    NE,
    RANK_1,
    RANK_8,
    SW,
    W,
    Bitboard,
    and_,
    iter_squares_reversed,
    lsb,
    msb,
    not_,
    or_,
    xor,
)
from bitchess.engine.errors import EmptyBitboardError


def test_from_squares_sets_bits() -> None:
    b = Bitboard.from_squares(0, 63)
    assert b.value == 1 | (1 << 63)
    assert len(b) == 2
    assert 0 in b and 63 in b and 1 not in b
    assert list(b) == [0, 63]


def test_from_squares_rejects_out_of_range() -> None:
    with pytest.raises(ValueError):
        Bitboard.from_squares(64)


def test_value_is_masked_to_64_bits() -> None:
    assert Bitboard(1 << 64).value == 0
    assert Bitboard(-1).value == MASK64


def test_bitboard_is_immutable() -> None:
    b = Bitboard(1)
    with pytest.raises(AttributeError):
        b._value = 2  # type: ignore[misc]
    assert b.value == 1


def test_pop_first_and_pop_last() -> None:
    b = Bitboard.from_squares(3, 10, 40)
    low, rest = b.pop_first()
    assert low == Bitboard.from_squares(3)
    assert rest == Bitboard.from_squares(10, 40)
    high, rest = b.pop_last()
    assert high == Bitboard.from_squares(40)
    assert rest == Bitboard.from_squares(3, 10)
    # Receiver untouched
    assert len(b) == 3


def test_pop_on_empty_raises() -> None:
    empty = Bitboard()
    with pytest.raises(EmptyBitboardError):
        empty.pop_first()
    with pytest.raises(EmptyBitboardError):
        empty.pop_last()
    # Still a ValueError for callers that only know the builtin hierarchy
    with pytest.raises(ValueError):
        empty.first_square()


def test_first_and_last_square() -> None:
    b = Bitboard.from_squares(5, 12, 33)
    assert b.first_square() == 5
    assert b.last_square() == 33
    assert lsb(b.value) == 5 and msb(b.value) == 33
    assert list(iter_squares_reversed(b.value)) == [33, 12, 5]


def test_raw_shifts_truncate() -> None:
    assert Bitboard(1 << 63).shift_left(1) == Bitboard()
    assert Bitboard(1).shift_right(1) == Bitboard()
    assert Bitboard(1).shift_left(9).value == 1 << 9
    with pytest.raises(ValueError):
        Bitboard(1).shift_left(-1)


def test_directional_shift_drops_edge_squares() -> None:
    assert Bitboard(FILE_H).shift(E) == Bitboard()
    assert Bitboard(FILE_A).shift(W) == Bitboard()
    assert Bitboard(RANK_8).shift(N) == Bitboard()
    assert Bitboard(RANK_1).shift(SW) == Bitboard()
    assert Bitboard.from_squares(0).shift(NE) == Bitboard.from_squares(9)
    assert Bitboard.from_squares(0).shift(N, 3) == Bitboard.from_squares(24)
    # h-file square does not wrap onto the a-file of the next rank
    assert Bitboard.from_squares(7).shift(E) == Bitboard()


def test_set_operations() -> None:
    a = Bitboard(FILE_A)
    r = Bitboard(RANK_1)
    assert and_(a, r) == Bitboard.from_squares(0)
    assert (a & r) == Bitboard.from_squares(0)
    assert len(or_(a, r)) == 15
    assert len(xor(a, r)) == 14
    assert (a ^ a) == Bitboard()
    assert not_(0) == Bitboard(MASK64)
    assert ~Bitboard(MASK64) == Bitboard()
    # Identity of the empty intersection is the full board
    assert and_() == Bitboard(MASK64)
    assert or_() == Bitboard()


def test_operations_accept_raw_ints() -> None:
    assert and_(FILE_A, RANK_1, Bitboard(1)) == Bitboard(1)
    assert or_(1, 2) == Bitboard(3)


def test_equality_and_hash_follow_value() -> None:
    assert Bitboard(5) == Bitboard(5)
    assert hash(Bitboard(5)) == hash(Bitboard(5))
    assert len({Bitboard(5), Bitboard(5), Bitboard(6)}) == 2
    assert bool(Bitboard()) is False
