from __future__ import annotations

import pytest

from bitchess.engine.errors import InvalidFenError
from bitchess.engine.position import BK, STARTPOS_FEN, WK, WP, Position, is_valid_fen


def test_startpos_round_trip() -> None:
    p = Position.from_fen(STARTPOS_FEN)
    assert p.to_fen() == STARTPOS_FEN
    assert Position.startpos() == p


@pytest.mark.parametrize(
    "fen",
    [
        # Mixed pieces and empty squares, some castling rights
        "r1bqkbnr/pppp1ppp/2n5/4p3/3P4/5N2/PPP1PPPP/RNBQKB1R b KQ - 2 3",
        # No castling rights, ep target present on rank 3
        "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b - e3 0 1",
        # ep target on rank 6
        "rnbqkbnr/ppp1pppp/8/3pP3/8/8/PPPP1PPP/RNBQKBNR w KQkq d6 0 3",
        # All castling rights
        "r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1",
        # Large counters
        "8/8/4k3/8/8/4K3/8/8 b - - 99 187",
    ],
)
def test_round_trip_various_positions(fen: str) -> None:
    p = Position.from_fen(fen)
    assert p.to_fen() == fen


def test_placement_is_read_from_rank_eight_down() -> None:
    p = Position.startpos()
    assert p.piece_char_at(0) == "R"
    assert p.piece_char_at(4) == "K"
    assert p.piece_char_at(60) == "k"
    assert p.piece_at(12) == WP
    assert p.piece_at(35) is None
    assert p.bb[WK] == 1 << 4
    assert p.bb[BK] == 1 << 60


def test_castling_rights_are_normalized() -> None:
    p = Position.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w qkQK - 0 1")
    assert p.castling == "KQkq"
    assert p.to_fen().split()[2] == "KQkq"


@pytest.mark.parametrize(
    "fen",
    [
        "",  # empty
        "4k3/8/8/8/8/8/4K3 w - - 0 1",  # not enough ranks
        "4k3/8/8/8/8/8/8/4K3 w - - 0",  # missing fields
        "4k3/8/8/8/8/8/8/4K3 x - - 0 1",  # bad side to move
        "4k3/8/8/8/8/8/8/4K3 w A - 0 1",  # bad castling
        "4k3/8/8/8/8/8/8/4K3 w KK - 0 1",  # duplicate castling letter
        "4k3/8/8/8/8/8/8/4K3 w - z9 0 1",  # bad ep square
        "4k3/8/8/8/8/8/8/4K3 w - - -1 1",  # bad halfmove
        "4k3/8/8/8/8/8/8/4K3 w - - 0 0",  # bad fullmove
        "4k3/8/8/8/8/8/8/4K3 w - - x 1",  # non-numeric counter
        "9/8/8/8/8/8/8/8 w - - 0 1",  # too many squares
        "4k3/8/8/8/8/8/8/4K4 w - - 0 1",  # rank overflows
        "4k3/8/8/8/8/8/8/4K2 w - - 0 1",  # rank too short
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNX w KQkq - 0 1",  # bad piece
        # superscript two is a unicode digit but not an empty count
        "rnbqkbnr/pppppppp/\u00b2\u00b2\u00b2\u00b2/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1",
        "rnbqkbnr/pppppppp/44/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1",  # adjacent empty counts
        "4k3/8/8/8/8/8/8/4K3 w - - +0 1",  # signed halfmove
        "4k3/8/8/8/8/8/8/4K3 w - - 01 1",  # leading zero
        "4k3/8/8/8/8/8/8/4K3 w - - 0 01",  # leading zero fullmove
    ],
)
def test_invalid_fen_syntax_raises(fen: str) -> None:
    with pytest.raises(InvalidFenError):
        Position.from_fen(fen)


@pytest.mark.parametrize(
    "fen",
    [
        "8/8/8/8/8/8/8/8 w - - 0 1",  # no kings
        "4k3/8/8/8/8/8/8/8 w - - 0 1",  # white king missing
        "4k3/8/8/8/8/8/8/3KK3 w - - 0 1",  # two white kings
        "4k2k/8/8/8/8/8/8/4K3 w - - 0 1",  # two black kings
        "P3k3/8/8/8/8/8/8/4K3 w - - 0 1",  # white pawn on rank 8
        "4k3/8/8/8/8/8/8/p3K3 w - - 0 1",  # black pawn on rank 1
        "4k3/8/8/8/8/8/8/4K3 w - e6 0 1",  # ep target without a pawn
        "4k3/8/8/8/4P3/8/8/4K3 w - e3 0 1",  # ep target on the wrong rank
        "4k3/4p3/8/4p3/8/8/8/4K3 w - e6 0 1",  # origin square of the pushed pawn occupied
    ],
)
def test_structurally_impossible_fen_raises(fen: str) -> None:
    with pytest.raises(InvalidFenError) as exc:
        Position.from_fen(fen)
    assert exc.value.fen == fen
    assert exc.value.reason


def test_invalid_fen_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        Position.from_fen("not a fen")


def test_is_valid_fen() -> None:
    assert is_valid_fen(STARTPOS_FEN)
    assert not is_valid_fen("8/8/8/8/8/8/8/8 w - - 0 1")
    assert not is_valid_fen("")
    assert not is_valid_fen(
        "rnbqkbnr/pppppppp/\u00b2\u00b2\u00b2\u00b2/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
    )
