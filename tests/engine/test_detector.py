from __future__ import annotations

import pytest

from bitchess.engine.detector import DetectedMove, MoveDetector
from bitchess.engine.errors import MoveDetectionError
from bitchess.engine.generator import Generator
from bitchess.engine.move import parse_uci
from bitchess.engine.position import Position


KIWIPETE = "r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1"


@pytest.mark.parametrize(
    ("fen", "uci", "kind", "capture"),
    [
        ("rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1", "e2e4", "normal", False),
        ("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1", "e1g1", "castle", False),
        ("r3k2r/8/8/8/8/8/8/R3K2R b KQkq - 0 1", "e8c8", "castle", False),
        ("4k3/8/8/3Pp3/8/8/8/4K3 w - e6 0 1", "d5e6", "en_passant", True),
        ("k2r4/4P3/8/8/8/8/8/4K3 w - - 0 1", "e7d8n", "promotion", True),
        ("k7/4P3/8/8/8/8/8/4K3 w - - 0 1", "e7e8q", "promotion", False),
        ("4k3/8/8/8/8/8/3p4/4K3 b - - 0 1", "d2d1r", "promotion", False),
        ("4k3/8/8/3p4/4P3/8/8/4K3 w - - 0 1", "e4d5", "normal", True),
    ],
)
def test_detects_each_kind_of_move(fen: str, uci: str, kind: str, capture: bool) -> None:
    parent = Position.from_fen(fen)
    child = parent.apply_move(parse_uci(uci))
    detected = MoveDetector().detect(parent, child)
    assert detected == DetectedMove(move=parse_uci(uci), kind=kind, capture=capture)


def test_detects_every_kiwipete_move() -> None:
    parent = Position.from_fen(KIWIPETE)
    detector = MoveDetector()
    for move, child in Generator().generate_plays(parent):
        assert detector.detect(parent, child).move == move


def test_unrelated_positions_raise() -> None:
    start = Position.startpos()
    two_plies = start.apply_move(parse_uci("e2e4")).apply_move(parse_uci("e7e5"))
    detector = MoveDetector()
    with pytest.raises(MoveDetectionError):
        detector.detect(start, two_plies)
    with pytest.raises(MoveDetectionError):
        detector.detect(start, start)
    assert detector.try_detect(start, two_plies) is None


def test_illegal_transition_is_rejected() -> None:
    # The king "moves" into check: bit diff looks like a king move but no legal move matches
    parent = Position.from_fen("4k3/8/8/8/8/8/3r4/4K3 w - - 0 1")
    child = Position.from_fen("4k3/8/8/8/8/8/3r4/3K4 b - - 1 1")
    with pytest.raises(MoveDetectionError) as exc:
        MoveDetector().detect(parent, child)
    assert exc.value.parent == parent
    assert exc.value.child == child


@pytest.mark.parametrize(
    "child_fen",
    [
        "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 7 1",  # halfmove clock
        "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 2",  # fullmove number
    ],
)
def test_child_with_wrong_move_counters_is_rejected(child_fen: str) -> None:
    parent = Position.startpos()
    child = Position.from_fen(child_fen)
    # Same board as after e2e4, so only the counters differ
    assert child == parent.apply_move(parse_uci("e2e4"))
    with pytest.raises(MoveDetectionError):
        MoveDetector().detect(parent, child)
    assert MoveDetector().try_detect(parent, child) is None
