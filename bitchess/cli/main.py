from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import List, Optional

from bitchess.engine.errors import ChessError
from bitchess.engine.game import Game
from bitchess.engine.perft import divide, perft
from bitchess.engine.position import STARTPOS_FEN, Position
from bitchess.eval import material
from bitchess.search.service import SearchService


logger = logging.getLogger(__name__)


def _game(args: argparse.Namespace) -> Game:
    start = Position.from_fen(args.fen)
    return Game.from_moves(getattr(args, "moves", None) or [], start=start)


def cmd_perft(args: argparse.Namespace) -> int:
    position = _game(args).position
    started = time.perf_counter()
    if args.divide:
        counts = divide(position, args.depth)
        for uci in sorted(counts):
            print(f"{uci}: {counts[uci]}")
        nodes = sum(counts.values())
    else:
        nodes = perft(position, args.depth)
    dt = time.perf_counter() - started
    print(f"nodes={nodes} depth={args.depth} time_ms={int(dt*1000)} nps={int(nodes/max(dt,1e-9))}")
    return 0


def cmd_moves(args: argparse.Namespace) -> int:
    for move in _game(args).legal_moves():
        print(move.to_uci())
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    game = _game(args)
    status = game.status()
    print(f"fen={game.to_fen()}")
    print(f"in_check={status.in_check}")
    print(f"checkmate={status.checkmate}")
    print(f"stalemate={status.stalemate}")
    print(f"fifty_moves={status.fifty_moves}")
    print(f"lack_of_material={status.lack_of_material}")
    print(f"repetition={status.repetitions}")
    print(f"result={status.result or '-'}")
    return 0


def cmd_fen(args: argparse.Namespace) -> int:
    print(_game(args).to_fen())
    return 0


def cmd_search(args: argparse.Namespace) -> int:
    game = _game(args)
    service = SearchService(material, rules=game.rules)
    result = service.search(game.position, depth=args.depth, history=game.prior_occurrences())
    best = result.best_move.to_uci() if result.best_move else "(none)"
    score = f"mate {result.mate_in}" if result.mate_in is not None else f"cp {result.score_cp}"
    pv = " ".join(m.to_uci() for m in result.pv)
    print(f"bestmove {best}")
    print(
        f"info depth {result.depth} score {score} nodes {result.nodes} "
        f"time {result.time_ms} pv {pv}"
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bitchess", description="Bitboard chess rules engine")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def add_position_args(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "--fen", type=str, default=STARTPOS_FEN, help="FEN string (default: startpos)"
        )
        p.add_argument("--moves", nargs="*", default=[], help="UCI moves played from --fen")

    p = sub.add_parser("perft", help="Count leaf nodes of the legal move tree")
    add_position_args(p)
    p.add_argument("--depth", type=int, default=3, help="Perft depth (default: 3)")
    p.add_argument("--divide", action="store_true", help="Print the count per root move")
    p.set_defaults(func=cmd_perft)

    p = sub.add_parser("moves", help="List legal moves in UCI notation")
    add_position_args(p)
    p.set_defaults(func=cmd_moves)

    p = sub.add_parser("status", help="Show check, mate and draw flags")
    add_position_args(p)
    p.set_defaults(func=cmd_status)

    p = sub.add_parser("fen", help="Print the FEN after playing --moves")
    add_position_args(p)
    p.set_defaults(func=cmd_fen)

    p = sub.add_parser("search", help="Fixed-depth material search")
    add_position_args(p)
    p.add_argument("--depth", type=int, default=2, help="Search depth in plies (default: 2)")
    p.set_defaults(func=cmd_search)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level))
    try:
        return args.func(args)
    except ChessError as e:
        logger.debug("command failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
