from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from .bitboard import iter_squares, iter_squares_reversed
from .geometry import (
    BISHOP_DIRECTIONS,
    BLACK,
    KING_ATTACKS,
    KNIGHT_ATTACKS,
    PAWN_ATTACKS,
    POSITIVE_DIRECTIONS,
    QUEEN_DIRECTIONS,
    ROOK_DIRECTIONS,
    WHITE,
    between,
    bishop_attacks,
    ray_attacks,
    rook_attacks,
)
from .move import PROMOTION_PIECES, Move
from .position import (
    BISHOP,
    KING,
    KNIGHT,
    PAWN,
    QUEEN,
    ROOK,
    Position,
    side_offset,
)


def _castling_path(right: str, king_from: int, king_to: int, rook_from: int) -> tuple:
    """(rights letter, king from, king to, rook from, mask that must be empty,
    mask of the squares the king stands on or crosses)."""
    empty = between(king_from, rook_from)
    path = between(king_from, king_to) | (1 << king_from) | (1 << king_to)
    return (right, king_from, king_to, rook_from, empty, path)


CASTLING_PATHS = {
    "w": (_castling_path("K", 4, 6, 7), _castling_path("Q", 4, 2, 0)),
    "b": (_castling_path("k", 60, 62, 63), _castling_path("q", 60, 58, 56)),
}

SLIDERS = ((BISHOP, BISHOP_DIRECTIONS), (ROOK, ROOK_DIRECTIONS), (QUEEN, QUEEN_DIRECTIONS))


def is_square_attacked(bb: Sequence[int], sq: int, *, by_white: bool) -> bool:
    """Return True if ``sq`` is attacked by the given side on bitboards ``bb``.

    This is the only attack test in the engine: the legality filter, the
    castling checks and the rules layer all go through it.
    """
    off = 0 if by_white else 6
    # A white pawn attacks sq from the squares a black pawn on sq would capture
    if PAWN_ATTACKS[BLACK if by_white else WHITE][sq] & bb[off + PAWN]:
        return True
    if KNIGHT_ATTACKS[sq] & bb[off + KNIGHT]:
        return True
    if KING_ATTACKS[sq] & bb[off + KING]:
        return True
    occ = 0
    for b in bb:
        occ |= b
    queens = bb[off + QUEEN]
    diagonal = bb[off + BISHOP] | queens
    if diagonal and bishop_attacks(sq, occ) & diagonal:
        return True
    straight = bb[off + ROOK] | queens
    if straight and rook_attacks(sq, occ) & straight:
        return True
    return False


class Generator:
    """Legal move generation by generate-then-validate.

    Pseudo-legal moves come from the precomputed geometry tables; each one is
    played on a trial child and kept only when the mover's king is not
    attacked afterwards. Output order is fixed: pawns, knights, bishops,
    rooks, queens, king; origin squares ascending; targets by direction.
    """

    def generate_moves(self, position: Position) -> List[Move]:
        return [move for move, _ in self.generate_plays(position)]

    def generate_children(self, position: Position) -> List[Position]:
        return [child for _, child in self.generate_plays(position)]

    def generate_plays(self, position: Position) -> List[Tuple[Move, Position]]:
        """Return every legal move paired with the position it leads to."""
        by_white = position.side_to_move == "b"
        king_index = side_offset(position.side_to_move) + KING
        plays: List[Tuple[Move, Position]] = []
        for move in self.pseudo_legal_moves(position):
            child = position.apply_move(move, validate=False)
            king_bb = child.bb[king_index]
            if not king_bb:
                continue
            king_sq = (king_bb & -king_bb).bit_length() - 1
            if not is_square_attacked(child.bb, king_sq, by_white=by_white):
                plays.append((move, child))
        return plays

    def has_legal_moves(self, position: Position) -> bool:
        by_white = position.side_to_move == "b"
        king_index = side_offset(position.side_to_move) + KING
        for move in self.pseudo_legal_moves(position):
            child = position.apply_move(move, validate=False)
            king_bb = child.bb[king_index]
            if king_bb and not is_square_attacked(
                child.bb, (king_bb & -king_bb).bit_length() - 1, by_white=by_white
            ):
                return True
        return False

    def is_attacked(self, position: Position, sq: int, by_side: str) -> bool:
        return is_square_attacked(position.bb, sq, by_white=by_side == "w")

    def is_in_check(self, position: Position, side: Optional[str] = None) -> bool:
        """Return True if ``side`` (default: side to move) is in check.

        A side without a king is never in check.
        """
        s = side or position.side_to_move
        if s not in ("w", "b"):
            raise ValueError("side must be 'w' or 'b'")
        king_sq = position.king_square(s)
        if king_sq is None:
            return False
        return is_square_attacked(position.bb, king_sq, by_white=s == "b")

    # --- Pseudo-legal generation ---
    def pseudo_legal_moves(self, position: Position) -> List[Move]:
        """Moves that obey piece movement but may leave the king in check."""
        bb = position.bb
        side = position.side_to_move
        white = side == "w"
        own = side_offset(side)
        opp = 6 - own

        own_occ = 0
        for b in bb[own : own + 6]:
            own_occ |= b
        opp_occ = 0
        for b in bb[opp : opp + 6]:
            opp_occ |= b
        occ = own_occ | opp_occ
        free = ~own_occ

        moves: List[Move] = []
        self._pawn_moves(moves, bb[own + PAWN], white, occ, opp_occ, position.ep_square)

        for from_sq in iter_squares(bb[own + KNIGHT]):
            for to_sq in iter_squares(KNIGHT_ATTACKS[from_sq] & free):
                moves.append(Move(from_sq, to_sq))

        for kind, directions in SLIDERS:
            for from_sq in iter_squares(bb[own + kind]):
                for direction in directions:
                    targets = ray_attacks(from_sq, direction, occ) & free
                    ascending = direction in POSITIVE_DIRECTIONS
                    walk = iter_squares if ascending else iter_squares_reversed
                    for to_sq in walk(targets):
                        moves.append(Move(from_sq, to_sq))

        for from_sq in iter_squares(bb[own + KING]):
            for to_sq in iter_squares(KING_ATTACKS[from_sq] & free):
                moves.append(Move(from_sq, to_sq))

        self._castling_moves(moves, position, occ)
        return moves

    def _pawn_moves(
        self,
        moves: List[Move],
        pawns: int,
        white: bool,
        occ: int,
        opp_occ: int,
        ep_square: Optional[int],
    ) -> None:
        push = 8 if white else -8
        start_rank = 1 if white else 6
        promo_rank = 7 if white else 0
        color = WHITE if white else BLACK
        ep_bit = (1 << ep_square) if ep_square is not None else 0

        for from_sq in iter_squares(pawns):
            to_sq = from_sq + push
            if 0 <= to_sq < 64 and not (occ >> to_sq) & 1:
                self._add_pawn_move(moves, from_sq, to_sq, promo_rank)
                if from_sq // 8 == start_rank:
                    to2 = to_sq + push
                    if not (occ >> to2) & 1:
                        moves.append(Move(from_sq, to2))
            captures = PAWN_ATTACKS[color][from_sq] & (opp_occ | ep_bit)
            for to_sq in iter_squares(captures):
                self._add_pawn_move(moves, from_sq, to_sq, promo_rank)

    @staticmethod
    def _add_pawn_move(moves: List[Move], from_sq: int, to_sq: int, promo_rank: int) -> None:
        if to_sq // 8 == promo_rank:
            for promo in PROMOTION_PIECES:
                moves.append(Move(from_sq, to_sq, promotion=promo))
        else:
            moves.append(Move(from_sq, to_sq))

    def _castling_moves(self, moves: List[Move], position: Position, occ: int) -> None:
        if not position.castling:
            return
        side = position.side_to_move
        own = side_offset(side)
        king_bb = position.bb[own + KING]
        rook_bb = position.bb[own + ROOK]
        by_white = side == "b"
        for right, king_from, king_to, rook_from, empty, path in CASTLING_PATHS[side]:
            if right not in position.castling:
                continue
            if not (king_bb >> king_from) & 1 or not (rook_bb >> rook_from) & 1:
                continue
            if occ & empty:
                continue
            if any(
                is_square_attacked(position.bb, sq, by_white=by_white)
                for sq in iter_squares(path)
            ):
                continue
            moves.append(Move(king_from, king_to))
