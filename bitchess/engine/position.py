from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import cached_property
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from .bitboard import RANK_1, RANK_8, Bitboard, lsb
from .errors import IllegalMoveError, InvalidFenError
from .move import Move, square_to_str, str_to_square
from .zobrist import compute_hash_from_scratch

if TYPE_CHECKING:  # pragma: no cover
    from .generator import Generator


STARTPOS_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"


# Piece indices for bitboards
WP, WN, WB, WR, WQ, WK, BP, BN, BB, BR, BQ, BK = range(12)
PIECE_ORDER = [WP, WN, WB, WR, WQ, WK, BP, BN, BB, BR, BQ, BK]
PIECE_TO_CHAR = {
    WP: "P",
    WN: "N",
    WB: "B",
    WR: "R",
    WQ: "Q",
    WK: "K",
    BP: "p",
    BN: "n",
    BB: "b",
    BR: "r",
    BQ: "q",
    BK: "k",
}
CHAR_TO_PIECE = {v: k for k, v in PIECE_TO_CHAR.items()}

# Offsets of each kind within a side's block of six bitboards
PAWN, KNIGHT, BISHOP, ROOK, QUEEN, KING = range(6)
PROMOTION_OFFSETS = {"n": KNIGHT, "b": BISHOP, "r": ROOK, "q": QUEEN}

EMPTY_RUN_DIGITS = "12345678"
# Decimal without sign or leading zeros
_COUNTER_RE = re.compile(r"0|[1-9][0-9]*")

# Castling rights lost when a move starts or ends on these squares
CASTLING_RIGHTS_LOST = {0: "Q", 4: "KQ", 7: "K", 56: "q", 60: "kq", 63: "k"}
# King move (from, to) -> rook move (from, to)
CASTLING_ROOK_MOVES = {(4, 6): (7, 5), (4, 2): (0, 3), (60, 62): (63, 61), (60, 58): (56, 59)}


def side_offset(side: str) -> int:
    """Index of the side's pawn bitboard (0 for white, 6 for black)."""
    return 0 if side == "w" else 6


def opponent(side: str) -> str:
    return "b" if side == "w" else "w"


@dataclass(frozen=True, eq=False)
class Position:
    """Immutable board state with bitboards and FEN I/O.

    Notes:
    - Squares are 0..63 (a1=0 .. h8=63), rank-major from white's perspective.
    - Successor states are new instances; nothing mutates an existing one
      except the status memo, which only ever caches derived values.
    - Equality and hashing cover pieces, side, castling and en passant, not
      the move counters.
    """

    # 12 piece bitboards, indexed by constants above
    bb: Tuple[int, ...]
    side_to_move: str = "w"  # 'w' or 'b'
    castling: str = ""  # subset of 'KQkq' or ''
    ep_square: Optional[int] = None
    halfmove_clock: int = 0
    fullmove_number: int = 1
    _status: Dict[str, bool] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.bb, tuple):
            object.__setattr__(self, "bb", tuple(self.bb))
        if len(self.bb) != 12:
            raise ValueError("a position needs exactly 12 bitboards")

    @classmethod
    def startpos(cls) -> "Position":
        """Create a position initialized to the standard starting position."""
        return cls.from_fen(STARTPOS_FEN)

    @classmethod
    def empty(cls) -> "Position":
        """Create a board with no pieces, white to move."""
        return cls(bb=(0,) * 12)

    @classmethod
    def from_fen(cls, fen: str) -> "Position":
        """Create a position from a Forsyth–Edwards Notation (FEN) string.

        Args:
            fen (str): FEN string describing the position to load.

        Returns:
            Position: Position initialized with the state encoded in ``fen``.

        Raises:
            InvalidFenError: If ``fen`` is empty, has the wrong number of
                fields, contains invalid piece placement, castling rights, en
                passant square or move counters, or describes a structurally
                impossible board (king count, pawns on the back ranks, an en
                passant target without the pawn that created it).

        Notes:
            The parser normalizes castling rights ordering to ``KQkq``.
        """
        if not fen or not isinstance(fen, str):
            raise InvalidFenError(fen, "FEN must be a non-empty string")
        parts = fen.strip().split()
        if len(parts) != 6:
            raise InvalidFenError(fen, "FEN must have 6 fields")
        placement, stm, castling, ep, halfmove, fullmove = parts

        # Piece placement
        ranks = placement.split("/")
        if len(ranks) != 8:
            raise InvalidFenError(fen, "board must have 8 ranks")
        bb = [0] * 12
        for rank_idx, rank in enumerate(ranks[::-1]):  # start from rank 1 (bottom)
            file_idx = 0
            prev_digit = False
            for ch in rank:
                if ch in EMPTY_RUN_DIGITS:
                    if prev_digit:
                        raise InvalidFenError(fen, f"adjacent empty counts in rank {rank!r}")
                    file_idx += int(ch)
                    prev_digit = True
                else:
                    prev_digit = False
                    if ch not in CHAR_TO_PIECE:
                        raise InvalidFenError(fen, f"invalid piece {ch!r}")
                    if file_idx >= 8:
                        raise InvalidFenError(fen, f"too many squares in rank {rank!r}")
                    bb[CHAR_TO_PIECE[ch]] |= 1 << (rank_idx * 8 + file_idx)
                    file_idx += 1
            if file_idx != 8:
                raise InvalidFenError(fen, f"rank {rank!r} does not sum to 8 squares")

        if stm not in ("w", "b"):
            raise InvalidFenError(fen, "side to move must be 'w' or 'b'")

        if castling == "-":
            castling = ""
        else:
            if any(ch not in "KQkq" for ch in castling) or len(set(castling)) != len(castling):
                raise InvalidFenError(fen, f"invalid castling rights {castling!r}")
            castling = "".join(c for c in "KQkq" if c in castling)

        ep_square: Optional[int]
        if ep == "-":
            ep_square = None
        else:
            try:
                ep_square = str_to_square(ep)
            except ValueError as e:
                raise InvalidFenError(fen, f"invalid en passant square {ep!r}") from e

        if not (_COUNTER_RE.fullmatch(halfmove) and _COUNTER_RE.fullmatch(fullmove)):
            raise InvalidFenError(fen, "move counters must be plain decimal integers")
        halfmove_clock = int(halfmove)
        fullmove_number = int(fullmove)
        if fullmove_number <= 0:
            raise InvalidFenError(fen, "move counters out of range")

        _validate_structure(fen, bb, stm, ep_square)

        return cls(
            bb=tuple(bb),
            side_to_move=stm,
            castling=castling,
            ep_square=ep_square,
            halfmove_clock=halfmove_clock,
            fullmove_number=fullmove_number,
        )

    def to_fen(self) -> str:
        """Serialize the position into a normalized FEN string."""
        ranks_str: List[str] = []
        for rank_idx in range(7, -1, -1):  # 7..0 maps to ranks 8..1
            run = 0
            row = []
            for file_idx in range(8):
                ch = self.piece_char_at(rank_idx * 8 + file_idx)
                if ch is None:
                    run += 1
                else:
                    if run > 0:
                        row.append(str(run))
                        run = 0
                    row.append(ch)
            if run > 0:
                row.append(str(run))
            ranks_str.append("".join(row))
        placement = "/".join(ranks_str)

        castling = self.castling if self.castling else "-"
        ep = square_to_str(self.ep_square) if self.ep_square is not None else "-"
        return (
            f"{placement} {self.side_to_move} {castling} {ep} "
            f"{self.halfmove_clock} {self.fullmove_number}"
        )

    # --- Queries ---
    def piece_at(self, sq: int) -> Optional[int]:
        """Return the piece index on ``sq`` or ``None`` when empty."""
        for idx in PIECE_ORDER:
            if (self.bb[idx] >> sq) & 1:
                return idx
        return None

    def piece_char_at(self, sq: int) -> Optional[str]:
        piece = self.piece_at(sq)
        return None if piece is None else PIECE_TO_CHAR[piece]

    def bitboard_for(self, piece: int) -> Bitboard:
        return Bitboard(self.bb[piece])

    def occupancy(self, side: Optional[str] = None) -> Bitboard:
        """Occupied squares of ``side``, or of both sides when omitted."""
        if side is None:
            pieces = self.bb
        else:
            off = side_offset(side)
            pieces = self.bb[off : off + 6]
        occ = 0
        for b in pieces:
            occ |= b
        return Bitboard(occ)

    def king_square(self, side: Optional[str] = None) -> Optional[int]:
        kbb = self.bb[side_offset(side or self.side_to_move) + KING]
        return lsb(kbb) if kbb else None

    def material_signature(self) -> Tuple[int, ...]:
        """Counts of P, N, B, R, Q for white followed by black."""
        return tuple(
            self.bb[off + kind].bit_count() for off in (0, 6) for kind in range(KING)
        )

    def pretty(self) -> str:
        rows = []
        for rank in range(7, -1, -1):
            rows.append(" ".join(self.piece_char_at(rank * 8 + f) or "." for f in range(8)))
        return "\n".join(rows)

    # --- Transitions ---
    def apply_move(
        self, move: Move, *, validate: bool = True, generator: Optional["Generator"] = None
    ) -> "Position":
        """Return the position reached by playing ``move``.

        Args:
            move (Move): Move to play.
            validate (bool): When True (default), the move must be among the
                legal moves of this position.
            generator (Optional[Generator]): Generator used for validation;
                a default one is created when omitted.

        Returns:
            Position: A new, structurally independent position.

        Raises:
            IllegalMoveError: If the move is not legal (or, without
                validation, cannot be played at all: no own piece on the
                origin or a missing/misplaced promotion).
        """
        if validate:
            if generator is None:
                from .generator import Generator  # generator imports this module

                generator = Generator()
            if move not in generator.generate_moves(self):
                raise IllegalMoveError(move, self)
        return self._transition(move)

    def _transition(self, move: Move) -> "Position":
        from_sq, to_sq = move.from_sq, move.to_sq
        white = self.side_to_move == "w"
        own = 0 if white else 6
        opp = 6 - own
        from_bit = 1 << from_sq
        to_bit = 1 << to_sq

        moved = None
        for p in range(own, own + 6):
            if self.bb[p] & from_bit:
                moved = p
                break
        if moved is None:
            raise IllegalMoveError(move, self)

        bb = list(self.bb)
        captured = None
        for p in range(opp, opp + 6):
            if bb[p] & to_bit:
                captured = p
                bb[p] ^= to_bit
                break

        bb[moved] ^= from_bit
        kind = moved - own
        ep_square = None
        if kind == PAWN:
            if to_sq == self.ep_square and captured is None and (to_sq - from_sq) % 8 != 0:
                # En passant: the captured pawn sits behind the target square
                victim = to_sq - 8 if white else to_sq + 8
                bb[opp + PAWN] &= ~(1 << victim)
                captured = opp + PAWN
            if abs(to_sq - from_sq) == 16:
                ep_square = (from_sq + to_sq) // 2
            on_last_rank = bool(to_bit & (RANK_8 if white else RANK_1))
            if move.promotion:
                if not on_last_rank:
                    raise IllegalMoveError(move, self)
                bb[own + PROMOTION_OFFSETS[move.promotion]] |= to_bit
            elif on_last_rank:
                raise IllegalMoveError(move, self)
            else:
                bb[moved] |= to_bit
        else:
            if move.promotion:
                raise IllegalMoveError(move, self)
            bb[moved] |= to_bit
            if kind == KING:
                rook_move = CASTLING_ROOK_MOVES.get((from_sq, to_sq))
                if rook_move is not None:
                    rook_from, rook_to = rook_move
                    bb[own + ROOK] = (bb[own + ROOK] & ~(1 << rook_from)) | (1 << rook_to)

        castling = self.castling
        for sq in (from_sq, to_sq):
            lost = CASTLING_RIGHTS_LOST.get(sq)
            if lost and castling:
                castling = "".join(c for c in castling if c not in lost)

        if kind == PAWN or captured is not None:
            halfmove_clock = 0
        else:
            halfmove_clock = self.halfmove_clock + 1

        return Position(
            bb=tuple(bb),
            side_to_move="b" if white else "w",
            castling=castling,
            ep_square=ep_square,
            halfmove_clock=halfmove_clock,
            fullmove_number=self.fullmove_number + (0 if white else 1),
        )

    # --- Identity ---
    @cached_property
    def zobrist_hash(self) -> int:
        return compute_hash_from_scratch(self)

    def key(self) -> Tuple:
        """Structural identity used for equality and repetition."""
        return (self.bb, self.side_to_move, self.castling, self.ep_square)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Position):
            return NotImplemented
        return self.key() == other.key()

    def __hash__(self) -> int:
        return self.zobrist_hash

    # --- Cached status flags (see Rules.set_status) ---
    def _flag(self, name: str) -> bool:
        if name not in self._status:
            from .rules import Rules  # rules imports this module

            Rules().set_status(self)
        return self._status[name]

    @property
    def checkmate(self) -> bool:
        return self._flag("checkmate")

    @property
    def stalemate(self) -> bool:
        return self._flag("stalemate")

    @property
    def draw_by_fifty_moves(self) -> bool:
        return self._flag("fifty_moves")

    @property
    def draw_by_material(self) -> bool:
        return self._flag("lack_of_material")

    @property
    def draw_by_repetition(self) -> bool:
        """Only meaningful after ``Rules.set_status`` was given a history."""
        return self._flag("repetitions")


def _validate_structure(fen: str, bb: List[int], stm: str, ep_square: Optional[int]) -> None:
    for idx, name in ((WK, "white"), (BK, "black")):
        if bb[idx].bit_count() != 1:
            raise InvalidFenError(fen, f"{name} must have exactly one king")
    if (bb[WP] | bb[BP]) & (RANK_1 | RANK_8):
        raise InvalidFenError(fen, "pawns cannot stand on the first or last rank")
    occ = 0
    for b in bb:
        if occ & b:
            raise InvalidFenError(fen, "overlapping pieces")
        occ |= b
    if ep_square is None:
        return
    # White to move: black just pushed, the target is on rank 6 and the pawn on rank 5
    if stm == "w":
        expected_rank, pawn_sq, origin_sq, pawn_bb = 5, ep_square - 8, ep_square + 8, bb[BP]
    else:
        expected_rank, pawn_sq, origin_sq, pawn_bb = 2, ep_square + 8, ep_square - 8, bb[WP]
    if ep_square // 8 != expected_rank:
        raise InvalidFenError(fen, "en passant square on the wrong rank")
    if not (pawn_bb >> pawn_sq) & 1:
        raise InvalidFenError(fen, "no pawn in front of the en passant square")
    if (occ >> ep_square) & 1 or (occ >> origin_sq) & 1:
        raise InvalidFenError(fen, "en passant square or pawn origin is occupied")


def is_valid_fen(fen: str) -> bool:
    """Return True if ``fen`` parses into a structurally sound position."""
    try:
        Position.from_fen(fen)
    except InvalidFenError:
        return False
    return True
