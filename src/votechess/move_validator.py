"""
Move parsing helpers for free-text vote proposals.

A proposal is parsed against a python-chess board in one of two modes:
- strict: legal SAN (e4, Nf3, O-O, N@f3) or exact UCI (e2e4, e7e8q, P@e4).
- lenient: additionally accepts 0-0/o-o castling, coordinate moves with
  separators (e2-e4, e2xe4), long algebraic with a piece letter (Ng1f3, Ng1-f3),
  lowercase piece letters (nf3), case-insensitive drops (n@f3) and trailing
  annotation glyphs (e4!?).

Anything malformed, ambiguous, illegal or null parses to None; nothing here raises.
"""
from __future__ import annotations

import re

import chess

UCI_RE = re.compile(r"^(?:[a-h][1-8][a-h][1-8][qrbn]?|[PNBRQ]@[a-h][1-8])$")
LONG_RE = re.compile(r"^([PNBRQK])?([a-h][1-8])[-x:]?([a-h][1-8])=?([qrbnQRBN])?[+#]?$")
DROP_RE = re.compile(r"^([pnbrqPNBRQ])@([a-h][1-8])[+#]?$")
CASTLE_ZERO = {"0-0": "O-O", "0-0-0": "O-O-O", "o-o": "O-O", "o-o-o": "O-O-O"}
ANNOTATIONS = "!?"


def _legal(board: chess.Board, mv: chess.Move | None) -> chess.Move | None:
    # python-chess hands back Move.null() for "--" / "0000"; never a votable move
    if not mv:
        return None
    return mv if board.is_legal(mv) else None


def _try_san(board: chess.Board, token: str) -> chess.Move | None:
    try:
        return _legal(board, board.parse_san(token))
    except ValueError:
        return None


def _try_uci(board: chess.Board, token: str) -> chess.Move | None:
    if not UCI_RE.match(token):
        return None
    try:
        return _legal(board, board.parse_uci(token))
    except ValueError:
        return None


def _try_long(board: chess.Board, token: str) -> chess.Move | None:
    m = LONG_RE.match(token)
    if not m:
        return None
    piece, src, dst, promo = m.groups()
    uci = f"{src}{dst}{(promo or '').lower()}"
    mv = _try_uci(board, uci)
    if mv is None or not piece:
        return mv
    moved = board.piece_at(mv.from_square)
    if moved is None or moved.symbol().upper() != piece:
        return None
    return mv


def _try_drop(board: chess.Board, token: str) -> chess.Move | None:
    m = DROP_RE.match(token)
    if not m:
        return None
    return _try_uci(board, f"{m.group(1).upper()}@{m.group(2)}")


def parse_move(board: chess.Board, text: str, lenient: bool = True) -> chess.Move | None:
    """Return the legal move denoted by text in the board's position, or None."""
    token = (text or "").strip()
    if not token:
        return None
    if not lenient:
        return _try_san(board, token) or _try_uci(board, token)

    token = token.split()[0].rstrip(ANNOTATIONS)
    token = CASTLE_ZERO.get(token.lower(), token)
    if not token:
        return None
    mv = _try_san(board, token)
    if mv is None and token[0] in "nrqk":
        # "b" stays a file: bxc3 is a pawn capture
        mv = _try_san(board, token[0].upper() + token[1:])
    if mv is None:
        mv = _try_uci(board, token.lower()) if "@" not in token else None
    if mv is None:
        mv = _try_long(board, token)
    if mv is None:
        mv = _try_drop(board, token)
    return mv


def legal_moves(board: chess.Board) -> list[str]:
    """Return sorted legal UCI moves for the board."""
    return sorted(m.uci() for m in board.legal_moves)


__all__ = ["parse_move", "legal_moves", "UCI_RE", "CASTLE_ZERO"]
