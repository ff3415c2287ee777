"""
PositionOracle: authoritative local board for the active game.

- Owns a python-chess board for the game's variant (standard or crazyhouse).
- Applies moves given in any notation the lenient parser accepts, reports SAN and the wire
  descriptor, supports undo and trial application (apply + undo) for vote canonicalization.
- Replays a full move list to rebuild state after (re)connecting to a game in progress.

Used by GameSession to stay in lockstep with the remote game and by VoteResolver for legality.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

import chess
import chess.variant

from .move_validator import parse_move

BOARD_TYPES: dict[str, type[chess.Board]] = {
    "standard": chess.Board,
    "crazyhouse": chess.variant.CrazyhouseBoard,
}


@dataclass(frozen=True)
class MoveResult:
    san: str
    from_square: Optional[str]
    to_square: str
    drop: Optional[str] = None  # piece letter for crazyhouse drops
    promotion: Optional[str] = None

    @property
    def descriptor(self) -> str:
        """Wire-level move: e2e4, e7e8q, or N@f3 for drops."""
        if self.drop:
            wire = f"{self.drop.upper()}@{self.to_square}"
        else:
            wire = f"{self.from_square}{self.to_square}"
        if self.promotion:
            wire += self.promotion
        return wire

    @classmethod
    def from_move(cls, mv: chess.Move, san: str) -> "MoveResult":
        return cls(
            san=san,
            from_square=None if mv.drop else chess.square_name(mv.from_square),
            to_square=chess.square_name(mv.to_square),
            drop=chess.piece_symbol(mv.drop).upper() if mv.drop else None,
            promotion=chess.piece_symbol(mv.promotion) if mv.promotion else None,
        )


class PositionOracle:
    """Rules collaborator around a python-chess board."""

    def __init__(self, variant: str = "standard", initial_fen: str | None = None):
        self.log = logging.getLogger("PositionOracle")
        board_cls = BOARD_TYPES.get(variant)
        if board_cls is None:
            raise ValueError(f"Unsupported variant: {variant!r}")
        self.variant = variant
        if initial_fen and initial_fen != "startpos":
            self.board = board_cls(initial_fen)
        else:
            self.board = board_cls()

    def apply_move(self, text: str, lenient: bool = True) -> MoveResult | None:
        mv = parse_move(self.board, text, lenient=lenient)
        if mv is None:
            return None
        result = MoveResult.from_move(mv, self.board.san(mv))
        self.board.push(mv)
        return result

    def trial_move(self, text: str) -> MoveResult | None:
        """Canonicalize a proposal without changing the position."""
        result = self.apply_move(text, lenient=True)
        if result is not None:
            self.undo_last_move()
        return result

    def undo_last_move(self) -> None:
        self.board.pop()

    def replay(self, moves: Iterable[str]) -> int:
        """Reset to the start position and apply moves in order; returns how many applied."""
        self._rewind()
        applied = 0
        for text in moves:
            if self.apply_move(text) is None:
                self.log.error("Replay stopped at illegal move %r (ply %d)", text, applied + 1)
                break
            applied += 1
        return applied

    def _rewind(self) -> None:
        # pop back to the root so a custom initial FEN survives
        while self.board.move_stack:
            self.board.pop()

    def current_turn(self) -> str:
        return "white" if self.board.turn == chess.WHITE else "black"

    def is_game_over(self) -> bool:
        return self.board.is_game_over()

    def move_count(self) -> int:
        return len(self.board.move_stack)

    def fen(self) -> str:
        return self.board.fen()
