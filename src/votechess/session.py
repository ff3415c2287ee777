"""
Single-game session: the vote-driven state machine for one game.

- GameSession: built from a gameFull event, discarded at game end.
  - start(): replays prior moves into the PositionOracle, posts instructions, then opens a
    voting round (bot to move) or waits on the opponent.
  - on_update(): applies opponent moves that hand the bot the move and opens the next round.
  - on_chat(): routes spectator chat to moderation commands or the VoteLedger.
  - on_vote_deadline(): resolves the round via VoteResolver and commits one move or resignation;
    an unusable round is re-armed instead.
  - on_abort_deadline(): aborts a game whose opponent never moved.
  - end(): cancels every timer and closes the ledger.

All methods are expected to run on a single dispatcher thread (see runner.EventLoop).
"""
from __future__ import annotations

import logging
import random
from enum import Enum
from typing import Protocol

from .events import ChatLine, GameStart, GameState
from .ledger import VoteLedger
from .moderation import ModerationStore
from .oracle import PositionOracle
from .resolver import Resolution, VoteResolver
from .timers import OneShotTimer, Scheduler

INSTRUCTIONS = "Use /<move> to vote for a move, e.g. /e4 or /O-O, or /resign to vote for resignation."
GREETING = "You're playing against the crowd - good luck!"
FAREWELL = "Good game!"
NO_VOTES = "No votes received, waiting for votes."

# Lichess only lets either side abort before both have moved
ABORTABLE_PLIES = 2


class Transport(Protocol):
    def make_move(self, game_id: str, move: str) -> bool: ...
    def resign(self, game_id: str) -> bool: ...
    def abort(self, game_id: str) -> bool: ...
    def send_chat(self, game_id: str, room: str, text: str) -> bool: ...


class SessionState(str, Enum):
    WAITING_ON_OPPONENT = "waiting_on_opponent"
    COLLECTING_VOTES = "collecting_votes"
    FINISHED = "finished"


def _fmt_seconds(seconds: float) -> str:
    return f"{seconds:g}"


def _other(color: str) -> str:
    return "black" if color == "white" else "white"


class GameSession:
    def __init__(self, game: GameStart, bot_id: str, transport: Transport, moderation: ModerationStore,
                 scheduler: Scheduler, vote_seconds: float = 15.0, abort_seconds: float = 60.0,
                 rng: random.Random | None = None):
        self.log = logging.getLogger("GameSession")
        bot_id = bot_id.lower()
        if bot_id == game.white_id:
            self.color = "white"
        elif bot_id == game.black_id:
            self.color = "black"
        else:
            raise ValueError(f"Bot {bot_id!r} is not playing game {game.game_id}")
        self.game = game
        self.game_id = game.game_id
        self.transport = transport
        self.moderation = moderation
        self.vote_seconds = vote_seconds
        self.oracle = PositionOracle(game.variant, game.initial_fen)
        self._first_mover = self.oracle.current_turn()
        self.ledger = VoteLedger()
        self.resolver = VoteResolver(rng)
        self.round_timer = OneShotTimer(scheduler, "vote", vote_seconds, self.on_vote_deadline)
        self.abort_watch = OneShotTimer(scheduler, "abort", abort_seconds, self.on_abort_deadline)
        self.state = SessionState.WAITING_ON_OPPONENT
        self.waiting_for_votes = False
        self.resigned = False
        self.aborted = False
        self.rounds_committed = 0
        self.last_resolution: Resolution | None = None

    # ---------------- Helpers -----------------
    def chat_spectator(self, text: str) -> None:
        self.transport.send_chat(self.game_id, "spectator", text)

    def chat_player(self, text: str) -> None:
        self.transport.send_chat(self.game_id, "player", text)

    @property
    def finished(self) -> bool:
        return self.state is SessionState.FINISHED

    def is_our_turn(self, moves: tuple[str, ...] | None = None) -> bool:
        """Whose move it is, from the remote move list parity or else the local oracle."""
        if moves is not None:
            to_move = self._first_mover if len(moves) % 2 == 0 else _other(self._first_mover)
            return to_move == self.color
        return self.oracle.current_turn() == self.color

    # ---------------- Lifecycle -----------------
    def start(self) -> None:
        applied = self.oracle.replay(self.game.moves)
        if self.game.moves:
            self.log.info("Restored %d/%d moves for game %s", applied, len(self.game.moves), self.game_id)
        self.ledger.clear()
        self.chat_spectator(INSTRUCTIONS)
        self.chat_player(GREETING)
        if self.oracle.is_game_over():
            return
        if self.is_our_turn():
            self._open_round()
        else:
            self._wait_on_opponent()

    def end(self, farewell: bool = True) -> None:
        was_finished = self.finished
        self.round_timer.cancel()
        self.abort_watch.cancel()
        self.ledger.clear()
        self.ledger.close()
        self.state = SessionState.FINISHED
        if farewell:
            self.chat_player(FAREWELL)
        if not was_finished:
            self.log.info("Game %s ended", self.game_id)

    def _open_round(self) -> None:
        self.ledger.clear()
        self.ledger.open()
        self.state = SessionState.COLLECTING_VOTES
        self.chat_spectator(f"Voting ends in {_fmt_seconds(self.vote_seconds)} seconds.")
        self.round_timer.arm()

    def _wait_on_opponent(self) -> None:
        self.ledger.close()
        self.state = SessionState.WAITING_ON_OPPONENT
        self.abort_watch.cancel()
        if self.oracle.move_count() < ABORTABLE_PLIES:
            self.abort_watch.arm()

    # ---------------- Inbound events -----------------
    def on_update(self, update: GameState) -> None:
        if self.finished:
            return
        moves = update.moves
        if not self.is_our_turn(moves):
            return
        if len(moves) <= self.oracle.move_count():
            self.log.debug("Ignoring stale update with %d moves", len(moves))
            return
        self.abort_watch.cancel()
        if len(moves) < ABORTABLE_PLIES:
            self.abort_watch.arm()
        new_move = moves[-1]
        result = None
        if len(moves) == self.oracle.move_count() + 1:
            result = self.oracle.apply_move(new_move)
        if result is None:
            self.log.warning("Local position out of step at %r; replaying %d moves", new_move, len(moves))
            self.oracle.replay(moves)
        self.log.info("Got opponent move: %s result: %s", new_move, result.san if result else "(resynced)")
        if self.oracle.is_game_over():
            self.ledger.close()
            return
        self._open_round()

    def on_chat(self, chat: ChatLine) -> None:
        if chat.room != "spectator":
            return
        user = chat.username
        if self.moderation.is_banned(user):
            self.log.info("Ignoring chat from banned user %s: %s", user, chat.text)
            return
        if self._moderate(user, chat.text):
            return
        self.record_vote(user, chat.text)

    def _moderate(self, user: str, text: str) -> bool:
        parts = text.split()
        if len(parts) < 2 or parts[0] not in ("/ban", "/unban", "/mod"):
            return False
        if not self.moderation.is_moderator(user):
            return False
        target = parts[1]
        if parts[0] == "/ban":
            self.moderation.ban(target)
        elif parts[0] == "/unban":
            self.moderation.unban(target)
        else:
            self.moderation.promote(target)
        return True

    def record_vote(self, user: str, text: str) -> bool:
        if not text.startswith("/"):
            return False
        tokens = text[1:].strip().split()
        if not tokens:
            return False
        if self.finished or not self.is_our_turn():
            self.log.info("Not recording vote from %s: bot plays %s, %s to move",
                          user, self.color, self.oracle.current_turn())
            return False
        proposal = tokens[0]
        recorded = self.ledger.record(user, proposal)
        if recorded:
            self.log.info("Recording vote from %s: %s", user, proposal)
        return recorded

    # ---------------- Timers -----------------
    def on_vote_deadline(self) -> None:
        if self.state is not SessionState.COLLECTING_VOTES:
            return
        resolution = self.resolver.resolve(self.ledger.snapshot(), self.oracle)
        self.last_resolution = resolution
        self.log.info("Tally for game %s: %s", self.game_id, resolution.tally)
        if not resolution.usable:
            self._rearm_round()
            return
        self.waiting_for_votes = False
        winner = resolution.winner
        if resolution.random_pick:
            names = ", ".join(c.key for c in resolution.tied)
            self.chat_spectator(f"The following moves tied with {resolution.votes} votes: {names}")
            self.chat_spectator(f"Randomly chosen winner: {winner.key}")
        elif winner.is_resign:
            self.chat_spectator(f"Resignation won with {resolution.votes} votes.")
        else:
            self.chat_spectator(f"{winner.key} won with {resolution.votes} votes.")

        if winner.is_resign:
            self._commit_resignation()
        else:
            self._commit_move(winner.key)

    def _rearm_round(self) -> None:
        self.log.info("No usable votes in game %s", self.game_id)
        if not self.waiting_for_votes:
            self.chat_spectator(NO_VOTES)
        self.waiting_for_votes = True
        self.ledger.clear()
        self.round_timer.arm()

    def _commit_move(self, san: str) -> None:
        result = self.oracle.apply_move(san, lenient=False)
        if result is None:
            # canonical SAN came from this exact position; only a desync gets here
            self.log.error("Winning move %s no longer applies in game %s", san, self.game_id)
            self._rearm_round()
            return
        if not self.transport.make_move(self.game_id, result.descriptor):
            self.log.error("Move %s (%s) rejected for game %s; reopening round", san, result.descriptor, self.game_id)
            self.oracle.undo_last_move()
            self._open_round()
            return
        self.log.info("Played %s (%s) in game %s", san, result.descriptor, self.game_id)
        self.rounds_committed += 1
        self.ledger.clear()
        self._wait_on_opponent()

    def _commit_resignation(self) -> None:
        self.transport.resign(self.game_id)
        self.resigned = True
        self.rounds_committed += 1
        self.end(farewell=False)

    def on_abort_deadline(self) -> None:
        if self.finished:
            return
        self.log.warning("Opponent did not move in time; aborting game %s", self.game_id)
        self.aborted = True
        self.end(farewell=False)
        self.transport.abort(self.game_id)

    # ---------------- Status -----------------
    def status(self) -> dict:
        res = self.last_resolution
        return {
            "game_id": self.game_id,
            "variant": self.game.variant,
            "color": self.color,
            "state": self.state.value,
            "fen": self.oracle.fen(),
            "moves_played": self.oracle.move_count(),
            "our_turn": self.is_our_turn(),
            "votes_pending": len(self.ledger),
            "round_armed": self.round_timer.armed,
            "abort_armed": self.abort_watch.armed,
            "waiting_for_votes": self.waiting_for_votes,
            "resigned": self.resigned,
            "aborted": self.aborted,
            "last_tally": dict(res.tally) if res else {},
        }
