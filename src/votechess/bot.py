"""
VoteBot: top-level controller across games.

- Idle until a challenge is accepted; acceptable challenges received while busy wait in a
  ChallengeQueue, drained in arrival order once the game ends.
- Incoming stream events (challenge, gameStart, gameFinish, challengeCanceled) arrive via on_event();
  per-game stream events (gameFull, gameState, chatLine) via on_game_event().
- Owns at most one GameSession; each gameFull builds a fresh one, game end discards it.

Challenge acceptance runs on the loop's worker pool and reports back on the dispatcher,
so waiting for Lichess never holds up other events.
"""
from __future__ import annotations

import logging
import random
from typing import Any, Callable, Protocol

from .challenges import ChallengePolicy, ChallengeQueue
from .events import Challenge, ChatLine, GameStart, GameState, event_game_id
from .moderation import ModerationStore
from .session import GameSession, Transport


class BotTransport(Transport, Protocol):
    def accept_challenge(self, challenge_id: str) -> bool: ...
    def decline_challenge(self, challenge_id: str, reason: str = "generic") -> bool: ...


class Loop(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> Any: ...
    def submit(self, fn: Callable[..., Any], *args: Any, callback: Callable[[Any], None]) -> Any: ...


class VoteBot:
    def __init__(self, transport: BotTransport, moderation: ModerationStore, loop: Loop, bot_id: str,
                 policy: ChallengePolicy | None = None, vote_seconds: float = 15.0, abort_seconds: float = 60.0,
                 rng: random.Random | None = None, open_game_stream: Callable[[str], None] | None = None):
        self.log = logging.getLogger("VoteBot")
        self.transport = transport
        self.moderation = moderation
        self.loop = loop
        self.bot_id = bot_id.lower()
        self.policy = policy or ChallengePolicy()
        self.vote_seconds = vote_seconds
        self.abort_seconds = abort_seconds
        self.rng = rng
        self.open_game_stream = open_game_stream
        self.queue = ChallengeQueue()
        self.active_game_id: str | None = None
        self.session: GameSession | None = None
        self.accepting_id: str | None = None  # acceptance in flight
        self.accepted_id: str | None = None   # accepted, waiting for gameStart
        self.games_played = 0

    @property
    def playing(self) -> bool:
        return self.active_game_id is not None

    @property
    def busy(self) -> bool:
        return self.playing or self.accepting_id is not None or self.accepted_id is not None

    # ---------------- Incoming stream -----------------
    def on_event(self, data: dict) -> None:
        kind = data.get("type")
        if kind == "challenge":
            self.on_challenge(Challenge.from_event(data))
        elif kind == "gameStart":
            self.on_game_start(event_game_id(data))
        elif kind == "gameFinish":
            self.on_game_end(event_game_id(data))
        elif kind in ("challengeCanceled", "challengeDeclined"):
            cid = (data.get("challenge") or {}).get("id")
            if cid and self.queue.remove(cid):
                self.log.info("Dropped %s challenge %s from queue", kind, cid)
            if cid and cid == self.accepted_id:
                self.accepted_id = None
                self._next_queue_challenge()
        else:
            self.log.debug("Ignoring event type %s", kind)

    def on_event_stream_end(self) -> None:
        self.log.warning("Event stream closed")

    def on_challenge(self, ch: Challenge) -> None:
        reason = self.policy.decline_reason(ch)
        if reason:
            self.log.info("Declining challenge %s from %s (%s)", ch.id, ch.challenger, reason)
            self.transport.decline_challenge(ch.id, reason)
            return
        if self.busy:
            self.log.info("Queueing challenge %s from %s (%d waiting)", ch.id, ch.challenger, len(self.queue) + 1)
            self.queue.push(ch)
            return
        self._accept(ch)

    def _accept(self, ch: Challenge) -> None:
        self.accepting_id = ch.id
        self.loop.submit(self.transport.accept_challenge, ch.id, callback=lambda ok: self._on_accept_result(ch, ok))

    def _on_accept_result(self, ch: Challenge, ok: Any) -> None:
        if self.accepting_id == ch.id:
            self.accepting_id = None
        if ok is True:
            self.log.info("Accepted challenge %s", ch.id)
            if not self.playing:
                self.accepted_id = ch.id
            return
        self.log.warning("Could not accept challenge %s; trying next", ch.id)
        self._next_queue_challenge()

    def _next_queue_challenge(self) -> None:
        if self.busy:
            return
        ch = self.queue.pop()
        if ch is None:
            return
        self._accept(ch)

    def on_game_start(self, game_id: str | None) -> None:
        if not game_id:
            return
        if self.playing and game_id != self.active_game_id:
            self.log.warning("Game %s started while %s is active", game_id, self.active_game_id)
        self.active_game_id = game_id
        self.accepted_id = None
        self.log.info("New game %s", game_id)
        if self.open_game_stream:
            self.open_game_stream(game_id)

    # ---------------- Game stream -----------------
    def on_game_event(self, game_id: str, data: dict) -> None:
        if game_id != self.active_game_id:
            self.log.debug("Ignoring event for inactive game %s", game_id)
            return
        kind = data.get("type")
        if kind == "gameFull":
            self.on_game_full(GameStart.from_event(data))
        elif kind == "gameState":
            self.on_game_state(GameState.from_event(data))
        elif kind == "chatLine":
            if self.session:
                self.session.on_chat(ChatLine.from_event(data))
        else:
            self.log.debug("Ignoring game event type %s", kind)

    def on_game_full(self, game: GameStart) -> None:
        if self.session:
            # stream reconnected: rebuild from the full history
            self.session.end(farewell=False)
            self.session = None
        if not game.active:
            self.on_game_end(game.game_id)
            return
        self.session = GameSession(
            game,
            bot_id=self.bot_id,
            transport=self.transport,
            moderation=self.moderation,
            scheduler=self.loop,
            vote_seconds=self.vote_seconds,
            abort_seconds=self.abort_seconds,
            rng=self.rng,
        )
        self.session.start()

    def on_game_state(self, state: GameState) -> None:
        if not self.session:
            return
        if not state.active:
            self.log.info("Game %s finished with status %s", self.active_game_id, state.status)
            self.on_game_end(self.active_game_id)
            return
        self.session.on_update(state)

    def on_game_end(self, game_id: str | None) -> None:
        if game_id is None or game_id != self.active_game_id:
            return
        if self.session:
            self.session.end()
            self.session = None
        self.active_game_id = None
        self.games_played += 1
        self.log.info("Game %s ended", game_id)
        self._next_queue_challenge()

    # ---------------- Status -----------------
    def status(self) -> dict:
        return {
            "bot_id": self.bot_id,
            "playing": self.playing,
            "active_game_id": self.active_game_id,
            "game": self.session.status() if self.session else None,
            "queue": self.queue.ids(),
            "accepting": self.accepting_id,
            "games_played": self.games_played,
        }
