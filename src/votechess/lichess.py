"""
Lichess Bot API transport (berserk).

- Streams: incoming account events and one game-state stream per game (generators of dicts).
- Commands: accept/decline challenge, make move, resign, abort, post chat.
  Commands return True/False; berserk ApiError (HTTP or response errors) is logged, never raised.

No retry or reconnect logic lives here; a closed stream is reported to the caller by the
generator simply ending.
"""
from __future__ import annotations

import logging
from typing import Iterator

import berserk
from berserk.exceptions import ApiError

log = logging.getLogger("lichess")


class LichessTransport:
    def __init__(self, token: str, client: berserk.Client | None = None):
        if client is None:
            if not token:
                raise ValueError("LICHESS_API_TOKEN is required")
            client = berserk.Client(session=berserk.TokenSession(token))
        self.client = client

    def account_id(self) -> str:
        return (self.client.account.get() or {}).get("id", "").lower()

    # ---------------- Streams -----------------
    def stream_incoming_events(self) -> Iterator[dict]:
        return self.client.bots.stream_incoming_events()

    def stream_game_state(self, game_id: str) -> Iterator[dict]:
        return self.client.bots.stream_game_state(game_id)

    # ---------------- Commands -----------------
    def _call(self, desc: str, fn, *args, **kwargs) -> bool:
        try:
            fn(*args, **kwargs)
            return True
        except ApiError as e:
            log.warning("%s failed: %s", desc, e)
            return False

    def accept_challenge(self, challenge_id: str) -> bool:
        return self._call(f"accept_challenge({challenge_id})", self.client.bots.accept_challenge, challenge_id)

    def decline_challenge(self, challenge_id: str, reason: str = "generic") -> bool:
        return self._call(f"decline_challenge({challenge_id})", self.client.bots.decline_challenge,
                          challenge_id, reason=reason)

    def make_move(self, game_id: str, move: str) -> bool:
        return self._call(f"make_move({game_id}, {move})", self.client.bots.make_move, game_id, move)

    def resign(self, game_id: str) -> bool:
        return self._call(f"resign_game({game_id})", self.client.bots.resign_game, game_id)

    def abort(self, game_id: str) -> bool:
        return self._call(f"abort_game({game_id})", self.client.bots.abort_game, game_id)

    def send_chat(self, game_id: str, room: str, text: str) -> bool:
        return self._call(f"post_message({game_id}, {room})", self.client.bots.post_message,
                          game_id, text, spectator=(room == "spectator"))
