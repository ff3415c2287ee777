"""
Typed inbound events parsed from Lichess Bot API stream payloads.

The incoming-event stream yields challenge / gameStart / gameFinish / challengeCanceled dicts;
each game stream yields gameFull / gameState / chatLine dicts. Only the fields the bot uses are kept.
All events are frozen so they can cross from stream reader threads to the dispatcher safely.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Room = Literal["player", "spectator"]

# Lichess game statuses that mean the game is still being played
ACTIVE_STATUSES = frozenset({"created", "started"})


def _split_moves(moves: str | None) -> tuple[str, ...]:
    return tuple((moves or "").split())


@dataclass(frozen=True)
class Challenge:
    id: str
    rated: bool
    variant: str
    time_control_type: str
    speed: str
    increment: int
    limit: int
    challenger: str = ""

    @classmethod
    def from_event(cls, data: dict) -> "Challenge":
        ch = data.get("challenge", data)
        tc = ch.get("timeControl") or {}
        return cls(
            id=ch["id"],
            rated=bool(ch.get("rated", False)),
            variant=(ch.get("variant") or {}).get("key", ""),
            time_control_type=tc.get("type", ""),
            speed=ch.get("speed", ""),
            increment=int(tc.get("increment") or 0),
            limit=int(tc.get("limit") or 0),
            challenger=((ch.get("challenger") or {}).get("id") or ""),
        )


@dataclass(frozen=True)
class GameStart:
    game_id: str
    variant: str
    white_id: str
    black_id: str
    moves: tuple[str, ...] = ()
    status: str = "started"
    initial_fen: str = "startpos"

    @property
    def active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @classmethod
    def from_event(cls, data: dict) -> "GameStart":
        state = data.get("state") or {}
        return cls(
            game_id=data["id"],
            variant=(data.get("variant") or {}).get("key", "standard"),
            white_id=((data.get("white") or {}).get("id") or "").lower(),
            black_id=((data.get("black") or {}).get("id") or "").lower(),
            moves=_split_moves(state.get("moves")),
            status=state.get("status", "started"),
            initial_fen=data.get("initialFen") or "startpos",
        )


@dataclass(frozen=True)
class GameState:
    moves: tuple[str, ...]
    status: str = "started"

    @property
    def active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @classmethod
    def from_event(cls, data: dict) -> "GameState":
        return cls(moves=_split_moves(data.get("moves")), status=data.get("status", "started"))


@dataclass(frozen=True)
class ChatLine:
    room: Room
    username: str
    text: str

    @classmethod
    def from_event(cls, data: dict) -> "ChatLine":
        return cls(room=data.get("room", "player"), username=data.get("username", ""), text=data.get("text", ""))


def event_game_id(data: dict) -> str | None:
    """Game id carried by gameStart / gameFinish events."""
    game = data.get("game") or {}
    return game.get("gameId") or game.get("id")
