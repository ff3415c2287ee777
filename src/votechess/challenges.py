"""
Challenge acceptance policy and the FIFO of challenges received while busy.

ChallengePolicy.decline_reason() returns None for an acceptable challenge, else the
Lichess decline reason key to send back (casual, variant, timeControl, tooFast, tooSlow).
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass

from .config import Settings
from .events import Challenge
from .oracle import BOARD_TYPES

SPEED_ORDER = ["ultraBullet", "bullet", "blitz", "rapid", "classical", "correspondence"]


@dataclass(frozen=True)
class ChallengePolicy:
    variants: tuple[str, ...] = ("standard", "crazyhouse")
    speed: str = "rapid"
    min_increment: int = 15
    min_limit: int = 30
    rated: bool = False

    def __post_init__(self):
        unsupported = [v for v in self.variants if v not in BOARD_TYPES]
        if unsupported:
            raise ValueError(f"Variants without a rules backend: {unsupported}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "ChallengePolicy":
        return cls(
            variants=settings.variants,
            speed=settings.speed,
            min_increment=settings.min_increment,
            min_limit=settings.min_limit,
            rated=settings.rated,
        )

    def decline_reason(self, ch: Challenge) -> str | None:
        if ch.rated != self.rated:
            return "casual" if ch.rated else "rated"
        if ch.variant not in self.variants:
            return "variant"
        if ch.time_control_type != "clock":
            return "timeControl"
        if ch.speed != self.speed:
            return self._speed_reason(ch.speed)
        if ch.increment < self.min_increment or ch.limit < self.min_limit:
            return "timeControl"
        return None

    def accepts(self, ch: Challenge) -> bool:
        return self.decline_reason(ch) is None

    def _speed_reason(self, speed: str) -> str:
        if speed in SPEED_ORDER and self.speed in SPEED_ORDER:
            return "tooFast" if SPEED_ORDER.index(speed) < SPEED_ORDER.index(self.speed) else "tooSlow"
        return "timeControl"


class ChallengeQueue:
    """Pending acceptable challenges, served strictly in arrival order."""

    def __init__(self):
        self._items: deque[Challenge] = deque()

    def push(self, ch: Challenge) -> None:
        self._items.append(ch)

    def pop(self) -> Challenge | None:
        return self._items.popleft() if self._items else None

    def remove(self, challenge_id: str) -> bool:
        for ch in self._items:
            if ch.id == challenge_id:
                self._items.remove(ch)
                return True
        return False

    def ids(self) -> list[str]:
        return [ch.id for ch in self._items]

    def __len__(self) -> int:
        return len(self._items)
