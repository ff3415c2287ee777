"""
Moderation store: banned users and moderators, persisted to a small JSON file.

Usernames are compared case-insensitively. Every change is written through to disk;
a missing or unreadable file starts an empty store (plus any seeded moderators).
"""
from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Iterable

log = logging.getLogger("moderation")


class ModerationStore:
    def __init__(self, path: str | Path | None = None, moderators: Iterable[str] = ()):
        self.path = Path(path) if path else None
        self._lock = threading.Lock()
        self._banned: set[str] = set()
        self._mods: set[str] = {m.lower() for m in moderators}
        self._load()

    def _load(self) -> None:
        if not self.path or not self.path.exists():
            return
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except Exception:
            log.exception("Failed to load moderation state from %s; starting fresh", self.path)
            return
        if isinstance(raw, dict):
            self._banned |= {str(u).lower() for u in raw.get("banned", [])}
            self._mods |= {str(u).lower() for u in raw.get("moderators", [])}

    def _save(self) -> None:
        if not self.path:
            return
        try:
            self.path.write_text(json.dumps(self.snapshot(), indent=2), encoding="utf-8")
        except Exception:
            log.exception("Failed to save moderation state to %s", self.path)

    def snapshot(self) -> dict:
        return {"banned": sorted(self._banned), "moderators": sorted(self._mods)}

    def is_banned(self, username: str) -> bool:
        return (username or "").lower() in self._banned

    def is_moderator(self, username: str) -> bool:
        return (username or "").lower() in self._mods

    def ban(self, username: str) -> None:
        self._update(self._banned.add, username)
        log.info("Banned %s", username)

    def unban(self, username: str) -> None:
        self._update(self._banned.discard, username)
        log.info("Unbanned %s", username)

    def promote(self, username: str) -> None:
        self._update(self._mods.add, username)
        log.info("Promoted %s to moderator", username)

    def _update(self, op, username: str) -> None:
        with self._lock:
            op(username.lower())
            self._save()
