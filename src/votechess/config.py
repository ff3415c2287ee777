"""
Configuration and environment loading for votechess.

- Loads .env (python-dotenv) and settings.yml (YAML) from repo root, or from VOTECHESS_SETTINGS.
- YAML keys take precedence over environment variables.
- Exposes SETTINGS with keys used across the project (token, bot id, voting window, challenge policy knobs).
"""
from dataclasses import dataclass
import os
from typing import Any, Callable

import yaml
from dotenv import load_dotenv

load_dotenv()


def _repo_root() -> str:
    # this file: src/votechess/config.py → repo root is two levels up
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))


def _load_yaml(path: str) -> dict:
    if not os.path.isfile(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return data if isinstance(data, dict) else {}


def _split_csv(val: Any) -> tuple[str, ...]:
    if isinstance(val, (list, tuple)):
        items = [str(v) for v in val]
    else:
        items = str(val or "").split(",")
    return tuple(i.strip().lower() for i in items if i.strip())


def _as_bool(val: Any) -> bool:
    if isinstance(val, bool):
        return val
    return str(val).strip().lower() in ("1", "true", "yes", "y", "on")


@dataclass(frozen=True)
class Settings:
    # Lichess identity
    lichess_token: str
    bot_id: str

    # Timing
    vote_seconds: float
    abort_seconds: float

    # Challenge acceptance
    variants: tuple[str, ...]
    speed: str
    min_increment: int
    min_limit: int
    rated: bool

    # Moderation / ops
    moderation_path: str
    moderators: tuple[str, ...]
    status_port: int
    log_level: str


def load_settings(path: str | None = None) -> Settings:
    """Build Settings from a YAML file (if present) layered over environment variables."""
    path = path or os.environ.get("VOTECHESS_SETTINGS") or os.path.join(_repo_root(), "settings.yml")
    cfg = _load_yaml(path)

    def _get(name: str, default: Any, cast: Callable[[Any], Any] | None = None) -> Any:
        if name in cfg:
            val = cfg[name]
            return cast(val) if cast else val
        env = os.environ.get(name)
        if env is not None:
            return cast(env) if cast else env
        return default

    return Settings(
        lichess_token=_get("LICHESS_API_TOKEN", ""),
        bot_id=str(_get("VOTECHESS_BOT_ID", "")).lower(),
        vote_seconds=float(_get("VOTE_SECONDS", 15.0, cast=float)),
        abort_seconds=float(_get("VOTECHESS_ABORT_SECONDS", 60.0, cast=float)),
        variants=_get("VOTECHESS_VARIANTS", ("standard", "crazyhouse"), cast=_split_csv),
        speed=str(_get("VOTECHESS_SPEED", "rapid")).lower(),
        min_increment=int(_get("VOTECHESS_MIN_INCREMENT", 15, cast=int)),
        min_limit=int(_get("VOTECHESS_MIN_LIMIT", 30, cast=int)),
        rated=_get("VOTECHESS_RATED", False, cast=_as_bool),
        moderation_path=_get("VOTECHESS_MODERATION_PATH", os.path.join(_repo_root(), "moderation.json")),
        moderators=_get("VOTECHESS_MODERATORS", (), cast=_split_csv),
        status_port=int(_get("VOTECHESS_STATUS_PORT", 8000, cast=int)),
        log_level=str(_get("VOTECHESS_LOG_LEVEL", "INFO")).upper(),
    )


SETTINGS = load_settings()
