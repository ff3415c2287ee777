"""
Threaded event loop and bot launcher.

- EventLoop: one dispatcher thread drains a queue of callables, so every bot/session handler
  runs to completion without interleaving. Stream readers, threading.Timer fires and worker
  completions only post() into the queue. Handler exceptions are logged, never fatal.
- BotRunner: wires LichessTransport, ModerationStore and VoteBot onto an EventLoop and pumps
  the incoming-event stream plus one game-state stream per started game.
"""
from __future__ import annotations

import concurrent.futures
import logging
import queue
import random
import threading
from typing import Any, Callable

from .bot import VoteBot
from .challenges import ChallengePolicy
from .config import SETTINGS, Settings
from .lichess import LichessTransport
from .moderation import ModerationStore


class EventLoop:
    def __init__(self, max_workers: int = 2):
        self.log = logging.getLogger("EventLoop")
        self._queue: "queue.Queue[tuple[Callable[..., Any], tuple] | None]" = queue.Queue()
        self._executor = concurrent.futures.ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="votechess-worker")
        self._stop = threading.Event()

    def post(self, fn: Callable[..., Any], *args: Any) -> None:
        self._queue.put((fn, args))

    def call_later(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        t = threading.Timer(delay, self.post, args=(callback,))
        t.daemon = True
        t.start()
        return t

    def submit(self, fn: Callable[..., Any], *args: Any, callback: Callable[[Any], None]) -> concurrent.futures.Future:
        """Run fn on a worker; callback(result) runs later on the dispatcher (None on failure)."""
        fut = self._executor.submit(fn, *args)
        fut.add_done_callback(lambda f: self.post(self._deliver, f, callback))
        return fut

    def _deliver(self, fut: concurrent.futures.Future, callback: Callable[[Any], None]) -> None:
        try:
            result = fut.result()
        except Exception:
            self.log.exception("Background task failed")
            result = None
        callback(result)

    def call(self, fn: Callable[..., Any], *args: Any, timeout: float = 5.0) -> Any:
        """Run fn on the dispatcher from another thread and wait for its result."""
        fut: concurrent.futures.Future = concurrent.futures.Future()

        def _run():
            try:
                fut.set_result(fn(*args))
            except Exception as e:
                fut.set_exception(e)

        self.post(_run)
        return fut.result(timeout=timeout)

    def spawn(self, name: str, target: Callable[..., Any], *args: Any) -> threading.Thread:
        t = threading.Thread(target=target, args=args, name=name, daemon=True)
        t.start()
        return t

    def run_forever(self) -> None:
        while not self._stop.is_set():
            item = self._queue.get()
            if item is None:
                break
            fn, args = item
            try:
                fn(*args)
            except Exception:
                self.log.exception("Handler %s failed", getattr(fn, "__name__", fn))

    def stop(self) -> None:
        self._stop.set()
        self._queue.put(None)
        self._executor.shutdown(wait=False)


class BotRunner:
    def __init__(self, settings: Settings = SETTINGS, transport: LichessTransport | None = None,
                 loop: EventLoop | None = None, rng: random.Random | None = None):
        self.log = logging.getLogger("BotRunner")
        self.settings = settings
        self.transport = transport or LichessTransport(settings.lichess_token)
        self.loop = loop or EventLoop()
        self.moderation = ModerationStore(settings.moderation_path, settings.moderators)
        bot_id = settings.bot_id or self.transport.account_id()
        if not bot_id:
            raise ValueError("Could not determine bot account id; set VOTECHESS_BOT_ID")
        self.bot = VoteBot(
            self.transport,
            self.moderation,
            self.loop,
            bot_id=bot_id,
            policy=ChallengePolicy.from_settings(settings),
            vote_seconds=settings.vote_seconds,
            abort_seconds=settings.abort_seconds,
            rng=rng,
            open_game_stream=self._open_game_stream,
        )

    def _open_game_stream(self, game_id: str) -> None:
        self.loop.spawn(f"game-{game_id}", self._pump_game, game_id)

    def _pump_incoming(self) -> None:
        try:
            for event in self.transport.stream_incoming_events():
                self.loop.post(self.bot.on_event, event)
        except Exception:
            self.log.exception("Incoming event stream failed")
        finally:
            self.loop.post(self.bot.on_event_stream_end)
            self.loop.post(self.loop.stop)

    def _pump_game(self, game_id: str) -> None:
        try:
            for event in self.transport.stream_game_state(game_id):
                self.loop.post(self.bot.on_game_event, game_id, event)
        except Exception:
            self.log.exception("Game stream for %s failed", game_id)
        finally:
            self.loop.post(self.bot.on_game_end, game_id)

    def status(self) -> dict:
        return self.loop.call(self.bot.status)

    def run(self) -> None:
        """Block on the dispatcher until the incoming stream closes or stop() is called."""
        self.log.info("Starting vote bot as %s (voting window %gs)", self.bot.bot_id, self.settings.vote_seconds)
        self.loop.spawn("incoming-events", self._pump_incoming)
        self.loop.run_forever()

    def stop(self) -> None:
        self.loop.stop()
