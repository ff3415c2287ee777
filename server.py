"""
Minimal Flask API exposing the running vote bot's state, plus the bot launcher.

Endpoints:
- GET /api/health      -> liveness and whether a bot is attached
- GET /api/status      -> bot state: active game, round/timer state, pending votes, last tally, queue
- GET /api/moderation  -> banned users and moderators

Run: python server.py [--port 8000] [--log-level INFO]
The bot runs on the main thread; Flask serves from a daemon thread. Status reads are executed
on the bot's dispatcher thread so they never race a handler.
"""
from __future__ import annotations

import argparse
import concurrent.futures
import logging
import os
import sys
import threading
from typing import Optional

from flask import Flask, jsonify, request

ROOT = os.path.abspath(os.path.dirname(__file__))
if os.path.join(ROOT, "src") not in sys.path:
    sys.path.insert(0, os.path.join(ROOT, "src"))

from votechess.config import SETTINGS
from votechess.runner import BotRunner

app = Flask(__name__)
RUNNER: Optional[BotRunner] = None


def attach(runner: Optional[BotRunner]) -> None:
    global RUNNER
    RUNNER = runner


@app.route("/api/health", methods=["GET"])
def health():
    return jsonify({"ok": True, "attached": RUNNER is not None})


@app.route("/api/status", methods=["GET"])
def status():
    if RUNNER is None:
        return jsonify({"error": "bot_not_running"}), 503
    try:
        return jsonify(RUNNER.status())
    except concurrent.futures.TimeoutError:
        logging.warning("Status request timed out waiting for the dispatcher")
        return jsonify({"error": "timeout"}), 504


@app.route("/api/moderation", methods=["GET"])
def moderation():
    if RUNNER is None:
        return jsonify({"error": "bot_not_running"}), 503
    return jsonify(RUNNER.moderation.snapshot())


@app.after_request
def add_cors_headers(response):
    response.headers["Access-Control-Allow-Origin"] = request.headers.get("Origin", "*")
    response.headers["Access-Control-Allow-Methods"] = "GET, OPTIONS"
    # Status changes every few seconds during a round
    response.headers["Cache-Control"] = "no-store, max-age=0"
    return response


def main() -> None:
    ap = argparse.ArgumentParser(description="Run the vote bot with a status API.")
    ap.add_argument("--port", type=int, default=SETTINGS.status_port)
    ap.add_argument("--log-level", default=SETTINGS.log_level, help="Python logging level (e.g., INFO, DEBUG)")
    args = ap.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO),
                        format="%(asctime)s %(levelname)s %(message)s")
    runner = BotRunner(SETTINGS)
    attach(runner)
    threading.Thread(
        target=lambda: app.run(host="0.0.0.0", port=args.port, debug=False, use_reloader=False),
        daemon=True,
    ).start()
    try:
        runner.run()
    except KeyboardInterrupt:
        runner.stop()


if __name__ == "__main__":
    main()
