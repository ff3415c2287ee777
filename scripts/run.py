"""
RUN.py: headless vote bot launcher
- Loads settings.yml / env (see src/votechess/config.py), applies CLI overrides, and runs the bot
  until the Lichess incoming-event stream closes (a supervisor restart replays any game in progress).
- Use server.py instead when the HTTP status API is wanted.
Usage: python -u scripts/run.py [--settings settings.yml] [--vote-seconds 20] [--log-level DEBUG]
Env knobs: LICHESS_API_TOKEN, VOTECHESS_BOT_ID, VOTE_SECONDS, VOTECHESS_MODERATORS, etc.
"""
import argparse, logging, os, sys
from dataclasses import replace

# Ensure the src/ layout is importable without an install
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if os.path.join(ROOT, 'src') not in sys.path:
    sys.path.insert(0, os.path.join(ROOT, 'src'))

from votechess.config import load_settings
from votechess.runner import BotRunner


def _parse_log_level(name: str | None) -> int:
    name = (name or "INFO").upper()
    return getattr(logging, name, logging.INFO)


def main():
    ap = argparse.ArgumentParser(description='Run the spectator-vote Lichess bot.')
    ap.add_argument('--settings', default=None, help='Path to a settings.yml (default: repo root or VOTECHESS_SETTINGS)')
    ap.add_argument('--vote-seconds', type=float, default=None, help='Voting window length in seconds')
    ap.add_argument('--bot-id', default=None, help='Bot account id (default: read from the token\'s account)')
    ap.add_argument('--moderation-file', default=None, help='JSON file holding banned users and moderators')
    ap.add_argument('--log-level', default=None, help='Python logging level (e.g., INFO, DEBUG)')
    args = ap.parse_args()

    settings = load_settings(args.settings)
    overrides = {}
    if args.vote_seconds is not None:
        overrides['vote_seconds'] = args.vote_seconds
    if args.bot_id:
        overrides['bot_id'] = args.bot_id.lower()
    if args.moderation_file:
        overrides['moderation_path'] = args.moderation_file
    if overrides:
        settings = replace(settings, **overrides)

    logging.basicConfig(level=_parse_log_level(args.log_level or settings.log_level),
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    log = logging.getLogger('run')

    try:
        runner = BotRunner(settings)
    except ValueError as e:
        log.error('Cannot start bot: %s', e)
        sys.exit(1)
    try:
        runner.run()
    except KeyboardInterrupt:
        log.info('Interrupted; stopping')
        runner.stop()


if __name__ == '__main__':
    main()
