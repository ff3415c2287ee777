import threading
import unittest

from votechess.config import Settings
from votechess.runner import BotRunner, EventLoop

from tests.fakes import BOT, FakeTransport, challenge_event


def make_settings(**overrides):
    base = dict(
        lichess_token="token",
        bot_id=BOT,
        vote_seconds=15.0,
        abort_seconds=60.0,
        variants=("standard", "crazyhouse"),
        speed="rapid",
        min_increment=15,
        min_limit=30,
        rated=False,
        moderation_path=None,
        moderators=(),
        status_port=8000,
        log_level="INFO",
    )
    base.update(overrides)
    return Settings(**base)


class StreamingTransport(FakeTransport):
    def __init__(self, events=(), account=BOT):
        super().__init__()
        self.events = list(events)
        self.account = account

    def account_id(self):
        return self.account

    def stream_incoming_events(self):
        return iter(self.events)

    def stream_game_state(self, game_id):
        return iter(())


class EventLoopTests(unittest.TestCase):
    def setUp(self):
        self.loop = EventLoop()
        self.thread = threading.Thread(target=self.loop.run_forever, daemon=True)
        self.thread.start()
        self.addCleanup(self.thread.join, 2)
        self.addCleanup(self.loop.stop)

    def test_call_returns_result(self):
        self.assertEqual(self.loop.call(lambda a, b: a + b, 2, 3), 5)

    def test_call_propagates_exceptions(self):
        def boom():
            raise RuntimeError("boom")

        with self.assertRaises(RuntimeError):
            self.loop.call(boom)

    def test_failing_handler_does_not_stop_loop(self):
        def boom():
            raise RuntimeError("boom")

        with self.assertLogs("EventLoop", level="ERROR"):
            self.loop.post(boom)
            self.assertEqual(self.loop.call(lambda: "alive"), "alive")

    def test_call_later_runs_on_dispatcher(self):
        done = threading.Event()
        seen = []

        def fire():
            seen.append(threading.current_thread())
            done.set()

        self.loop.call_later(0.01, fire)
        self.assertTrue(done.wait(2))
        self.assertEqual(seen, [self.thread])

    def test_cancelled_call_later_never_runs(self):
        fired = []
        timer = self.loop.call_later(0.2, lambda: fired.append(True))
        timer.cancel()
        timer.join(1)
        self.loop.call(lambda: None)
        self.assertEqual(fired, [])

    def test_submit_delivers_result_on_dispatcher(self):
        done = threading.Event()
        results = []

        def on_result(value):
            results.append((value, threading.current_thread()))
            done.set()

        self.loop.submit(lambda x: x * 2, 21, callback=on_result)
        self.assertTrue(done.wait(2))
        self.assertEqual(results, [(42, self.thread)])

    def test_submit_failure_delivers_none(self):
        done = threading.Event()
        results = []

        def fail():
            raise RuntimeError("nope")

        def on_result(value):
            results.append(value)
            done.set()

        with self.assertLogs("EventLoop", level="ERROR"):
            self.loop.submit(fail, callback=on_result)
            self.assertTrue(done.wait(2))
        self.assertEqual(results, [None])


class BotRunnerTests(unittest.TestCase):
    def test_runs_until_incoming_stream_ends(self):
        transport = StreamingTransport([challenge_event(cid="c1", rated=True)])
        runner = BotRunner(make_settings(), transport=transport)
        runner.run()
        self.assertEqual(transport.declined, [("c1", "casual")])
        self.assertEqual(transport.accepted, [])

    def test_bot_id_from_account(self):
        transport = StreamingTransport(account="SomeBot")
        runner = BotRunner(make_settings(bot_id=""), transport=transport)
        self.assertEqual(runner.bot.bot_id, "somebot")

    def test_bot_id_required(self):
        with self.assertRaises(ValueError):
            BotRunner(make_settings(bot_id=""), transport=StreamingTransport(account=""))

    def test_policy_follows_settings(self):
        runner = BotRunner(make_settings(speed="blitz", rated=True), transport=StreamingTransport())
        self.assertEqual(runner.bot.policy.speed, "blitz")
        self.assertTrue(runner.bot.policy.rated)
        self.assertEqual(runner.bot.vote_seconds, 15.0)


if __name__ == "__main__":
    unittest.main()
