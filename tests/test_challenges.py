import unittest

from votechess.challenges import ChallengePolicy, ChallengeQueue
from votechess.events import Challenge

from tests.fakes import challenge_event


def challenge(**kwargs):
    return Challenge.from_event(challenge_event(**kwargs))


class ChallengePolicyTests(unittest.TestCase):
    def test_default_policy_accepts_casual_rapid(self):
        policy = ChallengePolicy()
        self.assertTrue(policy.accepts(challenge()))
        self.assertTrue(policy.accepts(challenge(variant="crazyhouse")))

    def test_rated_policy(self):
        policy = ChallengePolicy(rated=True)
        self.assertEqual(policy.decline_reason(challenge()), "rated")
        self.assertIsNone(policy.decline_reason(challenge(rated=True)))

    def test_unknown_speed_is_a_time_control_problem(self):
        self.assertEqual(ChallengePolicy().decline_reason(challenge(speed="hyper")), "timeControl")

    def test_variants_need_a_rules_backend(self):
        with self.assertRaises(ValueError):
            ChallengePolicy(variants=("standard", "atomic"))

    def test_thresholds(self):
        policy = ChallengePolicy(min_increment=10, min_limit=300)
        self.assertTrue(policy.accepts(challenge(increment=10, limit=300)))
        self.assertFalse(policy.accepts(challenge(increment=9, limit=300)))
        self.assertFalse(policy.accepts(challenge(increment=10, limit=299)))


class ChallengeQueueTests(unittest.TestCase):
    def test_fifo_and_remove(self):
        q = ChallengeQueue()
        self.assertIsNone(q.pop())
        for cid in ("a", "b", "c"):
            q.push(challenge(cid=cid))
        self.assertTrue(q.remove("b"))
        self.assertFalse(q.remove("zz"))
        self.assertEqual(q.ids(), ["a", "c"])
        self.assertEqual(q.pop().id, "a")
        self.assertEqual(q.pop().id, "c")
        self.assertEqual(len(q), 0)


if __name__ == "__main__":
    unittest.main()
