"""
VoteResolver: turns a ledger snapshot into at most one winning action.

Flow per resolution:
1) Each raw proposal is trial-applied (leniently) on the oracle and undone; illegal ones are dropped.
   The literal "resign" always counts.
2) Survivors are keyed by canonical SAN so e4 / e2e4 / e2-e4 merge.
3) Counter tally, highest first; every key at the maximum count is a winner.
4) One winner wins outright. Several: resign is removed, then one is drawn uniformly from the rng.
"""
from __future__ import annotations

import logging
import random
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .oracle import MoveResult, PositionOracle

RESIGN = "resign"

log = logging.getLogger("VoteResolver")


@dataclass(frozen=True)
class Candidate:
    key: str  # canonical SAN, or RESIGN
    move: Optional[MoveResult] = None

    @property
    def is_resign(self) -> bool:
        return self.key == RESIGN


@dataclass
class Resolution:
    winner: Optional[Candidate]
    votes: int = 0
    tied: list[Candidate] = field(default_factory=list)
    tally: dict[str, int] = field(default_factory=dict)

    @property
    def usable(self) -> bool:
        return self.winner is not None

    @property
    def random_pick(self) -> bool:
        return len(self.tied) > 1


def canonicalize(proposal: str, oracle: PositionOracle) -> Candidate | None:
    """Return the Candidate for a raw proposal, or None if it is not a legal move."""
    text = (proposal or "").strip()
    if text.lower() == RESIGN:
        return Candidate(RESIGN)
    result = oracle.trial_move(text)
    if result is None:
        return None
    return Candidate(result.san, result)


class VoteResolver:
    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()

    def tally(self, snapshot: Iterable[tuple[str, str]], oracle: PositionOracle) -> tuple[Counter, dict[str, Candidate]]:
        counts: Counter = Counter()
        candidates: dict[str, Candidate] = {}
        for voter, proposal in snapshot:
            cand = canonicalize(proposal, oracle)
            if cand is None:
                log.debug("Dropping illegal vote %r from %s", proposal, voter)
                continue
            counts[cand.key] += 1
            candidates.setdefault(cand.key, cand)
        return counts, candidates

    def resolve(self, snapshot: Iterable[tuple[str, str]], oracle: PositionOracle) -> Resolution:
        counts, candidates = self.tally(snapshot, oracle)
        ranked = counts.most_common()
        log.debug("Sorted votes: %s", ranked)
        if not ranked:
            return Resolution(winner=None)
        top = ranked[0][1]
        winners = [candidates[key] for key, n in ranked if n == top]
        if len(winners) == 1:
            return Resolution(winner=winners[0], votes=top, tied=winners, tally=dict(counts))
        # resignation never wins a tie
        winners = [c for c in winners if not c.is_resign]
        if not winners:
            return Resolution(winner=None, tally=dict(counts))
        pick = self.rng.choice(winners)
        return Resolution(winner=pick, votes=top, tied=winners, tally=dict(counts))
