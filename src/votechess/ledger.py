"""Per-round mapping of voter → latest raw proposal."""
from __future__ import annotations


class VoteLedger:
    """One live vote per voter; a later record() from the same voter replaces the earlier one.

    The ledger only accepts votes while open (the bot is on move). clear() empties it at
    round boundaries; there is no capacity bound and no expiry.
    """

    def __init__(self):
        self._votes: dict[str, str] = {}
        self.accepting = False

    def open(self) -> None:
        self.accepting = True

    def close(self) -> None:
        self.accepting = False

    def record(self, voter: str, proposal: str) -> bool:
        if not self.accepting:
            return False
        # re-insert so snapshot order follows each voter's latest vote
        self._votes.pop(voter, None)
        self._votes[voter] = proposal
        return True

    def snapshot(self) -> list[tuple[str, str]]:
        return list(self._votes.items())

    def clear(self) -> None:
        self._votes.clear()

    def __len__(self) -> int:
        return len(self._votes)
