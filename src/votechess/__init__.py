"""
votechess package: a Lichess bot whose moves are chosen by spectator vote.

Components:
- session/bot: per-game vote state machine and the controller routing Lichess events to it
- ledger/resolver/timers: vote collection, tally + tie-break, single-shot round and abort timers
- oracle/move_validator: python-chess position tracking and lenient move parsing
- lichess/runner: berserk transport and the single-dispatcher event loop
"""
# Nothing is re-exported; import the submodules directly.
