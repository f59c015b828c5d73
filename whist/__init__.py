"""
WhistMaster: referee server core for Romanian Whist.

Subpackages:
    game: deck, rules, scoring and the per-match state machine
    room: per-room orchestration, timers, automated seats and privacy projection
"""

__version__ = "0.1.0"
