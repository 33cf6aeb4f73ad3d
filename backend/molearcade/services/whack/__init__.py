"""Whack-a-Mole session engine.

Pure(ish) game mechanics: spawn tables, scoring, level gating, the two
timing loops and the session controller that wires them. Nothing in here
knows about Flask, HTTP or sockets; the live host lives in `runner`.
"""

from .controller import GameSessionController
from .session import Phase, Session
from .settings import WhackSettings
from .spawn_table import TargetType

__all__ = [
    'GameSessionController',
    'Phase',
    'Session',
    'TargetType',
    'WhackSettings',
]
