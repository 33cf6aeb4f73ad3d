"""Level thresholds and the tutorial gates between them.

Thresholds are cumulative session score: level 2 completes at 70 total,
not 70 earned during level 2.
"""
from typing import NamedTuple, Optional

from .session import Phase, Session
from .spawn_table import SpawnRow, spawn_row


class LevelConfig(NamedTuple):
    level: int
    threshold: int
    name: str
    description: str
    # Key of the tutorial screen shown before this level starts.
    tutorial: Optional[str] = None


LEVELS = {
    1: LevelConfig(1, 30, 'DATA BREACH', 'Eliminate basic threats'),
    2: LevelConfig(2, 70, 'PHISHING ATTACK', 'Beware of imposters!', 'phishing_attack'),
    3: LevelConfig(3, 120, 'JACKPOT RAID', 'Defeat the mega threat!', 'jackpot_raid'),
}


def level_config(level: int) -> LevelConfig:
    try:
        return LEVELS[level]
    except KeyError:
        raise ValueError(f'unknown level {level}')


class LevelController:
    """Decides level-complete/victory transitions from the current score."""

    def __init__(self, levels=None):
        self.levels = levels or LEVELS
        self.final_level = max(self.levels)

    def spawn_row(self, level: int, data_leak: bool) -> SpawnRow:
        """Spawn table the scheduler should draw from for `level`."""
        if level not in self.levels:
            raise ValueError(f'unknown level {level}')
        return spawn_row(level, data_leak)

    def threshold(self, level: int) -> int:
        return self.levels[level].threshold

    def after_score_change(self, session: Session) -> Optional[Phase]:
        """Return the phase a score change forces, or None.

        Only a Playing session can complete a level; a session already in
        LevelComplete/TutorialGate has been counted and is left alone, so
        a threshold never fires twice for the same level.
        """
        if session.phase != Phase.PLAYING:
            return None
        if session.score < self.threshold(session.level):
            return None
        if session.level >= self.final_level:
            return Phase.VICTORY
        return Phase.LEVEL_COMPLETE

    def next_tutorial(self, session: Session) -> Optional[str]:
        upcoming = self.levels.get(session.level + 1)
        return upcoming.tutorial if upcoming else None

    def dismiss_gate(self, session: Session, session_seconds: int) -> Session:
        """Leave the tutorial gate and start the next level with a fresh clock.

        A target left on the board when the level completed is dropped
        without a miss penalty.
        """
        return session.replace(
            level=min(session.level + 1, self.final_level),
            time_left=session_seconds,
            phase=Phase.PLAYING,
            active_cell=None,
            pending_resolution=False,
        )
