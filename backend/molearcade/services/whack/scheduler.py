"""Timing loops for a whack session.

Nothing here sleeps. Each loop is a virtual deadline that the controller
polls with `tick(now)`; the host decides how often `now` moves, so tests
can advance time by hand.
"""
import logging
import random
from typing import NamedTuple, Optional, Tuple

from .scoring import Outcome, apply_outcome, resolve_miss
from .session import BOARD_SIZE, Phase, Session
from .spawn_table import TargetType, pick_type, spawn_row

logger = logging.getLogger(__name__)


class IntervalRule(NamedTuple):
    base_ms: int
    decay_ms: int
    floor_ms: int


SPAWN_INTERVALS = {
    1: IntervalRule(1200, 8, 700),
    2: IntervalRule(1100, 7, 650),
    3: IntervalRule(950, 5, 550),
}
# Bosses linger longer and decay more slowly.
BOSS_INTERVALS = {
    3: IntervalRule(1100, 5, 700),
}


def spawn_interval_ms(level: int, score: int, target_type: TargetType, speed_multiplier: float = 1.0) -> int:
    rule = None
    if target_type == TargetType.BOSS:
        rule = BOSS_INTERVALS.get(level)
    if rule is None:
        rule = SPAWN_INTERVALS[level]
    return int(round(max(rule.floor_ms, rule.base_ms - score * rule.decay_ms) * speed_multiplier))


class TimerTask:
    """A single pending deadline that can be suspended and resumed."""

    def __init__(self, name: str):
        self.name = name
        self.next_at: Optional[float] = None
        self._remaining: Optional[float] = None

    @property
    def armed(self) -> bool:
        return self.next_at is not None

    def arm(self, at: float) -> None:
        self.next_at = at
        self._remaining = None

    def cancel(self) -> None:
        self.next_at = None
        self._remaining = None

    def is_due(self, now: float) -> bool:
        return self.next_at is not None and self.next_at <= now

    def suspend(self, now: float) -> None:
        if self.next_at is None:
            return
        self._remaining = max(0.0, self.next_at - now)
        self.next_at = None

    def resume(self, now: float) -> None:
        if self._remaining is None:
            return
        self.next_at = now + self._remaining
        self._remaining = None

    def __repr__(self):
        return f'<{type(self).__name__} {self.name} next_at={self.next_at}>'


class GameClock(TimerTask):
    """Fixed-period countdown; one second off `time_left` per tick."""

    def __init__(self, tick_ms: int = 1000):
        super().__init__('clock')
        self.tick_ms = tick_ms

    def start(self, now: float) -> None:
        self.arm(now + self.tick_ms)

    def tick(self, session: Session) -> Session:
        if session.phase != Phase.PLAYING:
            return session
        return session.replace(time_left=max(0, session.time_left - 1))

    def rearm(self, fired_at: float) -> None:
        self.arm(fired_at + self.tick_ms)


class SpawnScheduler(TimerTask):
    """Variable-interval spawn loop.

    Each tick first settles the target still on the board (if it was never
    struck, it counts as a miss), then draws a fresh cell and type. The
    random source is injected so a seed reproduces a whole run.
    """

    def __init__(self, rng: Optional[random.Random] = None, speed_multiplier: float = 1.0,
                 data_leak_seconds: int = 10, row_for=spawn_row):
        super().__init__('spawn')
        self.rng = rng or random.Random()
        self.speed_multiplier = speed_multiplier
        self.data_leak_seconds = data_leak_seconds
        self.row_for = row_for

    def start(self, now: float, session: Session) -> None:
        self.arm(now + self.next_interval_ms(session))

    def next_interval_ms(self, session: Session) -> int:
        return spawn_interval_ms(session.level, session.score, session.active_type, self.speed_multiplier)

    def settle_previous(self, session: Session) -> Tuple[Session, Optional[Outcome]]:
        if not session.pending_resolution or session.active_cell is None:
            return session, None
        missed = resolve_miss(session.active_type, session.combo)
        return apply_outcome(session, missed), missed

    def draw(self, session: Session) -> Tuple[int, TargetType]:
        data_leak = session.in_data_leak(self.data_leak_seconds)
        cell = self.rng.randrange(BOARD_SIZE)
        target_type = pick_type(self.row_for(session.level, data_leak), self.rng.random())
        return cell, target_type

    def spawn(self, session: Session) -> Tuple[Session, Optional[Outcome]]:
        session, missed = self.settle_previous(session)
        if missed is not None:
            logger.debug('[spawn-miss] type=%s delta=%s combo=%s',
                         session.active_type.value, missed.score_delta, missed.combo_after)
        cell, target_type = self.draw(session)
        logger.debug('[spawn] level=%s cell=%s type=%s', session.level, cell, target_type.value)
        return session.replace(active_cell=cell, active_type=target_type, pending_resolution=True), missed

    def rearm(self, fired_at: float, session: Session) -> int:
        interval = self.next_interval_ms(session)
        self.arm(fired_at + interval)
        return interval
