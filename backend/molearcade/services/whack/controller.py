import logging
import random
import time
from typing import Any, Callable, Dict, Optional

from .levels import LevelController
from .scheduler import GameClock, SpawnScheduler, TimerTask
from .scoring import RAMPAGE_COMBO, apply_outcome, resolve
from .session import BOARD_SIZE, Phase, Session
from .settings import WhackSettings

logger = logging.getLogger(__name__)

ScoreCallback = Callable[[int, int], Any]
FlagCallback = Callable[[bool], Any]


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class GameSessionController:
    """Owns one Session and drives it through its phases.

    Commands (`start`, `pause`, `resume`, `exit`, `whack`, `dismiss_gate`)
    are synchronous. Time only moves when the host calls `tick(now)`, which
    fires every due clock/spawn/banner deadline in chronological order.
    When the countdown and a spawn are due at the same instant the
    countdown runs first, so an expiring clock ends the game before the
    spawn can settle a miss.

    `on_score_submit(score, time_remaining)` fires once per session, on
    the transition into GameOver or Victory.
    """

    def __init__(
        self,
        on_score_submit: Optional[ScoreCallback] = None,
        on_playing_change: Optional[FlagCallback] = None,
        on_paused_change: Optional[FlagCallback] = None,
        rng: Optional[random.Random] = None,
        now: Optional[Callable[[], float]] = None,
        settings: Optional[WhackSettings] = None,
        levels: Optional[LevelController] = None,
    ):
        self.settings = settings or WhackSettings()
        self.on_score_submit = on_score_submit
        self.on_playing_change = on_playing_change
        self.on_paused_change = on_paused_change
        self._now = now or _monotonic_ms
        self.levels = levels or LevelController()
        self.clock = GameClock(self.settings.clock_tick_ms)
        self.spawner = SpawnScheduler(rng=rng, data_leak_seconds=self.settings.data_leak_seconds,
                                      row_for=self.levels.spawn_row)
        self.banner = TimerTask('level-complete')
        self.difficulty_multiplier = 1.0
        self._session = Session(time_left=self.settings.session_seconds)
        self._submitted = False

    @property
    def session(self) -> Session:
        return self._session

    @property
    def phase(self) -> Phase:
        return self._session.phase

    def now(self) -> float:
        return self._now()

    # Commands

    def start(self, difficulty_modifier: Optional[float] = None) -> Session:
        """Reset the session from scratch and start both loops.

        Safe to call while a run is in progress: pending deadlines are
        cancelled before anything else changes.
        """
        multiplier = 1.0 if difficulty_modifier is None else float(difficulty_modifier)
        if multiplier <= 0:
            raise ValueError('difficulty modifier must be positive')
        self._cancel_loops()
        now = self._now()
        self.difficulty_multiplier = multiplier
        self.spawner.speed_multiplier = multiplier
        self._submitted = False
        self._set_session(Session(time_left=self.settings.session_seconds, phase=Phase.PLAYING))
        self.clock.start(now)
        self.spawner.start(now, self._session)
        logger.info('[whack-start] multiplier=%s', multiplier)
        return self._session

    def pause(self) -> bool:
        if self.phase != Phase.PLAYING:
            return False
        now = self._now()
        self.clock.suspend(now)
        self.spawner.suspend(now)
        self._set_session(self._session.replace(phase=Phase.PAUSED))
        return True

    def resume(self) -> bool:
        if self.phase != Phase.PAUSED:
            return False
        now = self._now()
        self.clock.resume(now)
        self.spawner.resume(now)
        self._set_session(self._session.replace(phase=Phase.PLAYING))
        return True

    def exit(self) -> bool:
        """Abandon the run. Never reports a score.

        Returns False when there was nothing to leave (already Idle).
        """
        self._cancel_loops()
        if self.phase == Phase.IDLE:
            return False
        self._set_session(Session(time_left=self.settings.session_seconds))
        logger.info('[whack-exit]')
        return True

    def whack(self, cell: int) -> bool:
        """Strike `cell`. Returns False (and changes nothing) unless it hit
        the active target of a Playing session."""
        session = self._session
        if session.phase != Phase.PLAYING or session.active_cell is None:
            return False
        if cell != session.active_cell or not 0 <= cell < BOARD_SIZE:
            return False
        data_leak = session.in_data_leak(self.settings.data_leak_seconds)
        outcome = resolve(session.active_type, session.combo, data_leak)
        struck = session.replace(active_cell=None, pending_resolution=False)
        self._set_session(apply_outcome(struck, outcome, self.settings.time_cap_seconds))
        logger.debug('[whack-hit] type=%s delta=%s combo=%s', session.active_type.value,
                     outcome.score_delta, outcome.combo_after)
        self._check_level(self._now())
        return True

    def dismiss_gate(self) -> bool:
        if self.phase != Phase.TUTORIAL_GATE:
            return False
        now = self._now()
        self._set_session(self.levels.dismiss_gate(self._session, self.settings.session_seconds))
        self.clock.start(now)
        self.spawner.start(now, self._session)
        logger.info('[level-start] level=%s', self._session.level)
        return True

    # Time

    def tick(self, now: Optional[float] = None) -> bool:
        """Fire everything due at or before `now`. Returns True if any fired."""
        now = self._now() if now is None else now
        fired = False
        while True:
            task = self._next_due(now)
            if task is None:
                return fired
            fired = True
            at = task.next_at
            if task is self.clock:
                self._on_clock(at)
            elif task is self.spawner:
                self._on_spawn(at)
            else:
                self._on_banner(at)

    def _next_due(self, now: float) -> Optional[TimerTask]:
        # Listed in tie-break order: the countdown wins a simultaneous fire.
        due = [t for t in (self.clock, self.banner, self.spawner) if t.is_due(now)]
        if not due:
            return None
        return min(due, key=lambda t: t.next_at)

    def _on_clock(self, at: float) -> None:
        self._set_session(self.clock.tick(self._session))
        if self._session.time_left <= 0:
            self._finish(Phase.GAME_OVER, 0)
            return
        self.clock.rearm(at)

    def _on_spawn(self, at: float) -> None:
        session, missed = self.spawner.spawn(self._session)
        self._set_session(session)
        if missed is not None:
            self._check_level(at)
        if self.phase == Phase.PLAYING:
            self.spawner.rearm(at, self._session)
        else:
            self.spawner.cancel()

    def _on_banner(self, at: float) -> None:
        self.banner.cancel()
        if self.phase == Phase.LEVEL_COMPLETE:
            self._set_session(self._session.replace(phase=Phase.TUTORIAL_GATE))

    # Transitions

    def _check_level(self, now: float) -> None:
        target = self.levels.after_score_change(self._session)
        if target == Phase.VICTORY:
            self._finish(Phase.VICTORY, self._session.time_left)
        elif target == Phase.LEVEL_COMPLETE:
            self.clock.cancel()
            self.spawner.cancel()
            self._set_session(self._session.replace(phase=Phase.LEVEL_COMPLETE))
            self.banner.arm(now + self.settings.level_complete_seconds * 1000)
            logger.info('[level-complete] level=%s score=%s', self._session.level, self._session.score)

    def _finish(self, phase: Phase, time_remaining: int) -> None:
        self._cancel_loops()
        self._set_session(self._session.replace(phase=phase, active_cell=None, pending_resolution=False))
        logger.info('[whack-%s] score=%s time_remaining=%s', phase.value, self._session.score, time_remaining)
        if self._submitted:
            return
        self._submitted = True
        if self.on_score_submit is None:
            return
        try:
            self.on_score_submit(self._session.score, time_remaining)
        except Exception:
            logger.exception('[score-submit] callback failed')

    def _cancel_loops(self) -> None:
        self.clock.cancel()
        self.spawner.cancel()
        self.banner.cancel()

    def _set_session(self, new: Session) -> None:
        old = self._session
        self._session = new
        if old.phase != new.phase:
            logger.debug('[phase] %s -> %s', old.phase.value, new.phase.value)
        if old.is_playing != new.is_playing:
            self._notify(self.on_playing_change, new.is_playing)
        if old.is_paused != new.is_paused:
            self._notify(self.on_paused_change, new.is_paused)

    @staticmethod
    def _notify(callback: Optional[FlagCallback], value: bool) -> None:
        if callback is None:
            return
        try:
            callback(value)
        except Exception:
            logger.exception('[notify] flag callback failed')

    # Observation

    def snapshot(self) -> Dict[str, Any]:
        session = self._session
        info = self.levels.levels[session.level]
        data = session.to_dict()
        data.update({
            'is_playing': session.is_playing,
            'is_paused': session.is_paused,
            'level_name': info.name,
            'level_description': info.description,
            'target_score': info.threshold,
            'tutorial': self.levels.next_tutorial(session) if session.phase == Phase.TUTORIAL_GATE else None,
            'data_leak': session.is_playing and session.in_data_leak(self.settings.data_leak_seconds),
            'rampage': session.combo >= RAMPAGE_COMBO,
            'difficulty_multiplier': self.difficulty_multiplier,
        })
        return data
