"""Live host for whack sessions.

Keeps one `GameSessionController` per play code, advances it from a
Socket.IO background task and pushes state to the `whack:<code>` room.
Commands and the background loop share a lock, so a whack always runs
to completion before the next spawn tick can fire.
"""
import random
import string
import threading
import time
from typing import Dict, Optional

from molearcade import db, socketio
from molearcade.models import ScoreSubmission
from .controller import GameSessionController
from .settings import WhackSettings


_live_sessions: Dict[str, 'LiveSession'] = {}
_registry_lock = threading.Lock()


def generate_play_code(length=4):
    """Generate a short play code not used by any live session."""
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if code not in _live_sessions:
            return code


class LiveSession:
    def __init__(self, app, play_code: str, game_id: str, nightmare: bool = False,
                 speed_multiplier: Optional[float] = None, rng: Optional[random.Random] = None):
        self.app = app
        self.play_code = play_code
        self.game_id = game_id
        self.nightmare = nightmare
        self.speed_multiplier = speed_multiplier
        self.settings = WhackSettings.from_config(app.config)
        self.lock = threading.RLock()
        self._worker_running = False
        # Clock reading (ms) when the run stopped being in progress
        self.ended_at: Optional[float] = None
        self.controller = GameSessionController(
            on_score_submit=self._submit_score,
            on_playing_change=self._playing_changed,
            on_paused_change=self._paused_changed,
            rng=rng,
            now=app.config.get('WHACK_TIME_SOURCE'),
            settings=self.settings,
        )

    @property
    def room(self) -> str:
        return f"whack:{self.play_code}"

    @property
    def difficulty_modifier(self) -> Optional[float]:
        if self.speed_multiplier is not None:
            return self.speed_multiplier
        return self.settings.nightmare_multiplier if self.nightmare else None

    def to_dict(self):
        data = self.controller.snapshot()
        data.update({
            'play_code': self.play_code,
            'game_id': self.game_id,
            'nightmare': self.nightmare,
        })
        return data

    def start(self, nightmare: Optional[bool] = None, speed_multiplier: Optional[float] = None):
        with self.lock:
            if nightmare is not None:
                self.nightmare = nightmare
            if speed_multiplier is not None:
                self.speed_multiplier = speed_multiplier
            self.controller.start(self.difficulty_modifier)
            self.app.logger.info(
                f"[whack-start] code={self.play_code} game={self.game_id} multiplier={self.controller.difficulty_multiplier}"
            )
            self.emit_state()
        self.ensure_worker()
        return True

    def command(self, name: str, *args) -> bool:
        """Catch up to the current time, then run a controller command."""
        with self.lock:
            if self.controller.tick():
                self.emit_state()
            accepted = bool(getattr(self.controller, name)(*args))
            if accepted:
                self.emit_state()
            return accepted

    def advance(self) -> bool:
        with self.lock:
            fired = self.controller.tick()
            if fired:
                self.emit_state()
            return fired

    def emit_state(self) -> None:
        socketio.emit('state_update', self.to_dict(), to=self.room, namespace='/ws')

    def _playing_changed(self, is_playing: bool) -> None:
        self.ended_at = None if is_playing else self.controller.now()
        socketio.emit('playing_changed', {'play_code': self.play_code, 'is_playing': is_playing},
                      to=self.room, namespace='/ws')

    def _paused_changed(self, is_paused: bool) -> None:
        socketio.emit('paused_changed', {'play_code': self.play_code, 'is_paused': is_paused},
                      to=self.room, namespace='/ws')

    def _submit_score(self, score: int, time_remaining: int) -> None:
        session = self.controller.session
        submission = ScoreSubmission(
            game_id=self.game_id,
            play_code=self.play_code,
            score=score,
            time_remaining=time_remaining,
            level=session.level,
            outcome=session.phase.value,
            nightmare=self.nightmare,
        )
        with self.app.app_context():
            try:
                db.session.add(submission)
                db.session.commit()
            except Exception:
                db.session.rollback()
                self.app.logger.exception(f"[score-submit] code={self.play_code} failed to store score")
                return
            self.app.logger.info(
                f"[score-submit] code={self.play_code} game={self.game_id} score={score} time_remaining={time_remaining}"
            )
            socketio.emit('score_submitted', submission.to_dict(), to=self.room, namespace='/ws')

    # Background loop

    def ensure_worker(self) -> None:
        """Start the tick loop for this session unless one is already running.

        No-ops in TESTING mode unless ENABLE_SCHEDULER_IN_TESTS is set;
        tests advance sessions through commands and an injected clock.
        """
        if self.app.config.get('TESTING') and not self.app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
            return
        with self.lock:
            if self._worker_running:
                return
            self._worker_running = True
        socketio.start_background_task(self._worker)

    def _worker(self):
        interval = max(1, int(self.app.config.get('WHACK_RUNNER_TICK_MS', 50))) / 1000.0
        try:
            hb = int(self.app.config.get('TIMER_HEARTBEAT_SEC', 0))
        except Exception:
            hb = 0
        last_beat = time.time()
        self.app.logger.info(f"[timer-set] code={self.play_code} interval={interval}s")
        while True:
            socketio.sleep(interval)
            with self.app.app_context():
                with self.lock:
                    registered = _live_sessions.get(self.play_code) is self
                    session = self.controller.session
                    if not registered or not session.is_playing:
                        self._worker_running = False
                        self.app.logger.info(
                            f"[timer-stop] code={self.play_code} phase={session.phase.value}"
                        )
                        if registered and session.is_finished:
                            self._schedule_end()
                        return
                    self.advance()
                if hb and time.time() - last_beat >= hb:
                    last_beat = time.time()
                    session = self.controller.session
                    self.app.logger.info(
                        f"[timer-heartbeat] code={self.play_code} phase={session.phase.value} "
                        f"time_left={session.time_left} score={session.score}"
                    )

    def is_expired(self, ttl_ms: float) -> bool:
        """True once the run has been over (finished or exited) for `ttl_ms`."""
        if self.controller.session.is_playing or self.ended_at is None:
            return False
        return self.controller.now() - self.ended_at >= ttl_ms

    def _schedule_end(self) -> None:
        ttl = _finished_ttl_sec(self.app)

        def _runner():
            socketio.sleep(ttl)
            reap_finished_sessions(self.app)

        socketio.start_background_task(_runner)


def _finished_ttl_sec(app) -> float:
    try:
        return max(0.0, float(app.config.get('WHACK_FINISHED_TTL_SEC', 60)))
    except (TypeError, ValueError):
        return 60.0


def reap_finished_sessions(app) -> int:
    """End every session whose run has been over for WHACK_FINISHED_TTL_SEC."""
    ttl_ms = _finished_ttl_sec(app) * 1000.0
    with _registry_lock:
        stale = [code for code, live in _live_sessions.items() if live.is_expired(ttl_ms)]
    for code in stale:
        end_live_session(code)
    if stale:
        app.logger.info(f"[session-reap] ended={','.join(stale)}")
    return len(stale)


def live_session_codes():
    return list(_live_sessions)


def create_live_session(app, game_id: str, nightmare: bool = False,
                        speed_multiplier: Optional[float] = None) -> LiveSession:
    reap_finished_sessions(app)
    with _registry_lock:
        code = generate_play_code()
        live = LiveSession(app, code, game_id, nightmare=nightmare, speed_multiplier=speed_multiplier,
                           rng=app.config.get('WHACK_RNG_FACTORY', random.Random)())
        _live_sessions[code] = live
    return live


def get_live_session(play_code: str) -> Optional[LiveSession]:
    if not isinstance(play_code, str):
        return None
    return _live_sessions.get(play_code.upper())


def end_live_session(play_code: str) -> bool:
    if not isinstance(play_code, str):
        return False
    with _registry_lock:
        live = _live_sessions.pop(play_code.upper(), None)
    if live is None:
        return False
    with live.lock:
        live.controller.exit()
    socketio.emit('session_ended', {'play_code': live.play_code}, to=live.room, namespace='/ws')
    return True


def clear_live_sessions() -> None:
    with _registry_lock:
        codes = list(_live_sessions)
    for code in codes:
        end_live_session(code)
