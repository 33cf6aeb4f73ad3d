import os
import sys
import pytest

# Ensure the backend root (containing the `molearcade` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from molearcade import create_app, db, socketio
from molearcade.services.whack import GameSessionController, WhackSettings


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WHACK_SESSION_SECONDS = 30
    WHACK_NIGHTMARE_MULTIPLIER = 0.8


class FakeClock:
    """Millisecond time source that only moves when told to."""

    def __init__(self, start=0.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms
        return self.now


class ScriptedRng:
    """Stands in for random.Random: always the same cell, chances from a list.

    The last chance repeats once the list is used up.
    """

    def __init__(self, cell=4, chances=(0.0,)):
        self.cell = cell
        self.chances = list(chances)
        self.draws = 0

    def randrange(self, n):
        self.draws += 1
        return self.cell

    def random(self):
        if len(self.chances) > 1:
            return self.chances.pop(0)
        return self.chances[0]


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def make_controller(clock):
    """Build a controller on the fake clock; callbacks are recorded in `events`."""

    def _make(rng=None, settings=None):
        events = {'scores': [], 'playing': [], 'paused': []}
        controller = GameSessionController(
            on_score_submit=lambda score, left: events['scores'].append((score, left)),
            on_playing_change=events['playing'].append,
            on_paused_change=events['paused'].append,
            rng=rng if rng is not None else ScriptedRng(),
            now=clock,
            settings=settings or WhackSettings(),
        )
        return controller, events

    return _make


@pytest.fixture()
def flask_app(clock):
    application = create_app(TestConfig)
    application.config['WHACK_TIME_SOURCE'] = clock
    application.config['WHACK_RNG_FACTORY'] = lambda: ScriptedRng(cell=4)
    with application.app_context():
        # Ensure models are imported so tables are created
        import molearcade.models  # noqa: F401
        db.create_all()
        yield application
        from molearcade.services.whack.runner import clear_live_sessions
        clear_live_sessions()
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
