import os
import sys
import pytest

# Ensure the backend root (containing the `tilematch` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from tilematch import create_app, db, socketio
from tilematch.services.game import GameSession, GameSettings
from tilematch.services.game.scheduler import ManualScheduler
from tilematch.services.sessions import clear_sessions


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SESSION_ABANDON_GRACE_SEC = 5


# Board used by most engine tests. Pairs sit at:
# shield (0, 5), heart (1, 4), family (2, 3), umbrella (6, 7),
# home (8, 9), medical (10, 11), savings (12, 13), policy (14, 15)
LAYOUT = [
    'shield', 'heart', 'family', 'family', 'heart', 'shield', 'umbrella', 'umbrella',
    'home', 'home', 'medical', 'medical', 'savings', 'savings', 'policy', 'policy',
]

PAIRS = [(0, 5), (1, 4), (2, 3), (6, 7), (8, 9), (10, 11), (12, 13), (14, 15)]


class ArrangedRandom:
    """Stands in for ``random`` and lays the deck out in a fixed order."""

    def __init__(self, layout):
        self.layout = list(layout)

    def shuffle(self, faces):
        remaining = list(faces)
        arranged = []
        for pair_id in self.layout:
            face = next(f for f in remaining if f['id'] == pair_id)
            remaining.remove(face)
            arranged.append(face)
        faces[:] = arranged


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def make_session(scheduler):
    def _make(layout=LAYOUT, start=True, **settings):
        session = GameSession(scheduler, settings=GameSettings(**settings),
                              rng=ArrangedRandom(layout), session_id='test')
        if start:
            session.init_game()
        return session
    return _make


@pytest.fixture()
def session(make_session):
    return make_session()


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        db.create_all()
        yield application
        clear_sessions()
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def app_scheduler(flask_app):
    return flask_app.extensions['tilematch_scheduler']


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
