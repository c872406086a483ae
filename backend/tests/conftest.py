import os
import random
import sys
import pytest

# Ensure the backend root (containing the `gameshow` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from gameshow import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = ['http://localhost:5173']
    SESSION_ID = 1
    POINTS_TABLE = 'classic'
    SYNC_DELAY_MS = 0
    QUESTION_TIMER_SEC = 30


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import gameshow.models  # noqa: F401
        db.create_all()
        application.extensions['gameshow'].store.ensure_session()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def services(flask_app):
    svc = flask_app.extensions['gameshow']
    svc.engine.rng = random.Random(1234)
    return svc


@pytest.fixture()
def store(services):
    return services.store


@pytest.fixture()
def engine(services):
    return services.engine


@pytest.fixture()
def aggregator(services):
    return services.aggregator


@pytest.fixture()
def make_team(store):
    def _make(name, score=0, is_active=True):
        return store.insert('teams', {'name': name, 'score': score, 'is_active': is_active})
    return _make


@pytest.fixture()
def make_category(store):
    def _make(name):
        return store.insert('categories', {'name': name})
    return _make


@pytest.fixture()
def make_question(store):
    def _make(category_id, difficulty='Easy', text=None, is_used=False, **answer):
        if not answer:
            answer = {'answer_text': 'answer'}
        record = dict(
            answer,
            category_id=category_id,
            difficulty=difficulty,
            question_text=text or f'Question for {category_id}/{difficulty}',
            is_used=is_used,
        )
        return store.insert('questions', record)
    return _make


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
