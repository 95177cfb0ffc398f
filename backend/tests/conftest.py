import os
import sys
import pytest

# Ensure the backend root (containing the `drawboard` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from flask import g, has_app_context
from flask.testing import FlaskClient

from drawboard import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    BCRYPT_LOG_ROUNDS = 4
    LOG_LEVEL = 'DEBUG'
    GAME_ANCHOR_ZONE = 'Asia/Kolkata'
    GAME_ROLLOVER_HOUR = 6
    # Keep-alive timers are exercised directly in test_gateway
    KEEPALIVE_INTERVAL_SEC = 0
    STREAM_QUEUE_SIZE = 100
    RESULTS_PAGE_SIZE = 10


class SessionScopedClient(FlaskClient):
    """Test client whose requests only ever see their own logged-in user.

    The fixture app context stays pushed for the whole test and Flask reuses
    it for every request, so Flask-Login's cached user in ``g`` would
    otherwise carry over from whichever client made the previous request.
    """

    def open(self, *args, **kwargs):
        if has_app_context():
            g.pop('_login_user', None)
        return super().open(*args, **kwargs)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    application.test_client_class = SessionScopedClient
    with application.app_context():
        # Ensure models are imported so tables are created
        import drawboard.models  # noqa: F401
        db.create_all()
        yield application
        application.extensions['broadcast_gateway'].close_all()
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def bus(flask_app):
    return flask_app.extensions['event_bus']


@pytest.fixture()
def gateway(flask_app):
    return flask_app.extensions['broadcast_gateway']


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


def _make_user(username, role):
    from drawboard.models import User
    user = User(username=username, role=role)
    user.set_password('password')
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture()
def admin_user(flask_app):
    return _make_user('admin', 'admin')


@pytest.fixture()
def viewer_user(flask_app):
    return _make_user('viewer', 'viewer')


@pytest.fixture()
def admin_client(flask_app, admin_user):
    test_client = flask_app.test_client()
    res = test_client.post('/login', json={'username': 'admin', 'password': 'password'})
    assert res.status_code == 200
    return test_client


@pytest.fixture()
def viewer_client(flask_app, viewer_user):
    test_client = flask_app.test_client()
    res = test_client.post('/login', json={'username': 'viewer', 'password': 'password'})
    assert res.status_code == 200
    return test_client


@pytest.fixture()
def game(flask_app, admin_user):
    from drawboard.models import Game
    g = Game(nick_name='Delhi Bazar', result_time='03:00 PM', created_by_id=admin_user.id)
    db.session.add(g)
    db.session.commit()
    return g


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
