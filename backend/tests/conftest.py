import os
import sys
import pytest

# Ensure the backend root (containing the `tales` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from tales import create_app, db, socketio
from tales.seed import seed_reference_data


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    HOST_REPLY_DELAY_SEC = 0
    HOST_REPLY_JITTER_SEC = 0
    CLUE_SOURCE = 'fixed'
    EXTRA_CLUE_ANSWERS = '2:znob'
    ADMIN_USERNAMES = ['admin']
    LOBBY_SESSION_ID = 'lobby'


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    # Requests and socket events each push their own app context, so
    # Flask-Login's per-context user cache never leaks between clients.
    with application.app_context():
        db.create_all()
        seed_reference_data()
    yield application
    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def app_ctx(flask_app):
    with flask_app.app_context():
        yield flask_app


@pytest.fixture()
def services(app_ctx):
    return app_ctx.extensions['tales']


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


def register(http_client, username, password='password'):
    res = http_client.post('/api/register', json={'username': username, 'password': password})
    assert res.status_code == 201, res.get_json()
    return res.get_json()['user']


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(flask_app, namespace='/ws')
    yield test_client
    if test_client.is_connected('/ws'):
        test_client.disconnect(namespace='/ws')


@pytest.fixture()
def connect(flask_app):
    """Factory: connect a Socket.IO client, logged in when a username is given."""
    opened = []

    def _connect(username=None):
        http_client = flask_app.test_client()
        user = register(http_client, username) if username else None
        sio = socketio.test_client(flask_app, namespace='/ws', flask_test_client=http_client)
        sio.get_received('/ws')  # flush connect events
        opened.append(sio)
        return sio, user

    yield _connect
    for sio in opened:
        if sio.is_connected('/ws'):
            sio.disconnect(namespace='/ws')


@pytest.fixture()
def register_user():
    return register
