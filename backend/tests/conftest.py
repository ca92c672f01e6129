import os
import sys
import pytest

# Ensure the backend root (containing the `poker` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from poker import create_app, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = 'test-secret'
    CORS_ORIGINS = '*'
    SOCKETIO_NAMESPACE = '/'
    ROOM_CODE_LENGTH = 6
    EMPTY_ROOM_GRACE_SEC = 3600
    JANITOR_INTERVAL_SEC = 600
    CARD_VALUES = ['1', '2', '3', '5']
    VALIDATE_VOTES = False
    LOG_LEVEL = 'DEBUG'


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def store(flask_app):
    return flask_app.extensions['poker_rooms']


@pytest.fixture()
def sio_factory(flask_app):
    """Open any number of Socket.IO test clients; all are closed afterwards."""
    opened = []

    def _connect():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        opened.append(test_client)
        return test_client

    yield _connect
    for test_client in opened:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except Exception:
            pass

