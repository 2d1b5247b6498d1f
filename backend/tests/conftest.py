import os
import sys
from datetime import timedelta
import pytest
from flask import g

# Ensure the backend root (containing the `game_directory` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from game_directory import create_app, db, socketio
from game_directory.cache import MemoryCache


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    BCRYPT_LOG_ROUNDS = 4
    PLACE_API_URL = 'http://places.test/v1/places/{place_id}'
    PLACE_FETCH_BACKOFF_BASE = 0.0


@pytest.fixture()
def cache_backend():
    return MemoryCache()


@pytest.fixture()
def flask_app(cache_backend):
    application = create_app(TestConfig, cache_backend=cache_backend)

    @application.before_request
    def _fresh_login_user():
        # Requests reuse the fixture's app context, so g would keep the previous key
        g.pop('_login_user', None)

    with application.app_context():
        # Ensure models are imported so tables are created
        import game_directory.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def file_app(tmp_path):
    """App on a file-backed SQLite database, for tests that use real threads."""
    class FileConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'directory.db'}"
        SQLALCHEMY_ENGINE_OPTIONS = {'connect_args': {'timeout': 30}}

    application = create_app(FileConfig)
    with application.app_context():
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def services(flask_app):
    from game_directory.services.directory import get_services
    return get_services()


@pytest.fixture()
def api_keys(flask_app):
    store = flask_app.extensions['api_key_store']
    _, manager = store.issue('Manager', ['server.manage', 'server.status.read'], '123456789')
    _, reader = store.issue('Reader', ['server.status.read'], '987654321')
    _, node = store.issue('Game node', [], None)
    return {'manager': manager, 'reader': reader, 'node': node}


@pytest.fixture()
def manager_headers(api_keys):
    return {'X-API-Key': api_keys['manager']}


@pytest.fixture()
def reader_headers(api_keys):
    return {'X-API-Key': api_keys['reader']}


@pytest.fixture()
def node_headers(api_keys):
    return {'X-API-Key': api_keys['node']}


@pytest.fixture()
def make_server(services):
    def _make(name='Arena-1', max_players=10, region='NA', game_mode='tdm', **extra):
        data = {'name': name, 'max_players': max_players, 'region': region, 'game_mode': game_mode,
                'place_id': 1818}
        data.update(extra)
        result = services.directory.create_server(data)
        assert result.ok, result.message
        return result.value
    return _make


@pytest.fixture()
def make_player(services):
    def _make(username='p1'):
        result = services.players.create_player({'username': username})
        assert result.ok, result.message
        return result.value
    return _make


@pytest.fixture()
def age_heartbeat():
    """Move a server's stored heartbeat into the past."""
    from game_directory.models import GameServer, utcnow

    def _age(server_id, minutes):
        server = db.session.get(GameServer, server_id)
        server.heartbeat_timestamp = utcnow() - timedelta(minutes=minutes)
        db.session.commit()
    return _age


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(flask_app, namespace='/ws/serverstatus')
    yield test_client
    if test_client.is_connected('/ws/serverstatus'):
        test_client.disconnect(namespace='/ws/serverstatus')
