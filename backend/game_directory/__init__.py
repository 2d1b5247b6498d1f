from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
from datetime import timedelta
import uuid
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

# Development keys seeded by `flask db-reset`
SEED_API_KEYS = [
    ('Developer 1', ['server.manage', 'server.status.read'], '123456789'),
    ('Developer 2', ['server.status.read'], '987654321'),
]


def create_app(config_class=Config, cache_backend=None):
    """Build the application.

    ``cache_backend`` is any object with get/set/remove; defaults to a
    process-local MemoryCache.
    """
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Importing auth binds the Flask-Login request loader
    from game_directory import auth
    flask_app.extensions[auth.API_KEY_STORE] = auth.ApiKeyStore()

    _init_services(flask_app, cache_backend)

    from game_directory.main import main
    flask_app.register_blueprint(main)

    from game_directory.api.servers import servers
    flask_app.register_blueprint(servers, url_prefix='/api/servers')

    from game_directory.api.server_list import server_list
    flask_app.register_blueprint(server_list, url_prefix='/api/server-list')

    from game_directory.api.players import players
    flask_app.register_blueprint(players, url_prefix='/api/players')

    from game_directory.api.places import places
    flask_app.register_blueprint(places, url_prefix='/api/places')

    from game_directory.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    _register_error_handlers(flask_app)

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database with development API keys."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            store = flask_app.extensions[auth.API_KEY_STORE]
            for developer, permissions, experience_id in SEED_API_KEYS:
                _, raw_key = store.issue(developer, permissions, experience_id)
                print(f'{developer} ({", ".join(permissions)}): {raw_key}')
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app


def _init_services(flask_app, cache_backend):
    from game_directory.cache import MemoryCache, ProjectionCache
    from game_directory.socketio_events import broadcast_heartbeat_timeout
    from game_directory.store import ConfigurationStore, PlayerStore, ServerStore, SessionStore
    from game_directory.services.directory import EXTENSION_KEY, DirectoryServices
    from game_directory.services.directory.engine import DirectoryEngine
    from game_directory.services.directory.listing import ListingEngine
    from game_directory.services.directory.places import HealthProbe, PlaceMetadataFetcher
    from game_directory.services.directory.players import PlayerRegistry
    from game_directory.services.directory.sessions import SessionEngine

    cfg = flask_app.config
    server_store = ServerStore()
    player_store = PlayerStore()
    cache = ProjectionCache(
        cache_backend if cache_backend is not None else MemoryCache(),
        ttl_seconds=int(cfg['CACHE_EXPIRATION_MINUTES']) * 60,
    )
    directory = DirectoryEngine(
        server_store,
        ConfigurationStore(),
        cache,
        heartbeat_timeout=timedelta(seconds=int(cfg['HEARTBEAT_TIMEOUT_SEC'])),
        on_timeout=broadcast_heartbeat_timeout,
        health_probe=HealthProbe(timeout=float(cfg['HEALTH_PROBE_TIMEOUT_SEC'])),
    )
    flask_app.extensions[EXTENSION_KEY] = DirectoryServices(
        directory=directory,
        sessions=SessionEngine(server_store, player_store, SessionStore(), directory),
        listing=ListingEngine(directory),
        players=PlayerRegistry(player_store),
        places=PlaceMetadataFetcher(
            cfg['PLACE_API_URL'],
            retries=int(cfg['PLACE_FETCH_RETRIES']),
            backoff_base=float(cfg['PLACE_FETCH_BACKOFF_BASE']),
            timeout=float(cfg['PLACE_FETCH_TIMEOUT_SEC']),
        ),
    )


def _register_error_handlers(flask_app):
    from game_directory.errors import ConsistencyError, DependencyUnavailable, StorageError

    def _failure(exc, status, title):
        error_id = str(uuid.uuid4())
        flask_app.logger.error(
            f'[{title}] error_id={error_id} entity={exc.entity_id} op={exc.operation} error={exc}',
            exc_info=exc,
        )
        return jsonify({'error': title, 'detail': str(exc), 'error_id': error_id}), status

    @flask_app.errorhandler(ConsistencyError)
    def handle_consistency_error(exc):
        return _failure(exc, 500, 'consistency_failure')

    @flask_app.errorhandler(DependencyUnavailable)
    def handle_dependency_unavailable(exc):
        return _failure(exc, 503, 'dependency_unavailable')

    @flask_app.errorhandler(StorageError)
    def handle_storage_error(exc):
        return _failure(exc, 500, 'storage_failure')

    @flask_app.errorhandler(500)
    def handle_internal_error(exc):
        error_id = str(uuid.uuid4())
        original = getattr(exc, 'original_exception', None) or exc
        flask_app.logger.error(f'[error] error_id={error_id} unhandled: {original}', exc_info=original)
        return jsonify({
            'error': 'Internal Server Error',
            'detail': 'An unexpected error occurred. Please contact support with the error_id.',
            'error_id': error_id,
        }), 500
