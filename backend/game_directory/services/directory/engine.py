"""Server directory: CRUD, cache-aside reads, heartbeats and configuration."""
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Optional

from game_directory.cache import ProjectionCache
from game_directory.errors import ConsistencyError, StorageError
from game_directory.models import GameServer, ServerConfiguration, new_id, utcnow
from game_directory.store import ConfigurationStore, ServerStore, atomic_unit
from .results import Result

logger = logging.getLogger(__name__)

SERVER_PATCH_TEXT_FIELDS = ('name', 'game_mode', 'region', 'status', 'server_ip')
CONFIG_PATCH_TEXT_FIELDS = ('map_name', 'game_rules_json', 'custom_command_line_args')
CONFIG_PATCH_VALUE_FIELDS = (
    'time_limit_minutes', 'friendly_fire_enabled', 'reserved_ports', 'cpu_cores_limit', 'memory_limit_mb',
)


@dataclass(frozen=True)
class HeartbeatOutcome:
    known: bool
    stalled: bool = False


def _text(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _as_int(value, field):
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f'{field} must be an integer')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f'{field} must be an integer') from None


class DirectoryEngine:
    def __init__(
        self,
        servers: ServerStore,
        configurations: ConfigurationStore,
        cache: ProjectionCache,
        heartbeat_timeout: timedelta = timedelta(minutes=5),
        on_timeout: Optional[Callable[[str, object], None]] = None,
        health_probe=None,
    ):
        self.servers = servers
        self.configurations = configurations
        self.cache = cache
        self.heartbeat_timeout = heartbeat_timeout
        self.on_timeout = on_timeout
        self.health_probe = health_probe

    def cache_key(self, server_id):
        return ProjectionCache.key_for('server', server_id)

    def invalidate(self, server_id):
        self.cache.invalidate(self.cache_key(server_id))

    # ---- reads ----

    def get_server(self, server_id) -> Result:
        key = self.cache_key(server_id)
        cached = self.cache.load(key)
        if cached is not None:
            return Result.found(cached)
        server = self.servers.get(server_id)
        if server is None:
            return Result.not_found('Server not found')
        projection = server.to_dict()
        self.cache.store(key, projection)
        return Result.found(projection)

    def list_servers(self):
        return [s.to_dict() for s in self.servers.all()]

    def list_servers_by_status(self, status):
        return [s.to_dict() for s in self.servers.by_status(status)]

    # ---- writes ----

    def create_server(self, data) -> Result:
        name = _text(data.get('name'))
        if not name:
            return Result.invalid('Server name cannot be empty.')
        try:
            max_players = _as_int(data.get('max_players'), 'max_players')
            place_id = _as_int(data.get('place_id'), 'place_id')
            server_port = _as_int(data.get('server_port'), 'server_port')
        except ValueError as exc:
            return Result.invalid(str(exc))
        if max_players is None or max_players < 1:
            return Result.invalid('max_players must be a positive integer')

        now = utcnow()
        server_id = new_id()
        server = GameServer(
            id=server_id,
            name=name,
            place_id=place_id,
            game_mode=_text(data.get('game_mode')),
            region=_text(data.get('region')),
            max_players=max_players,
            current_players=0,
            status='Starting',
            server_ip=_text(data.get('server_ip')),
            server_port=server_port,
            creation_timestamp=now,
            last_updated_timestamp=now,
        )
        logger.info(f'[create] server={server_id} name={name} place={place_id}')
        try:
            with atomic_unit('create_server'):
                self.servers.put(server)
                self.configurations.put(ServerConfiguration(server_id=server_id))
        except StorageError as exc:
            logger.error(f'[consistency] op=create_server server={server_id} error={exc}')
            raise ConsistencyError(
                'Server record and its configuration could not be created together',
                entity_id=server_id, operation='create_server',
            ) from exc
        return Result.found(server.to_dict(), created=True)

    def update_server(self, server_id, data) -> Result:
        server = self.servers.get(server_id)
        if server is None:
            return Result.not_found('Server not found')
        try:
            max_players = _as_int(data.get('max_players'), 'max_players')
            server_port = _as_int(data.get('server_port'), 'server_port')
        except ValueError as exc:
            return Result.invalid(str(exc))
        if max_players is not None:
            if max_players < 1:
                return Result.invalid('max_players must be a positive integer')
            if max_players < server.current_players:
                return Result.invalid(
                    f'max_players cannot be below current_players ({server.current_players})'
                )

        for field in SERVER_PATCH_TEXT_FIELDS:
            value = _text(data.get(field))
            if value is not None:
                setattr(server, field, value)
        if max_players is not None:
            server.max_players = max_players
        if server_port is not None:
            server.server_port = server_port
        server.touch()

        self.servers.put(server)
        self.invalidate(server_id)
        return Result.found(server.to_dict())

    def delete_server(self, server_id) -> bool:
        with atomic_unit('delete_server'):
            self.configurations.delete(server_id)
            existed = self.servers.delete(server_id)
        self.invalidate(server_id)
        return existed

    def heartbeat(self, server_id) -> HeartbeatOutcome:
        server = self.servers.get(server_id)
        if server is None:
            return HeartbeatOutcome(known=False)

        # Liveness is judged on the timestamp as it was before this heartbeat
        previous = server.heartbeat_timestamp or server.creation_timestamp
        now = utcnow()
        server.heartbeat_timestamp = now
        server.touch(now)
        self.servers.put(server)
        self.invalidate(server_id)

        stalled = previous is not None and previous < now - self.heartbeat_timeout
        if stalled:
            logger.warning(
                f'[heartbeat-timeout] server={server_id} last_heartbeat={previous.isoformat()} '
                f'silence={int((now - previous).total_seconds())}s'
            )
            if self.on_timeout is not None:
                self.on_timeout(server_id, previous)
        return HeartbeatOutcome(known=True, stalled=stalled)

    # ---- configuration ----

    def get_configuration(self, server_id) -> Result:
        config = self.configurations.get(server_id)
        if config is None:
            return Result.not_found('Server configuration not found')
        return Result.found(config.to_dict())

    def update_configuration(self, server_id, data) -> Result:
        config = self.configurations.get(server_id)
        if config is None:
            return Result.not_found('Server configuration not found')
        changes = {}
        for field in CONFIG_PATCH_TEXT_FIELDS:
            value = _text(data.get(field))
            if value is not None:
                changes[field] = value
        for field in CONFIG_PATCH_VALUE_FIELDS:
            value = data.get(field)
            if value is None:
                continue
            if field == 'friendly_fire_enabled':
                if not isinstance(value, bool):
                    return Result.invalid('friendly_fire_enabled must be a boolean')
            elif field == 'cpu_cores_limit':
                try:
                    value = float(value)
                except (TypeError, ValueError):
                    return Result.invalid('cpu_cores_limit must be a number')
            else:
                try:
                    value = _as_int(value, field)
                except ValueError as exc:
                    return Result.invalid(str(exc))
            changes[field] = value
        for field, value in changes.items():
            setattr(config, field, value)
        self.configurations.put(config)
        return Result.found(config.to_dict())

    # ---- health ----

    def get_server_health(self, server_id) -> Result:
        server = self.servers.get(server_id)
        if server is None:
            return Result.not_found('Server not found')
        unavailable = f'Server health information not available for server {server_id}.'
        if not server.server_ip or not server.server_port or self.health_probe is None:
            return Result.not_found(unavailable)
        info = self.health_probe.probe(server.server_ip, server.server_port)
        if info is None:
            return Result.not_found(unavailable)
        return Result.found(info)
