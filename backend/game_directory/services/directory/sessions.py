import logging

from game_directory.errors import ConsistencyError, DuplicateRecordError, StorageError
from game_directory.models import PlayerSession, new_id, utcnow
from game_directory.store import PlayerStore, ServerStore, SessionStore, atomic_unit
from .results import Result

logger = logging.getLogger(__name__)


class _Rejected(Exception):
    """Abort the current atomic unit; carries the result to return."""

    def __init__(self, result):
        super().__init__(result.message)
        self.result = result


class SessionEngine:
    """Player join/leave bookkeeping against a server's capacity counter.

    The session write and the counter change for one join or leave always
    commit together. Counter changes are conditional UPDATEs, so concurrent
    callers never act on a stale count.
    """

    def __init__(self, servers: ServerStore, players: PlayerStore, sessions: SessionStore, directory):
        self.servers = servers
        self.players = players
        self.sessions = sessions
        self.directory = directory

    def join(self, server_id, player_id, ip_address=None) -> Result:
        """Open a session for the player and take one seat on the server.

        A player who already holds an active session on the server gets that
        session back (``created=False``) and the counter is left alone.
        """
        if self.servers.get(server_id) is None or self.players.get(player_id) is None:
            return Result.not_found('Server or Player not found.')

        existing = self.sessions.active_session(server_id, player_id)
        if existing is not None:
            logger.info(f'[join] server={server_id} player={player_id} duplicate session={existing.session_id}')
            return Result.found(existing.to_dict(), created=False)

        session = PlayerSession(
            session_id=new_id(),
            server_id=server_id,
            player_id=player_id,
            join_time=utcnow(),
            player_ip_address=ip_address,
        )
        try:
            with atomic_unit('join'):
                self.sessions.put(session)
                if not self.servers.adjust_player_count(server_id, +1):
                    raise _Rejected(Result.conflict('Server is full'))
        except _Rejected as rejected:
            if self.servers.get(server_id) is None:
                return Result.not_found('Server or Player not found.')
            logger.info(f'[join] server={server_id} player={player_id} rejected={rejected}')
            return rejected.result
        except DuplicateRecordError as exc:
            # Lost a race against a concurrent join for the same player
            winner = self.sessions.active_session(server_id, player_id)
            if winner is not None:
                return Result.found(winner.to_dict(), created=False)
            logger.error(f'[consistency] op=join server={server_id} player={player_id} error={exc}')
            raise ConsistencyError('Join could not be committed', entity_id=server_id, operation='join') from exc
        except StorageError as exc:
            logger.error(f'[consistency] op=join server={server_id} player={player_id} error={exc}')
            raise ConsistencyError('Join could not be committed', entity_id=server_id, operation='join') from exc

        self.directory.invalidate(server_id)
        logger.info(f'[join] server={server_id} player={player_id} session={session.session_id}')
        return Result.found(session.to_dict(), created=True)

    def leave(self, server_id, player_id) -> Result:
        active = self.sessions.active_session(server_id, player_id)
        if active is None:
            return Result.not_found('Active session not found.')

        session_id = active.session_id
        try:
            with atomic_unit('leave'):
                if not self.sessions.close(session_id, utcnow()):
                    raise _Rejected(Result.not_found('Active session not found.'))
                # Floor at zero; a missing server just means nothing to decrement
                self.servers.adjust_player_count(server_id, -1)
        except _Rejected as rejected:
            return rejected.result
        except StorageError as exc:
            logger.error(f'[consistency] op=leave server={server_id} player={player_id} error={exc}')
            raise ConsistencyError('Leave could not be committed', entity_id=server_id, operation='leave') from exc

        self.directory.invalidate(server_id)
        logger.info(f'[leave] server={server_id} player={player_id} session={session_id}')
        return Result.found(True)

    def list_active_sessions(self, server_id):
        return [s.to_dict() for s in self.sessions.active_for_server(server_id)]
