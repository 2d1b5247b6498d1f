"""Keyed stores over the Flask-SQLAlchemy session.

Each store commits its own writes unless it is running inside
``atomic_unit()``, in which case writes are only flushed and the unit
commits (or rolls back) everything at once.
"""
from contextlib import contextmanager
from typing import Optional

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from game_directory import db
from game_directory.errors import DependencyUnavailable, DuplicateRecordError, StorageError
from game_directory.models import GameServer, Player, PlayerSession, ServerConfiguration, utcnow

_UNIT_DEPTH = 'atomic_unit_depth'


def _translate(exc, operation):
    if isinstance(exc, IntegrityError):
        return DuplicateRecordError(f'Constraint violated during {operation}', operation=operation)
    if isinstance(exc, OperationalError):
        return DependencyUnavailable(f'Database unavailable during {operation}', operation=operation)
    return StorageError(f'Database error during {operation}', operation=operation)


def in_atomic_unit() -> bool:
    return db.session().info.get(_UNIT_DEPTH, 0) > 0


@contextmanager
def atomic_unit(operation='atomic_unit'):
    """Group store writes so they commit together or not at all."""
    session = db.session()
    depth = session.info.get(_UNIT_DEPTH, 0)
    session.info[_UNIT_DEPTH] = depth + 1
    try:
        yield session
        if depth == 0:
            session.commit()
        else:
            session.flush()
    except SQLAlchemyError as exc:
        if depth == 0:
            session.rollback()
        raise _translate(exc, operation) from exc
    except Exception:
        if depth == 0:
            session.rollback()
        raise
    finally:
        session.info[_UNIT_DEPTH] = depth


class SqlStore:
    model = None
    key = 'id'

    def _finish(self, operation):
        session = db.session()
        try:
            if in_atomic_unit():
                session.flush()
            else:
                session.commit()
        except SQLAlchemyError as exc:
            if not in_atomic_unit():
                session.rollback()
            raise _translate(exc, operation) from exc

    @contextmanager
    def _reading(self, operation):
        try:
            yield
        except OperationalError as exc:
            db.session.rollback()
            raise _translate(exc, operation) from exc

    def get(self, record_id) -> Optional[db.Model]:
        if record_id is None:
            return None
        with self._reading(f'{self.model.__tablename__}.get'):
            return db.session.get(self.model, record_id)

    def all(self):
        with self._reading(f'{self.model.__tablename__}.all'):
            return self.model.query.all()

    def query_by_field(self, field, value):
        with self._reading(f'{self.model.__tablename__}.query'):
            return self.model.query.filter(getattr(self.model, field) == value).all()

    def put(self, record):
        db.session.add(record)
        self._finish(f'{self.model.__tablename__}.put')
        return record

    def delete(self, record_id) -> bool:
        record = self.get(record_id)
        if record is None:
            return False
        db.session.delete(record)
        self._finish(f'{self.model.__tablename__}.delete')
        return True


class ServerStore(SqlStore):
    model = GameServer

    def by_status(self, status):
        return self.query_by_field('status', status)

    def adjust_player_count(self, server_id, delta) -> bool:
        """Apply +1/-1 to current_players as a single conditional UPDATE.

        Increments only while below max_players, decrements only while above
        zero. Returns False when no row matched.
        """
        column = GameServer.current_players
        query = GameServer.query.filter(GameServer.id == server_id)
        if delta > 0:
            query = query.filter(column + delta <= GameServer.max_players)
        else:
            query = query.filter(column + delta >= 0)
        try:
            matched = query.update(
                {column: column + delta, GameServer.last_updated_timestamp: utcnow()},
                synchronize_session=False,
            )
        except SQLAlchemyError as exc:
            raise _translate(exc, 'game_server.adjust_player_count') from exc
        self._finish('game_server.adjust_player_count')
        return matched > 0


class ConfigurationStore(SqlStore):
    model = ServerConfiguration
    key = 'server_id'


class PlayerStore(SqlStore):
    model = Player

    def by_username(self, username):
        found = self.query_by_field('username', username)
        return found[0] if found else None


class SessionStore(SqlStore):
    model = PlayerSession
    key = 'session_id'

    def active_session(self, server_id, player_id) -> Optional[PlayerSession]:
        with self._reading('player_session.active_session'):
            return PlayerSession.query.filter(
                PlayerSession.server_id == server_id,
                PlayerSession.player_id == player_id,
                PlayerSession.leave_time.is_(None),
            ).first()

    def active_for_server(self, server_id):
        with self._reading('player_session.active_for_server'):
            return PlayerSession.query.filter(
                PlayerSession.server_id == server_id,
                PlayerSession.leave_time.is_(None),
            ).order_by(PlayerSession.join_time).all()

    def close(self, session_id, when) -> bool:
        """Stamp leave_time only if the session is still open."""
        try:
            matched = PlayerSession.query.filter(
                PlayerSession.session_id == session_id,
                PlayerSession.leave_time.is_(None),
            ).update({PlayerSession.leave_time: when}, synchronize_session=False)
        except SQLAlchemyError as exc:
            raise _translate(exc, 'player_session.close') from exc
        self._finish('player_session.close')
        return matched > 0
