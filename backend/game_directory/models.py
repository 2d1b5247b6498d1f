from game_directory import db, bcrypt
from flask_login import UserMixin
from datetime import datetime, timezone
import secrets
import uuid

SERVER_STATUSES = ('Starting', 'Running', 'Draining', 'Stopped')


def utcnow() -> datetime:
    """Naive UTC timestamp; every stored datetime uses this form."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


def _iso(value):
    return value.isoformat() if value else None


class GameServer(db.Model):
    __tablename__ = 'game_server'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False)
    place_id = db.Column(db.BigInteger, nullable=True)
    game_mode = db.Column(db.String(100), nullable=True)
    region = db.Column(db.String(50), nullable=True, index=True)
    max_players = db.Column(db.Integer, nullable=False, default=1)
    current_players = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(64), nullable=False, default='Starting', index=True)
    server_ip = db.Column(db.String(45), nullable=True)
    server_port = db.Column(db.Integer, nullable=True)
    creation_timestamp = db.Column(db.DateTime, nullable=False, default=utcnow)
    last_updated_timestamp = db.Column(db.DateTime, nullable=False, default=utcnow)
    heartbeat_timestamp = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        db.CheckConstraint('current_players >= 0', name='ck_game_server_players_floor'),
        db.CheckConstraint('current_players <= max_players', name='ck_game_server_players_ceiling'),
    )

    def touch(self, now=None):
        self.last_updated_timestamp = now or utcnow()

    def to_dict(self):
        """Read-model projection; this is what callers and the cache see."""
        return {
            'server_id': self.id,
            'name': self.name,
            'place_id': self.place_id,
            'game_mode': self.game_mode,
            'region': self.region,
            'max_players': self.max_players,
            'current_players': self.current_players,
            'status': self.status,
            'server_ip': self.server_ip,
            'server_port': self.server_port,
            'created_at': _iso(self.creation_timestamp),
            'last_updated': _iso(self.last_updated_timestamp),
            'last_heartbeat': _iso(self.heartbeat_timestamp),
        }


class ServerConfiguration(db.Model):
    __tablename__ = 'server_configuration'
    server_id = db.Column(db.String(36), db.ForeignKey('game_server.id'), primary_key=True)
    map_name = db.Column(db.String(128), nullable=True)
    time_limit_minutes = db.Column(db.Integer, nullable=True)
    friendly_fire_enabled = db.Column(db.Boolean, nullable=False, default=False)
    game_rules_json = db.Column(db.Text, nullable=True)
    custom_command_line_args = db.Column(db.Text, nullable=True)
    reserved_ports = db.Column(db.Integer, nullable=False, default=0)
    cpu_cores_limit = db.Column(db.Float, nullable=True)
    memory_limit_mb = db.Column(db.Integer, nullable=True)

    def to_dict(self):
        return {
            'server_id': self.server_id,
            'map_name': self.map_name,
            'time_limit_minutes': self.time_limit_minutes,
            'friendly_fire_enabled': bool(self.friendly_fire_enabled),
            'game_rules_json': self.game_rules_json,
            'custom_command_line_args': self.custom_command_line_args,
            'reserved_ports': self.reserved_ports,
            'cpu_cores_limit': self.cpu_cores_limit,
            'memory_limit_mb': self.memory_limit_mb,
        }


class Player(db.Model):
    __tablename__ = 'player'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    display_name = db.Column(db.String(128), nullable=True)
    created_timestamp = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self):
        return {
            'player_id': self.id,
            'username': self.username,
            'display_name': self.display_name,
            'created_at': _iso(self.created_timestamp),
        }


class PlayerSession(db.Model):
    __tablename__ = 'player_session'
    session_id = db.Column(db.String(36), primary_key=True, default=new_id)
    # No FK: sessions outlive their server for audit
    server_id = db.Column(db.String(36), nullable=False, index=True)
    player_id = db.Column(db.String(36), nullable=False, index=True)
    join_time = db.Column(db.DateTime, nullable=False, default=utcnow)
    leave_time = db.Column(db.DateTime, nullable=True)
    player_ip_address = db.Column(db.String(45), nullable=True)

    __table_args__ = (
        # At most one open session per (server, player)
        db.Index(
            'uq_player_session_active',
            'server_id', 'player_id',
            unique=True,
            sqlite_where=db.text('leave_time IS NULL'),
            postgresql_where=db.text('leave_time IS NULL'),
        ),
    )

    @property
    def is_active(self):
        return self.leave_time is None

    def to_dict(self):
        return {
            'session_id': self.session_id,
            'server_id': self.server_id,
            'player_id': self.player_id,
            'join_time': _iso(self.join_time),
            'leave_time': _iso(self.leave_time),
            'player_ip_address': self.player_ip_address,
        }


class ApiKey(UserMixin, db.Model):
    __tablename__ = 'api_key'
    PREFIX_LENGTH = 8

    id = db.Column(db.Integer, primary_key=True)
    key_prefix = db.Column(db.String(8), nullable=False, index=True)
    key_hash = db.Column(db.String(128), nullable=False)
    developer_name = db.Column(db.String(128), nullable=False)
    experience_id = db.Column(db.String(64), nullable=True)
    permissions = db.Column(db.Text, nullable=False, default='')

    @staticmethod
    def generate_key():
        return secrets.token_urlsafe(32)

    def set_key(self, raw_key):
        self.key_prefix = raw_key[:self.PREFIX_LENGTH]
        self.key_hash = bcrypt.generate_password_hash(raw_key).decode('utf-8')

    def check_key(self, raw_key):
        return bcrypt.check_password_hash(self.key_hash, raw_key)

    @property
    def permission_set(self):
        return frozenset(p.strip() for p in (self.permissions or '').split(',') if p.strip())

    def to_dict(self):
        return {
            'id': self.id,
            'developer_name': self.developer_name,
            'experience_id': self.experience_id,
            'permissions': sorted(self.permission_set),
        }
