"""create game_server, server_configuration, player, player_session, api_key

Revision ID: 3c7d9e1f2a4b
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c7d9e1f2a4b'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    existing_tables = set(sa.inspect(bind).get_table_names())

    if 'game_server' not in existing_tables:
        op.create_table(
            'game_server',
            sa.Column('id', sa.String(length=36), primary_key=True),
            sa.Column('name', sa.String(length=255), nullable=False),
            sa.Column('place_id', sa.BigInteger(), nullable=True),
            sa.Column('game_mode', sa.String(length=100), nullable=True),
            sa.Column('region', sa.String(length=50), nullable=True),
            sa.Column('max_players', sa.Integer(), nullable=False),
            sa.Column('current_players', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('status', sa.String(length=64), nullable=False),
            sa.Column('server_ip', sa.String(length=45), nullable=True),
            sa.Column('server_port', sa.Integer(), nullable=True),
            sa.Column('creation_timestamp', sa.DateTime(), nullable=False),
            sa.Column('last_updated_timestamp', sa.DateTime(), nullable=False),
            sa.Column('heartbeat_timestamp', sa.DateTime(), nullable=True),
            sa.CheckConstraint('current_players >= 0', name='ck_game_server_players_floor'),
            sa.CheckConstraint('current_players <= max_players', name='ck_game_server_players_ceiling'),
        )
        op.create_index('ix_game_server_region', 'game_server', ['region'])
        op.create_index('ix_game_server_status', 'game_server', ['status'])

    if 'server_configuration' not in existing_tables:
        op.create_table(
            'server_configuration',
            sa.Column('server_id', sa.String(length=36), sa.ForeignKey('game_server.id'), primary_key=True),
            sa.Column('map_name', sa.String(length=128), nullable=True),
            sa.Column('time_limit_minutes', sa.Integer(), nullable=True),
            sa.Column('friendly_fire_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('game_rules_json', sa.Text(), nullable=True),
            sa.Column('custom_command_line_args', sa.Text(), nullable=True),
            sa.Column('reserved_ports', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('cpu_cores_limit', sa.Float(), nullable=True),
            sa.Column('memory_limit_mb', sa.Integer(), nullable=True),
        )

    if 'player' not in existing_tables:
        op.create_table(
            'player',
            sa.Column('id', sa.String(length=36), primary_key=True),
            sa.Column('username', sa.String(length=64), nullable=False),
            sa.Column('display_name', sa.String(length=128), nullable=True),
            sa.Column('created_timestamp', sa.DateTime(), nullable=False),
        )
        op.create_index('ix_player_username', 'player', ['username'], unique=True)

    if 'player_session' not in existing_tables:
        op.create_table(
            'player_session',
            sa.Column('session_id', sa.String(length=36), primary_key=True),
            sa.Column('server_id', sa.String(length=36), nullable=False),
            sa.Column('player_id', sa.String(length=36), nullable=False),
            sa.Column('join_time', sa.DateTime(), nullable=False),
            sa.Column('leave_time', sa.DateTime(), nullable=True),
            sa.Column('player_ip_address', sa.String(length=45), nullable=True),
        )
        op.create_index('ix_player_session_server_id', 'player_session', ['server_id'])
        op.create_index('ix_player_session_player_id', 'player_session', ['player_id'])
        op.create_index(
            'uq_player_session_active', 'player_session', ['server_id', 'player_id'],
            unique=True,
            sqlite_where=sa.text('leave_time IS NULL'),
            postgresql_where=sa.text('leave_time IS NULL'),
        )

    if 'api_key' not in existing_tables:
        op.create_table(
            'api_key',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('key_prefix', sa.String(length=8), nullable=False),
            sa.Column('key_hash', sa.String(length=128), nullable=False),
            sa.Column('developer_name', sa.String(length=128), nullable=False),
            sa.Column('experience_id', sa.String(length=64), nullable=True),
            sa.Column('permissions', sa.Text(), nullable=False, server_default=''),
        )
        op.create_index('ix_api_key_key_prefix', 'api_key', ['key_prefix'])


def downgrade():
    existing_tables = set(sa.inspect(op.get_bind()).get_table_names())
    for table in ('api_key', 'player_session', 'player', 'server_configuration', 'game_server'):
        if table in existing_tables:
            op.drop_table(table)
