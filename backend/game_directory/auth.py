from functools import wraps

from flask import current_app, jsonify, request
from flask_login import current_user, login_required

from game_directory import db, login_manager
from game_directory.models import ApiKey

API_KEY_HEADER = 'X-API-Key'
API_KEY_STORE = 'api_key_store'

MANAGE = 'server.manage'
STATUS_READ = 'server.status.read'

# operation -> required permission; None means any valid key
OPERATION_PERMISSIONS = {
    'servers.list': STATUS_READ,
    'servers.get': STATUS_READ,
    'servers.by_status': STATUS_READ,
    'servers.create': MANAGE,
    'servers.update': MANAGE,
    'servers.delete': MANAGE,
    'servers.heartbeat': None,
    'servers.config.get': STATUS_READ,
    'servers.config.update': MANAGE,
    'servers.health': STATUS_READ,
    'sessions.join': None,
    'sessions.leave': None,
    'sessions.list_active': STATUS_READ,
    'server_list.get': STATUS_READ,
    'places.get': STATUS_READ,
    'players.manage': MANAGE,
}


def is_allowed(permissions, operation) -> bool:
    """Unknown operations are denied."""
    if operation not in OPERATION_PERMISSIONS:
        return False
    required = OPERATION_PERMISSIONS[operation]
    return required is None or required in permissions


class ApiKeyStore:
    """Resolves raw API keys to their stored (hashed) records."""

    def find(self, raw_key):
        if not raw_key or len(raw_key) < ApiKey.PREFIX_LENGTH:
            return None
        candidates = ApiKey.query.filter_by(key_prefix=raw_key[:ApiKey.PREFIX_LENGTH]).all()
        for candidate in candidates:
            if candidate.check_key(raw_key):
                return candidate
        return None

    def issue(self, developer_name, permissions, experience_id=None):
        """Create a key record; returns (record, raw_key). The raw key is not stored."""
        raw_key = ApiKey.generate_key()
        record = ApiKey(
            developer_name=developer_name,
            experience_id=experience_id,
            permissions=','.join(permissions),
        )
        record.set_key(raw_key)
        db.session.add(record)
        db.session.commit()
        return record, raw_key


@login_manager.request_loader
def load_api_key(req):
    raw_key = req.headers.get(API_KEY_HEADER)
    if not raw_key:
        return None
    key = current_app.extensions[API_KEY_STORE].find(raw_key)
    if key is None:
        current_app.logger.warning(f'[auth] invalid API key prefix={raw_key[:4]}...')
        return None
    return key


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'error': 'API key missing or invalid'}), 401


def require_permission(operation):
    def decorator(view):
        @wraps(view)
        @login_required
        def wrapped(*args, **kwargs):
            if not is_allowed(current_user.permission_set, operation):
                current_app.logger.info(
                    f'[auth] denied developer={current_user.developer_name} op={operation} path={request.path}'
                )
                return jsonify({'error': 'Insufficient permissions'}), 403
            return view(*args, **kwargs)
        return wrapped
    return decorator
