import pytest

from game_directory.auth import MANAGE, STATUS_READ, is_allowed
from game_directory.models import ApiKey


@pytest.mark.parametrize('permissions, operation, expected', [
    ({MANAGE, STATUS_READ}, 'servers.create', True),
    ({STATUS_READ}, 'servers.create', False),
    ({STATUS_READ}, 'servers.get', True),
    (set(), 'servers.heartbeat', True),
    (set(), 'sessions.join', True),
    (set(), 'servers.list', False),
    ({MANAGE, STATUS_READ}, 'servers.unknown', False),
])
def test_is_allowed(permissions, operation, expected):
    assert is_allowed(permissions, operation) is expected


def test_issued_key_is_hashed_and_resolvable(flask_app):
    store = flask_app.extensions['api_key_store']
    record, raw = store.issue('Developer 1', [MANAGE, STATUS_READ], '123456789')

    assert record.key_hash != raw
    assert record.key_prefix == raw[:ApiKey.PREFIX_LENGTH]
    assert record.permission_set == frozenset({MANAGE, STATUS_READ})
    assert store.find(raw).id == record.id


def test_unknown_or_short_keys_do_not_resolve(flask_app):
    store = flask_app.extensions['api_key_store']
    _, raw = store.issue('Developer 2', [STATUS_READ])
    assert store.find(raw[:ApiKey.PREFIX_LENGTH] + 'tampered') is None
    assert store.find('abc') is None
    assert store.find(None) is None
