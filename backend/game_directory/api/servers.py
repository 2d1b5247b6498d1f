from flask import Blueprint, jsonify, request
from game_directory.auth import require_permission
from game_directory.services.directory import get_services
from game_directory.socketio_events import broadcast_server_removed, broadcast_server_status
from game_directory.validators import validate_create_server
from .responses import result_response


servers = Blueprint('servers', __name__)


def _publish(server_id) -> None:
    result = get_services().directory.get_server(server_id)
    if result.ok:
        broadcast_server_status(result.value)


@servers.route('', methods=['GET'])
@require_permission('servers.list')
def list_servers():
    return jsonify(get_services().directory.list_servers())


@servers.route('/<string:server_id>', methods=['GET'])
@require_permission('servers.get')
def get_server(server_id):
    return result_response(get_services().directory.get_server(server_id))


@servers.route('', methods=['POST'])
@require_permission('servers.create')
def create_server():
    data = request.get_json(silent=True) or {}
    errors = validate_create_server(data)
    if errors:
        return jsonify({'error': 'Invalid request', 'messages': errors}), 400
    result = get_services().directory.create_server(data)
    if result.ok:
        broadcast_server_status(result.value)
    return result_response(result)


@servers.route('/<string:server_id>', methods=['PUT'])
@require_permission('servers.update')
def update_server(server_id):
    data = request.get_json(silent=True) or {}
    result = get_services().directory.update_server(server_id, data)
    if result.ok:
        broadcast_server_status(result.value)
    return result_response(result)


@servers.route('/<string:server_id>', methods=['DELETE'])
@require_permission('servers.delete')
def delete_server(server_id):
    if not get_services().directory.delete_server(server_id):
        return jsonify({'error': 'Server not found'}), 404
    broadcast_server_removed(server_id)
    return '', 204


@servers.route('/<string:server_id>/heartbeat', methods=['POST'])
@require_permission('servers.heartbeat')
def server_heartbeat(server_id):
    outcome = get_services().directory.heartbeat(server_id)
    if outcome.known:
        _publish(server_id)
    # Unknown servers are acknowledged the same way
    return jsonify({'ok': True})


@servers.route('/status/<string:status>', methods=['GET'])
@require_permission('servers.by_status')
def servers_by_status(status):
    return jsonify(get_services().directory.list_servers_by_status(status))


@servers.route('/<string:server_id>/config', methods=['GET'])
@require_permission('servers.config.get')
def get_server_configuration(server_id):
    return result_response(get_services().directory.get_configuration(server_id))


@servers.route('/<string:server_id>/config', methods=['PUT'])
@require_permission('servers.config.update')
def update_server_configuration(server_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'JSON object body is required'}), 400
    return result_response(get_services().directory.update_configuration(server_id, data))


@servers.route('/<string:server_id>/health', methods=['GET'])
@require_permission('servers.health')
def get_server_health(server_id):
    return result_response(get_services().directory.get_server_health(server_id))


@servers.route('/<string:server_id>/players/join', methods=['POST'])
@require_permission('sessions.join')
def player_join(server_id):
    data = request.get_json(silent=True) or {}
    player_id = data.get('player_id')
    if not player_id:
        return jsonify({'error': 'player_id is required'}), 400
    result = get_services().sessions.join(server_id, player_id, data.get('player_ip_address'))
    if not result.ok:
        return result_response(result)
    if result.created:
        _publish(server_id)
    return jsonify({'session_id': result.value['session_id']}), (201 if result.created else 200)


@servers.route('/<string:server_id>/players/leave', methods=['POST'])
@require_permission('sessions.leave')
def player_leave(server_id):
    data = request.get_json(silent=True) or {}
    player_id = data.get('player_id')
    if not player_id:
        return jsonify({'error': 'player_id is required'}), 400
    result = get_services().sessions.leave(server_id, player_id)
    if not result.ok:
        return result_response(result)
    _publish(server_id)
    return jsonify({'ok': True})


@servers.route('/<string:server_id>/players', methods=['GET'])
@require_permission('sessions.list_active')
def active_players(server_id):
    return jsonify(get_services().sessions.list_active_sessions(server_id))
