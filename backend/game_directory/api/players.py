from flask import Blueprint, jsonify, request
from game_directory.auth import require_permission
from game_directory.services.directory import get_services
from .responses import result_response

players = Blueprint('players', __name__)


@players.route('/<string:player_id>', methods=['GET'])
@require_permission('players.manage')
def get_player(player_id):
    return result_response(get_services().players.get_player(player_id))


@players.route('', methods=['POST'])
@require_permission('players.manage')
def create_player():
    data = request.get_json(silent=True) or {}
    return result_response(get_services().players.create_player(data))


@players.route('/<string:player_id>', methods=['PUT'])
@require_permission('players.manage')
def update_player(player_id):
    data = request.get_json(silent=True) or {}
    return result_response(get_services().players.update_player(player_id, data))


@players.route('/<string:player_id>', methods=['DELETE'])
@require_permission('players.manage')
def delete_player(player_id):
    if not get_services().players.delete_player(player_id):
        return jsonify({'error': 'Player not found'}), 404
    return '', 204
