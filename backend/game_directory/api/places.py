from flask import Blueprint, jsonify
from game_directory.auth import require_permission
from game_directory.services.directory import get_services

places = Blueprint('places', __name__)


@places.route('/<int:place_id>', methods=['GET'])
@require_permission('places.get')
def get_place_info(place_id):
    info = get_services().places.fetch(place_id)
    if info is None:
        return jsonify({'error': f'Place {place_id} not found or error fetching info.'}), 404
    return jsonify(info)
