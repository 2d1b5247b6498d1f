from flask import Blueprint, jsonify, request
from game_directory.auth import require_permission
from game_directory.services.directory import get_services

server_list = Blueprint('server_list', __name__)


@server_list.route('', methods=['GET'])
@require_permission('server_list.get')
def get_server_list():
    args = request.args
    servers = get_services().listing.list_servers(
        status=args.get('status'),
        game_mode=args.get('game_mode'),
        region=args.get('region'),
        sort_by=args.get('sort_by'),
        sort_order=args.get('sort_order'),
    )
    return jsonify(servers)
