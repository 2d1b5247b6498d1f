from flask_socketio import emit
from game_directory import socketio

NAMESPACE = '/ws/serverstatus'


def handle_connect():
    emit('connected', {'message': f'Connected to {NAMESPACE}'})


def handle_ping(data):
    emit('pong', data or {})


# ---- broadcasts from the HTTP layer and the directory ----

def broadcast_server_status(projection) -> None:
    socketio.emit('server_status', projection, namespace=NAMESPACE)


def broadcast_server_removed(server_id: str) -> None:
    socketio.emit('server_removed', {'server_id': server_id}, namespace=NAMESPACE)


def broadcast_heartbeat_timeout(server_id: str, last_heartbeat) -> None:
    socketio.emit('heartbeat_timeout', {
        'server_id': server_id,
        'last_heartbeat': last_heartbeat.isoformat() if last_heartbeat else None,
    }, namespace=NAMESPACE)


def register_socketio_handlers() -> None:
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)
