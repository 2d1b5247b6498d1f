from flask import Blueprint, jsonify, current_app
from sqlalchemy.exc import SQLAlchemyError
from game_directory import db

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Game server directory'})


@main.route('/health')
def health():
    try:
        db.session.execute(db.text('SELECT 1'))
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error(f'[health] database check failed: {exc}')
        return jsonify({'status': 'unhealthy', 'database': 'unreachable'}), 503
    return jsonify({'status': 'healthy', 'database': 'ok'})
