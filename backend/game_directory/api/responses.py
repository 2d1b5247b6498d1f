from flask import jsonify

from game_directory.services.directory.results import Outcome

_FAILURE_STATUS = {
    Outcome.NOT_FOUND: 404,
    Outcome.INVALID: 400,
    Outcome.CONFLICT: 409,
}


def result_response(result, ok_status=200, created_status=201):
    if result.ok:
        return jsonify(result.value), (created_status if result.created else ok_status)
    return jsonify({'error': result.message}), _FAILURE_STATUS[result.outcome]
