import logging
from flask import jsonify
from flask_wtf.csrf import CSRFError
from coach import db
from coach.errors import bp

logger = logging.getLogger(__name__)


def error_response(status, error, message):
    return jsonify({'error': error, 'message': message}), status


@bp.app_errorhandler(400)
def bad_request_error(error):
    return error_response(400, 'Bad Request', getattr(error, 'description', str(error)))


@bp.app_errorhandler(CSRFError)
def csrf_error(error):
    logger.error(f"CSRF error: {error.description}")
    return error_response(403, 'Forbidden', 'Invalid or missing CSRF token')


@bp.app_errorhandler(403)
def forbidden_error(error):
    return error_response(403, 'Forbidden', getattr(error, 'description', str(error)))


@bp.app_errorhandler(404)
def not_found_error(error):
    return error_response(404, 'Not Found', getattr(error, 'description', str(error)))


@bp.app_errorhandler(405)
def method_not_allowed_error(error):
    return error_response(405, 'Method Not Allowed', getattr(error, 'description', str(error)))


@bp.app_errorhandler(500)
def internal_error(error):
    db.session.rollback()
    logger.error(f"Interne fout: {error}", exc_info=True)
    return error_response(500, 'Internal Server Error', 'An unexpected error occurred')
