"""
JSON error responses for the API
"""
from flask import jsonify
from sqlalchemy.orm.exc import StaleDataError
from werkzeug.exceptions import HTTPException

from labdesk.extensions import db


def register_error_handlers(app):
    """Answer every HTTP error with a JSON body"""

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'error': error.description}), error.code

    @app.errorhandler(StaleDataError)
    def handle_stale_data(error):
        db.session.rollback()
        app.logger.warning(f"Concurrent modification rejected: {error}")
        return jsonify({'error': 'Record was modified by another request'}), 409
