"""
Request parsing helpers shared by the API blueprints
"""
from datetime import date, datetime

from flask import abort, current_app, request


def get_json_payload():
    """Request body as a dict, or 400"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        abort(400, description='Request body must be a JSON object')
    return data


def parse_number(value, field, default=None):
    """Accept ints, floats and numeric strings; negative values pass through"""
    if value is None or value == '':
        if default is not None:
            return default
        abort(400, description=f"Field '{field}' is required")
    if isinstance(value, bool):
        abort(400, description=f"Field '{field}' must be a number")
    if isinstance(value, (int, float)):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        abort(400, description=f"Field '{field}' must be a number")
    return int(number) if number.is_integer() else number


def parse_int(value, field, required=False):
    if value is None:
        if required:
            abort(400, description=f"Field '{field}' is required")
        return None
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        abort(400, description=f"Field '{field}' must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        abort(400, description=f"Field '{field}' must be an integer")


def parse_date(value, field, default=None):
    """Parse an ISO date (YYYY-MM-DD)"""
    if not value:
        return default
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except (TypeError, ValueError):
        abort(400, description=f"Field '{field}' must be a date in YYYY-MM-DD format")


def require_fields(data, *fields):
    for field in fields:
        if field not in data or data[field] in (None, ''):
            abort(400, description=f"Field '{field}' is required")


def check_version(record, data):
    """Reject a write made against an older copy of record"""
    if 'version' not in data or data['version'] is None:
        return
    expected = parse_int(data['version'], 'version')
    if expected != record.version:
        abort(409, description=f'{type(record).__name__} was modified by another request')


def pagination_args():
    page = request.args.get('page', 1, type=int)
    per_page = min(
        request.args.get('per_page', current_app.config['ITEMS_PER_PAGE'], type=int),
        current_app.config['MAX_ITEMS_PER_PAGE']
    )
    return page, per_page
