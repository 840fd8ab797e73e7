# ======================================
# JSON response envelope: {success, data, message, timestamp}
# ======================================

from datetime import datetime

from flask import jsonify

TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S'
DISPLAY_DATE = '%d/%m/%Y'
DISPLAY_DATETIME = '%d/%m/%Y %H:%M'

# Shown where a doctor has no screenings yet ("never")
NEVER = 'कभी नहीं'


def _now():
    return datetime.now().strftime(TIMESTAMP_FORMAT)


def success_response(data=None, message='Success', status=200, **extra):
    body = {'success': True, 'data': data, 'message': message}
    body.update(extra)
    body['timestamp'] = _now()
    return jsonify(body), status


def error_response(message, status):
    return jsonify({
        'success': False,
        'data': None,
        'message': message,
        'timestamp': _now(),
    }), status


def format_date(value, fmt=DISPLAY_DATE, default=None):
    """Render a stored datetime for display; ``default`` when it is missing."""
    if not value:
        return default
    if isinstance(value, str):
        # Aggregates over unions can come back untyped on some drivers
        value = datetime.fromisoformat(value)
    return value.strftime(fmt)
