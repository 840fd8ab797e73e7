# ======================================
# Request validation helpers
# ======================================

import re

from flask import current_app, request

from errors import ValidationError

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[A-Za-z0-9-]{2,}$')
PHONE_RE = re.compile(r'^[0-9]{10}$')


def require_json():
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        raise ValidationError('Invalid JSON payload')
    return data


def _blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def require_fields(data, fields, status=400):
    for field in fields:
        if _blank(data.get(field)):
            raise ValidationError(f'Missing required field: {field}', status)


def validate_email(email, status=400):
    email = str(email).strip()
    if not EMAIL_RE.match(email):
        raise ValidationError('Invalid email format', status)
    return email


def validate_phone(phone, field='phoneNo', status=400):
    phone = str(phone).strip()
    if not PHONE_RE.match(phone):
        raise ValidationError(f'{field} must be exactly 10 digits', status)
    return phone


def validate_choice(value, choices, field, status=400):
    if value not in choices:
        raise ValidationError(f'Invalid {field} value', status)
    return value


def validate_int_range(value, low, high, field, status=400):
    if isinstance(value, bool):
        raise ValidationError(f'Invalid {field} value', status)
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'Invalid {field} value', status)
    if isinstance(value, float) and value != number:
        raise ValidationError(f'Invalid {field} value', status)
    if number < low or number > high:
        raise ValidationError(f'{field} must be between {low} and {high}', status)
    return number


def validate_length(value, low, high, field, status=400):
    value = str(value).strip()
    if len(value) < low or len(value) > high:
        raise ValidationError(f'{field} must be between {low} and {high} characters', status)
    return value


def validate_password(password, status=400):
    if not isinstance(password, str) or len(password) < 6:
        raise ValidationError('Password must be at least 6 characters long', status)
    return password


def positive_int_arg(name):
    """Query-string id; 0 when missing or not a positive integer."""
    value = request.args.get(name, type=int)
    return value if value and value > 0 else 0


def pagination_args(default_limit=10):
    page = max(1, request.args.get('page', 1, type=int))
    limit = request.args.get('limit', default_limit, type=int)
    limit = min(current_app.config['PAGE_SIZE_LIMIT'], max(1, limit))
    return page, limit
