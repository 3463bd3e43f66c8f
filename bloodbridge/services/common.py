"""
Helpers shared by the store-backed components.
"""

import re
import uuid

from bloodbridge.errors import NotFound, ValidationError

EMAIL_REGEX = r'^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$'


def normalize_email(email):
    return email.strip().lower() if isinstance(email, str) else email


def parse_id(value, not_found_message='Not found'):
    """Store ids travel as strings; anything that is not a UUID cannot exist."""
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise NotFound(not_found_message)


def require_fields(data, fields):
    for f in fields:
        _check_string(f, data.get(f))
    missing = [f for f in fields if not _present(data.get(f))]
    if missing:
        raise ValidationError(f"Missing fields: {', '.join(missing)}")


def pick_fields(data, allowed):
    """Return only the allowed keys of ``data`` that carry a value."""
    for f in allowed:
        _check_string(f, data.get(f))
    return {f: data[f] for f in allowed if f in data and _present(data[f])}


def optional_string(data, field):
    value = data.get(field)
    _check_string(field, value)
    return value


def validate_email(email):
    if not isinstance(email, str) or not re.match(EMAIL_REGEX, email):
        raise ValidationError('Invalid email format')


def validate_choice(value, choices, field):
    if value not in choices:
        raise ValidationError(f"{field} must be one of: {', '.join(choices)}")


def parse_pagination(args, default_limit=10):
    """Read 1-indexed ``page`` and ``limit`` query parameters."""
    page = args.get('page', 1)
    limit = args.get('limit', default_limit)
    try:
        page, limit = int(page), int(limit)
    except (TypeError, ValueError):
        raise ValidationError('page and limit must be integers')
    if page < 1 or limit < 1:
        raise ValidationError('page and limit must be at least 1')
    return page, limit


def _check_string(field, value):
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")


def _present(value):
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True
