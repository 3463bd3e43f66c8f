from flask import request

from bloodbridge.errors import ValidationError


def json_body():
    """Request body as a dict; anything else is a 400."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def page_envelope(pagination, page, limit, key):
    return {
        'total': pagination.total,
        'page': page,
        'limit': limit,
        key: [item.to_dict() for item in pagination.items],
    }
