"""
Route decorators that verify the bearer credential and authorize the caller.

``authenticated`` only verifies the credential and sets ``g.identity``.
``requires(capability)`` also resolves the stored user through the Access
Policy and sets ``g.current_user``.
"""

from functools import wraps

from flask import current_app, g, request

from bloodbridge.errors import Forbidden, Unauthenticated
from bloodbridge.services import get_services
from bloodbridge.services.identity import bearer_token


def _verify_request():
    try:
        token = bearer_token(request.headers.get('Authorization'))
        g.identity = get_services().verifier.verify(token)
    except Unauthenticated:
        current_app.logger.warning("Rejected credential for %s %s", request.method, request.path)
        raise
    return g.identity


def authenticated(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        _verify_request()
        return f(*args, **kwargs)
    return decorated


def requires(capability):
    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            identity = _verify_request()
            try:
                g.current_user = get_services().policy.authorize(identity, capability)
            except Forbidden:
                current_app.logger.warning(
                    "Denied %s to %s on %s %s", capability, identity.email, request.method, request.path
                )
                raise
            return f(*args, **kwargs)
        return decorated
    return decorator
