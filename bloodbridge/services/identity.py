"""
Identity Verifier — turns a bearer credential into a verified email.

Two providers are supported: tokens signed by this service
(Flask-JWT-Extended) and Firebase ID tokens (firebase-admin). Whatever the
provider, the email is the only fact taken from the credential.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import firebase_admin
from firebase_admin import auth as firebase_auth, credentials
from flask_jwt_extended import decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from bloodbridge.errors import Unauthenticated
from bloodbridge.services.common import normalize_email


@dataclass(frozen=True)
class Identity:
    email: str
    claims: Dict[str, Any] = field(default_factory=dict, compare=False)


def bearer_token(header: Optional[str]) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not header:
        raise Unauthenticated('Unauthorized access')
    parts = header.split()
    if len(parts) != 2 or parts[0].lower() != 'bearer' or not parts[1]:
        raise Unauthenticated('Unauthorized access')
    return parts[1]


def _identity_from_claims(claims: Dict[str, Any]) -> Identity:
    email = normalize_email(claims.get('email') or claims.get('sub'))
    if not email or not isinstance(email, str) or '@' not in email:
        raise Unauthenticated('Unauthorized access')
    return Identity(email=email, claims=claims)


class JwtTokenVerifier:
    """Verifies access tokens signed with ``JWT_SECRET_KEY``; identity is the email."""

    def verify(self, token: str) -> Identity:
        try:
            claims = decode_token(token)
        except (PyJWTError, JWTExtendedException):
            raise Unauthenticated('Unauthorized access')
        if claims.get('type') != 'access':
            raise Unauthenticated('Unauthorized access')
        return _identity_from_claims(claims)


class FirebaseTokenVerifier:
    """Verifies Firebase ID tokens through the Admin SDK."""

    def __init__(self, credentials_path: Optional[str] = None):
        try:
            self.app = firebase_admin.get_app()
        except ValueError:
            cred = (credentials.Certificate(credentials_path)
                    if credentials_path else credentials.ApplicationDefault())
            self.app = firebase_admin.initialize_app(cred)

    def verify(self, token: str) -> Identity:
        try:
            claims = firebase_auth.verify_id_token(token, app=self.app)
        except (firebase_auth.InvalidIdTokenError, firebase_auth.ExpiredIdTokenError,
                firebase_auth.RevokedIdTokenError, firebase_auth.CertificateFetchError,
                ValueError):
            raise Unauthenticated('Unauthorized access')
        return _identity_from_claims(claims)


def build_verifier(config):
    provider = config.get('AUTH_PROVIDER', 'jwt')
    if provider == 'jwt':
        return JwtTokenVerifier()
    if provider == 'firebase':
        return FirebaseTokenVerifier(config.get('FIREBASE_CREDENTIALS'))
    raise ValueError(f"Unknown AUTH_PROVIDER: {provider}")
