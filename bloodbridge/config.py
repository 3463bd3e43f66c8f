"""
Configuration — read from the environment (and .env, if present).
"""

import os
from dotenv import load_dotenv

load_dotenv()


def _database_uri():
    url = os.environ.get('DATABASE_URL')
    if url:
        return url
    db_user = os.environ.get('DB_USER', 'bloodbridge')
    db_pass = os.environ.get('DB_PASS', 'password')
    db_host = os.environ.get('DB_HOST', 'bloodbridge-db')
    db_name = os.environ.get('DB_NAME', 'bloodbridge')
    return f"postgresql://{db_user}:{db_pass}@{db_host}/{db_name}"


class Config:
    SQLALCHEMY_DATABASE_URI = _database_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET', 'dev-secret-change-me')

    # 'jwt' verifies tokens signed with JWT_SECRET_KEY, 'firebase' defers to Firebase Auth
    AUTH_PROVIDER = os.environ.get('AUTH_PROVIDER', 'jwt')
    FIREBASE_CREDENTIALS = os.environ.get('FIREBASE_CREDENTIALS')

    DEFAULT_PAGE_SIZE = 10
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    PORT = int(os.environ.get('PORT', 5000))


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    JWT_SECRET_KEY = 'test-secret-key-with-enough-length-for-hs256'
    AUTH_PROVIDER = 'jwt'
    LOG_LEVEL = 'WARNING'
