"""
BloodBridge Service — Flask application
Registration, donor search and the donation-request lifecycle.
"""

import logging
import sys

from flask import Flask, jsonify
from flasgger import Swagger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from bloodbridge.config import Config
from bloodbridge.errors import StoreUnavailable, register_error_handlers
from bloodbridge.extensions import cors, db, jwt
from bloodbridge import models  # noqa: F401  (register models)
from bloodbridge.services import EXTENSION_KEY, build_services

SWAGGER_TEMPLATE = {
    "info": {"title": "BloodBridge API", "version": "1.0.0"},
    "securityDefinitions": {
        "Bearer": {"type": "apiKey", "name": "Authorization", "in": "header"}
    },
}


def check_store():
    """Ping the store; the service must not start without it."""
    try:
        db.session.execute(text('SELECT 1'))
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StoreUnavailable('Database unavailable') from e


def create_app(config_object=None, **overrides):
    app = Flask(__name__)

    # Configuration
    app.config.from_object(config_object or Config)
    app.config.update(overrides)
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    # Initialize Extensions
    db.init_app(app)
    jwt.init_app(app)
    cors.init_app(app)
    Swagger(app, template=SWAGGER_TEMPLATE)

    register_error_handlers(app)

    # Register Blueprints
    from bloodbridge.routes.users import users_bp
    app.register_blueprint(users_bp)

    from bloodbridge.routes.donation_requests import requests_bp
    app.register_blueprint(requests_bp)

    from bloodbridge.routes.admin import admin_bp
    app.register_blueprint(admin_bp, url_prefix='/admin')

    app.extensions[EXTENSION_KEY] = build_services(db, app.config)

    with app.app_context():
        check_store()
        db.create_all()

    @app.route('/')
    def index():
        return "Blood Bridge is donating blood"

    @app.route('/health')
    def health():
        try:
            check_store()
            return jsonify({"service": "bloodbridge", "status": "healthy"}), 200
        except StoreUnavailable:
            return jsonify({"service": "bloodbridge", "status": "unhealthy"}), 503

    app.logger.info("BloodBridge ready (auth provider: %s)", app.config['AUTH_PROVIDER'])
    return app


def main():
    logging.basicConfig(level=Config.LOG_LEVEL)
    try:
        app = create_app()
    except StoreUnavailable as e:
        logging.getLogger(__name__).critical("Cannot start: %s (%s)", e, e.__cause__)
        sys.exit(1)

    try:
        app.run(host='0.0.0.0', port=app.config['PORT'])
    finally:
        with app.app_context():
            db.engine.dispose()


if __name__ == '__main__':
    main()
