"""Flask application factory."""

import logging
import os
import time

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException, NotFound
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import config
from .extensions import db, migrate, mail, cors
from .utils.helpers import utcnow, isoformat
from .utils.log import configure_logging

logger = logging.getLogger(__name__)


def create_app(config_name=None, config_overrides=None):
    """Create and configure the Flask application."""
    if config_name is None:
        config_name = os.environ.get('FLASK_CONFIG', 'development')

    app = Flask(__name__)
    app.config.from_object(config[config_name])
    if config_overrides:
        app.config.update(config_overrides)
    app.config['ENV_NAME'] = config_name
    app.config['STARTED_AT'] = time.monotonic()

    configure_logging(app)

    if app.config.get('TRUST_PROXY'):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    mail.init_app(app)
    # Credentialed CORS cannot use '*', so "allow all" reflects any http(s) origin
    cors.init_app(
        app,
        resources={r'/*': {'origins': r'https?://.*' if app.config.get('CORS_ALLOW_ALL')
                           else app.config['CORS_ORIGINS']}},
        methods=['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'],
        allow_headers=['Content-Type', 'Authorization', 'X-Requested-With'],
        supports_credentials=True
    )

    if app.config.get('AUTO_CREATE_TABLES'):
        _ensure_sqlite_dir(app.config['SQLALCHEMY_DATABASE_URI'])
        with app.app_context():
            from . import models  # noqa: F401
            db.create_all()

    # Services share one context for the life of the process
    from .services import init_services
    init_services(app, db, mail)

    # Register blueprints
    from .routes import register_blueprints
    register_blueprints(app)

    from .commands import register_commands
    register_commands(app)

    @app.before_request
    def log_request():
        logger.info('%s %s', request.method, request.full_path.rstrip('?'))

    register_error_handlers(app)

    return app


def _ensure_sqlite_dir(uri):
    if not uri.startswith('sqlite:///') or ':memory:' in uri:
        return
    directory = os.path.dirname(uri[len('sqlite:///'):])
    if directory:
        os.makedirs(directory, exist_ok=True)


def register_error_handlers(app):
    """Render every error as a JSON body with success: false."""
    from .services.errors import ServiceError, StorageError

    @app.errorhandler(ServiceError)
    def service_error(error):
        body = error.to_dict()
        if isinstance(error, StorageError) and not app.config.get('EXPOSE_ERROR_DETAILS'):
            body.pop('details', None)
        return jsonify(body), error.status_code

    @app.errorhandler(NotFound)
    def not_found_error(error):
        return jsonify({
            'success': False,
            'error': f'Route not found: {request.method} {request.path}'
        }), 404

    @app.errorhandler(HTTPException)
    def http_error(error):
        return jsonify({
            'success': False,
            'error': error.description or error.name
        }), error.code

    @app.errorhandler(Exception)
    def internal_error(error):
        db.session.rollback()
        logger.exception('Unhandled error on %s %s from %s',
                         request.method, request.url, request.remote_addr)
        expose = app.config.get('EXPOSE_ERROR_DETAILS')
        body = {
            'success': False,
            'error': str(error) if expose else 'Internal server error',
            'timestamp': isoformat(utcnow())
        }
        if expose:
            body['type'] = type(error).__name__
        return jsonify(body), 500
