# backoffice/__init__.py

import os
import logging
from logging.handlers import RotatingFileHandler

from flask import Flask
from sqlalchemy.exc import SQLAlchemyError, OperationalError, DisconnectionError
from werkzeug.exceptions import HTTPException

from config import get_config
from backoffice.extensions import (
    db, engine_options, login_manager, socketio, migrate, limiter
)
from backoffice.exceptions import BackOfficeError, Unauthorized
from backoffice.models import User
from backoffice.utils import error_response


def configure_logging(app):
    if app.config['LOG_TO_STDOUT']:
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(logging.INFO)
        app.logger.addHandler(stream_handler)
    else:
        if not os.path.exists('logs'):
            os.mkdir('logs')
        file_handler = RotatingFileHandler('logs/backoffice.log',
                                           maxBytes=10240000,
                                           backupCount=10)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s '
            '[in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)

    app.logger.setLevel(logging.INFO)
    # Workflow modules log through their own module loggers
    logging.getLogger('backoffice').setLevel(logging.INFO)
    app.logger.info('Back-office service startup')


def register_error_handlers(app):
    @app.errorhandler(BackOfficeError)
    def handle_backoffice_error(error):
        if error.status_code >= 500:
            app.logger.error(f'{error.code}: {error.message}')
        return error.to_dict(), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return error_response(error.description or error.name, error.code)

    @app.errorhandler(SQLAlchemyError)
    def handle_db_error(error):
        app.logger.error(f'Database error occurred: {str(error)}')
        db.session.rollback()
        if isinstance(error, OperationalError):
            return error_response('Database connection error. Please try again later.', 503)
        elif isinstance(error, DisconnectionError):
            db.session.remove()
            return error_response('Lost connection to database. Please retry.', 500)
        return error_response('An unexpected database error occurred.', 500)

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        app.logger.exception(f'Unhandled error: {error}')
        db.session.rollback()
        return error_response('An unexpected error occurred.', 500)


def ensure_admin(app):
    """Create the bootstrap admin when credentials are configured."""
    username = app.config['ADMIN_USERNAME']
    if not app.config['ADMIN_PASSWORD'] or not app.config['ADMIN_EMAIL']:
        return
    if User.query.filter_by(username=username).first():
        return
    admin = User(username=username, email=app.config['ADMIN_EMAIL'], role='admin')
    admin.set_password(app.config['ADMIN_PASSWORD'])
    db.session.add(admin)
    db.session.commit()
    app.logger.info(f'Admin user {username} created')


def create_app(config_class=None):
    app = Flask(__name__)
    app.config.from_object(config_class or get_config())
    app.config.setdefault('SQLALCHEMY_ENGINE_OPTIONS', engine_options(app.config))

    if not app.debug and not app.testing:
        configure_logging(app)

    # Initialize Flask extensions
    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db, render_as_batch=True)

    # Message queue only when several workers share one Redis
    production = os.environ.get('FLASK_ENV') == 'production'
    socketio.init_app(
        app,
        message_queue=app.config.get('REDIS_URL') if production else None,
        async_mode=app.config.get('SOCKETIO_ASYNC_MODE')
    )

    limiter.init_app(app)

    login_manager.session_protection = 'strong'

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        error = Unauthorized()
        return error.to_dict(), error.status_code

    from backoffice.auth import bp as auth_bp
    from backoffice.inventory import bp as inventory_bp
    from backoffice.time_tracking import bp as time_tracking_bp
    from backoffice.bookings import bp as bookings_bp
    from backoffice.reports import bp as reports_bp
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(inventory_bp)
    app.register_blueprint(time_tracking_bp, url_prefix='/time-entries')
    app.register_blueprint(bookings_bp)
    app.register_blueprint(reports_bp, url_prefix='/reports')

    # Socket.IO handlers register themselves on import
    from backoffice import socket_events  # noqa: F401

    register_error_handlers(app)

    from backoffice.cli import init_cli
    init_cli(app)

    # Production schemas are managed with `flask db upgrade`
    if not production:
        with app.app_context():
            db.create_all()
            ensure_admin(app)

    @app.teardown_appcontext
    def cleanup(resp_or_exc):
        """Ensure proper cleanup of database sessions"""
        db.session.remove()

    return app
