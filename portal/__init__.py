import logging

import click
from flask import Flask

from .errors import PortalError
from .extensions import db, migrate, login_manager

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(app):
    level = logging.getLevelName(str(app.config.get("LOG_LEVEL", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logger.setLevel(level)
    app.logger.setLevel(level)


def register_error_handlers(app):
    @app.errorhandler(PortalError)
    def portal_error(exc):
        return {"error": exc.message}, exc.status_code

    @app.errorhandler(403)
    def forbidden(_):
        return {"error": "You don't have permission to view this page"}, 403

    @app.errorhandler(404)
    def not_found(_):
        return {"error": "Not found"}, 404


def register_commands(app):
    @app.cli.command("init-db")
    def init_db():
        """Create all tables."""
        db.create_all()
        click.echo("Initialized the database.")


def create_app(config_object="config.Config"):
    app = Flask(__name__)
    app.config.from_object(config_object)
    configure_logging(app)

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    from . import models
    from .models.people import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return {"error": "You must be logged in"}, 401

    from .blueprints.auth import bp as auth_bp
    from .blueprints.dashboard import bp as dashboard_bp
    from .blueprints.courses import bp as courses_bp
    from .blueprints.attendance import bp as attendance_bp
    from .blueprints.exams import bp as exams_bp
    from .blueprints.admin import bp as admin_bp
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(dashboard_bp, url_prefix="/dashboard")
    app.register_blueprint(courses_bp, url_prefix="/courses")
    app.register_blueprint(attendance_bp, url_prefix="/attendance")
    app.register_blueprint(exams_bp, url_prefix="/exams")
    app.register_blueprint(admin_bp, url_prefix="/admin")
    register_error_handlers(app)
    register_commands(app)

    logger.debug("app created with %s", config_object)
    return app
