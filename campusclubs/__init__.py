import logging
import os
from pathlib import Path
from logging.handlers import RotatingFileHandler

from flask import Flask, jsonify
from flask_wtf.csrf import CSRFError
from werkzeug.exceptions import HTTPException

from .errors import DomainError, Unauthorized
from .extensions import db, migrate, login_manager, csrf
from .models import User


def create_app(config_name=None, test_config=None):
    app = Flask(__name__, instance_relative_config=True)

    config_name = config_name or os.getenv("APP_ENV", "development")
    config_map = {
        "development": "config.DevelopmentConfig",
        "production": "config.ProductionConfig",
        "testing": "config.TestingConfig",
    }
    app.config.from_object(config_map.get(config_name, "config.DevelopmentConfig"))
    if test_config:
        app.config.update(test_config)

    Path(app.instance_path).mkdir(parents=True, exist_ok=True)

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)
    configure_logging(app)

    login_manager.session_protection = "strong"

    @login_manager.user_loader
    def load_user(user_id):
        if not user_id or not str(user_id).isdigit():
            return None
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        raise Unauthorized()

    from .blueprints.auth import auth_bp
    from .blueprints.clubs import clubs_bp
    from .blueprints.events import events_bp

    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(clubs_bp, url_prefix="/clubs")
    app.register_blueprint(events_bp, url_prefix="/events")

    register_error_handlers(app)

    return app


def configure_logging(app):
    if app.testing:
        return
    log_dir = Path(app.instance_path)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / app.config.get("LOG_FILE", "campusclubs.log")
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)

    handler = RotatingFileHandler(
        log_file,
        maxBytes=app.config.get("LOG_MAX_BYTES", 1_000_000),
        backupCount=app.config.get("LOG_BACKUP_COUNT", 3),
    )
    handler.setLevel(level)
    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    handler.setFormatter(formatter)

    if not any(isinstance(existing, RotatingFileHandler) for existing in app.logger.handlers):
        app.logger.addHandler(handler)
    app.logger.setLevel(level)


def register_error_handlers(app):
    @app.errorhandler(DomainError)
    def domain_error(error):
        app.logger.warning("%s: %s", error.code, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(CSRFError)
    def csrf_error(error):
        app.logger.warning("CSRF Error: %s", error.description)
        return jsonify(
            {"error": "CSRFError", "kind": "ValidationError", "message": error.description}
        ), 400

    @app.errorhandler(HTTPException)
    def http_error(error):
        return jsonify(
            {"error": error.name, "kind": error.name, "message": error.description}
        ), error.code

    @app.errorhandler(500)
    def server_error(error):
        app.logger.error("Internal Server Error: %s", error)
        return jsonify(
            {
                "error": "InternalServerError",
                "kind": "Error",
                "message": "Something went wrong. Please try again later.",
            }
        ), 500
