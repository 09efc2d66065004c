import os
import logging
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_caching import Cache

# Global extensions
db = SQLAlchemy()
migrate = Migrate()
cache = Cache()


def _configure_logging(app):
    level_name = (app.config.get("LOG_LEVEL") or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    app.logger.setLevel(level)
    pkg_logger = logging.getLogger(__name__)
    pkg_logger.setLevel(level)
    if not pkg_logger.handlers and not logging.getLogger().handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        pkg_logger.addHandler(handler)


def create_app(config=None):
    app = Flask(__name__)
    app.config["SECRET_KEY"] = os.environ.get("SECRET_KEY", "dev-secret-key")

    REDIS_URL = os.environ.get("REDIS_URL")
    if REDIS_URL:
        app.config["CACHE_TYPE"] = "RedisCache"
        app.config["CACHE_REDIS_URL"] = REDIS_URL
    else:
        app.config["CACHE_TYPE"] = "SimpleCache"
    app.config["GRADE_CACHE_TIMEOUT"] = int(os.environ.get("GRADE_CACHE_TIMEOUT", "300"))
    app.config["CACHE_DEFAULT_TIMEOUT"] = app.config["GRADE_CACHE_TIMEOUT"]

    # Academic policy defaults
    app.config["REQUIRED_ATTENDANCE_PERCENTAGE"] = float(os.environ.get("REQUIRED_ATTENDANCE_PERCENTAGE", "75"))
    app.config["PROMOTION_BACKLOG_THRESHOLD"] = int(os.environ.get("PROMOTION_BACKLOG_THRESHOLD", "0"))
    app.config["MAX_SEMESTER"] = int(os.environ.get("MAX_SEMESTER", "8"))
    app.config["LOG_LEVEL"] = os.environ.get("LOG_LEVEL", "INFO")

    # Database configuration: use DATABASE_URL if provided, else sqlite file
    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        db_path = os.path.join(os.path.dirname(__file__), "..", "records.db")
        database_url = f"sqlite:///{os.path.abspath(db_path)}"

    app.config["SQLALCHEMY_DATABASE_URI"] = database_url
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

    if config:
        app.config.update(config)

    _configure_logging(app)

    db.init_app(app)
    migrate.init_app(app, db)
    cache.init_app(app)

    # Import models so they are registered with SQLAlchemy
    from . import models  # noqa: F401

    from .errors import RecordsError

    @app.errorhandler(RecordsError)
    def handle_records_error(e):
        from .api_utils import api_error_from
        return api_error_from(e)

    # Create tables on first run (dev convenience)
    with app.app_context():
        db.create_all()

    return app
