from datetime import timedelta
import logging

from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from dotenv import load_dotenv
from flask_migrate import Migrate
from flask_compress import Compress

# Load environment variables early so config is available for blueprint creation
load_dotenv()

from quizdesk.config import config

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
compress = Compress()


def create_app(overrides: dict | None = None) -> Flask:
    """
    Application factory for the Flask app.
    Loads environment variables, configures the database,
    and registers blueprints.
    """
    # Re-initialize config to ensure latest .env values are loaded
    from quizdesk.config import Config
    global config
    config = Config()
    config.validate()

    app = Flask(__name__)

    app.config["SECRET_KEY"] = config.SECRET_KEY
    app.config["SQLALCHEMY_DATABASE_URI"] = config.SQLALCHEMY_DATABASE_URI
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = config.SQLALCHEMY_TRACK_MODIFICATIONS
    app.config["SQLALCHEMY_ECHO"] = config.SQLALCHEMY_ECHO
    if app.config["SQLALCHEMY_DATABASE_URI"].startswith("mysql"):
        # Connection pooling only applies to the MySQL deployment
        app.config["SQLALCHEMY_ENGINE_OPTIONS"] = {
            "pool_size": 10,
            "pool_recycle": 3600,
            "pool_pre_ping": True,
            "max_overflow": 20,
            "connect_args": {
                "connect_timeout": 5,
                "read_timeout": 10,
                "write_timeout": 10,
            },
        }

    app.config["COMPRESS_MIMETYPES"] = ["application/json"]
    app.config["COMPRESS_LEVEL"] = 6
    app.config["COMPRESS_MIN_SIZE"] = 500
    app.config["SESSION_COOKIE_SECURE"] = config.SESSION_COOKIE_SECURE
    app.config["SESSION_COOKIE_HTTPONLY"] = config.SESSION_COOKIE_HTTPONLY
    app.config["SESSION_COOKIE_SAMESITE"] = config.SESSION_COOKIE_SAMESITE
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=config.SESSION_LIFETIME_HOURS)
    app.config["RATE_LIMIT_ENABLED"] = config.RATE_LIMIT_ENABLED

    if overrides:
        app.config.update(overrides)

    app.logger.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    compress.init_app(app)

    from quizdesk.security import init_security
    init_security(app)

    from quizdesk.common.errors import register_error_handlers
    register_error_handlers(app)

    @login_manager.user_loader
    def load_user(user_id):
        from quizdesk.auth.models import User
        try:
            return db.session.get(User, int(user_id))
        except (ValueError, TypeError):
            return None

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"success": False, "message": "Unauthorized"}), 401

    @app.route(f"{config.API_PREFIX}/health")
    def health():
        return jsonify({"status": "ok"}), 200

    # Register blueprints
    from quizdesk.auth import auth_bp
    app.register_blueprint(auth_bp)

    from quizdesk.quiz import quiz_bp
    app.register_blueprint(quiz_bp)

    from quizdesk.groups import groups_bp
    app.register_blueprint(groups_bp)

    from quizdesk.admin import admin_bp
    app.register_blueprint(admin_bp)

    # Create tables if they do not exist
    with app.app_context():
        from quizdesk.auth.models import User  # noqa: F401
        from quizdesk.groups.models import Group  # noqa: F401
        from quizdesk.quiz.models import Quiz, QuizQuestion, BankQuestion, Attempt  # noqa: F401
        db.create_all()

    return app
