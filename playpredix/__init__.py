import logging
import os

import redis
from flask import Flask, jsonify, request
from flask_caching import Cache
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_socketio import SocketIO
from flask_sqlalchemy import SQLAlchemy

from config import config

logger = logging.getLogger(__name__)

db = SQLAlchemy()
login_manager = LoginManager()
socketio = SocketIO()
cache = Cache()
migrate = Migrate()


def get_real_ip():
    """
    Get the real client IP address, accounting for reverse proxies.
    Checks X-Forwarded-For, X-Real-IP, and falls back to remote_addr.
    """
    # X-Forwarded-For: client, proxy1, proxy2, ...
    # We want the leftmost (original client) IP
    if request.headers.get("X-Forwarded-For"):
        return request.headers.get("X-Forwarded-For").split(",")[0].strip()
    if request.headers.get("X-Real-IP"):
        return request.headers.get("X-Real-IP")
    return get_remote_address()


limiter = Limiter(key_func=get_real_ip)


def create_app(config_name=None):
    app = Flask(__name__)

    # Determine configuration
    if config_name is None:
        config_name = os.environ.get("FLASK_CONFIG", "default")

    app.config.from_object(config[config_name]())

    # Rate limiter storage: shared Redis across workers when reachable
    app.config.setdefault("RATELIMIT_STORAGE_URI", _limiter_storage_uri(app))
    app.config.setdefault("RATELIMIT_DEFAULT", "1000 per hour")

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)
    cache.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)

    # Register SocketIO handlers before the server is created
    from playpredix import socketio_handlers  # noqa: F401 - imported for side effects

    allowed_origins = app.config.get("SOCKETIO_CORS_ORIGINS", "*")
    if allowed_origins != "*":
        allowed_origins = allowed_origins.split(",")

    socketio.init_app(
        app,
        cors_allowed_origins=allowed_origins,
        async_mode=app.config.get("SOCKETIO_ASYNC_MODE"),
        ping_timeout=60,
        ping_interval=25,
    )

    # Participants are authenticated upstream; resolve the forwarded id
    from playpredix.models import Profile

    @login_manager.request_loader
    def load_participant_from_request(req):
        participant_id = req.headers.get(app.config["IDENTITY_HEADER"])
        if not participant_id:
            return None
        return db.session.get(Profile, participant_id.strip())

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"error": "unauthorized", "message": "Sign in required"}), 401

    # Import and register blueprints
    from playpredix.routes.api import bp as api_bp

    app.register_blueprint(api_bp, url_prefix="/api")

    from playpredix.routes.admin import bp as admin_bp

    app.register_blueprint(admin_bp, url_prefix="/admin")

    # Register error handlers
    register_error_handlers(app)

    # Setup logging
    from playpredix.utils.logging_config import setup_logging

    setup_logging(app)

    # Create database tables
    with app.app_context():
        db.create_all()

    logger.info(f"PlayPredix started with '{config_name}' configuration")

    return app


def _limiter_storage_uri(app):
    """Use Redis for rate limiting when it answers, memory otherwise"""
    redis_url = os.environ.get("REDIS_URL") or app.config.get("CACHE_REDIS_URL")
    if not redis_url or app.config.get("TESTING"):
        return "memory://"
    try:
        redis_client = redis.Redis.from_url(redis_url)
        redis_client.ping()
        return redis_url
    except redis.exceptions.ConnectionError as e:
        logger.warning(f"Redis not available for rate limiter, using memory storage: {e}")
        return "memory://"


def register_error_handlers(app):
    """Register global error handlers"""
    from playpredix.errors import PlayPredixError

    @app.after_request
    def after_request(response):
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"

        if not app.config.get("DEBUG"):
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        return response

    @app.errorhandler(PlayPredixError)
    def handle_domain_error(error):
        db.session.rollback()
        app.logger.info(
            f"{error.code}: {error.message} - Path: {request.path} - Method: {request.method}"
        )
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({"error": "not_found", "message": "Resource not found"}), 404

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return jsonify({"error": "server_error", "message": "Internal server error"}), 500

    @app.errorhandler(403)
    def forbidden_error(error):
        return jsonify({"error": "forbidden", "message": "Access forbidden"}), 403

    @app.errorhandler(400)
    def bad_request_error(error):
        app.logger.warning(
            f"400 Bad Request: {str(error)} - Path: {request.path} - Method: {request.method}"
        )
        return jsonify({"error": "bad_request", "message": "Bad request"}), 400

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        return jsonify({"error": "method_not_allowed", "message": "Method not allowed"}), 405

    @app.errorhandler(429)
    def too_many_requests_error(error):
        return jsonify({"error": "rate_limited", "message": "Too many requests"}), 429


from playpredix import models  # noqa: F401, E402 - imported for model registration
