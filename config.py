import os
import secrets
import warnings

import redis
from dotenv import load_dotenv

basedir = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(basedir, ".env"))


class Config:
    # Generate a secure key if not provided (with warning)
    _secret_key = os.environ.get("SECRET_KEY")

    if not _secret_key:
        _secret_key = secrets.token_urlsafe(32)
        warnings.warn(
            "SECRET_KEY not set! Using auto-generated key. "
            "Socket.IO sessions will reset on app restart.",
            UserWarning,
        )

    SECRET_KEY = _secret_key

    # Database configuration - built from environment at initialization
    def __init__(self):
        """Initialize configuration with dynamic database URI"""
        self.SQLALCHEMY_DATABASE_URI = self._build_database_uri()

    def _build_database_uri(self):
        """Build database URI from environment variables"""
        database_url = os.environ.get("DATABASE_URL")

        if database_url:
            return database_url

        db_type = os.environ.get("DB_TYPE", "sqlite")

        if db_type.lower() == "postgresql":
            db_host = os.environ.get("DB_HOST") or "localhost"
            db_port = os.environ.get("DB_PORT") or "5432"
            db_name = os.environ.get("DB_NAME") or "playpredix_db"
            db_user = os.environ.get("DB_USER") or "playpredix"
            db_password = os.environ.get("DB_PASSWORD") or "playpredix"

            return f"postgresql+psycopg://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"
        else:
            # Default to SQLite for development
            return "sqlite:///" + os.path.join(basedir, "playpredix.db")

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Identity: the upstream identity provider forwards the authenticated
    # participant id in this header
    IDENTITY_HEADER = os.environ.get("IDENTITY_HEADER", "X-Participant-Id")

    # Leaderboard policy: break score/graded-pick ties by earliest last
    # submission. Applies to public and league leaderboards alike.
    LEADERBOARD_SUBMISSION_TIEBREAK = (
        os.environ.get("LEADERBOARD_SUBMISSION_TIEBREAK", "True").lower() == "true"
    )

    # Application settings
    TIMEZONE = os.environ.get("TIMEZONE", "UTC")  # Default to UTC if not specified

    # Caching configuration
    CACHE_TYPE = os.environ.get("CACHE_TYPE", "RedisCache")
    CACHE_DEFAULT_TIMEOUT = int(
        os.environ.get("CACHE_DEFAULT_TIMEOUT", 300)
    )  # 5 minutes
    CACHE_REDIS_URL = os.environ.get("CACHE_REDIS_URL", "redis://localhost:6379/0")
    CACHE_KEY_PREFIX = "playpredix:"

    # Rate limiting
    RATELIMIT_ENABLED = os.environ.get("RATELIMIT_ENABLED", "True").lower() == "true"
    RATELIMIT_DEFAULT = os.environ.get("RATELIMIT_DEFAULT", "1000 per hour")

    # Socket.IO
    SOCKETIO_ASYNC_MODE = os.environ.get("SOCKETIO_ASYNC_MODE", "eventlet")
    SOCKETIO_CORS_ORIGINS = os.environ.get("SOCKETIO_CORS_ORIGINS", "*")

    # Logging configuration
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_TO_CONSOLE = os.environ.get("LOG_TO_CONSOLE", "True").lower() == "true"
    LOG_TO_FILE = os.environ.get("LOG_TO_FILE", "True").lower() == "true"
    LOG_DIR = os.environ.get("LOG_DIR", "logs")

    # Environment detection
    FLASK_ENV = os.environ.get("FLASK_ENV", "development")
    DEBUG = FLASK_ENV == "development"
    TESTING = False


class DevelopmentConfig(Config):
    """Development configuration with helpful defaults"""

    DEBUG = True
    SQLALCHEMY_ECHO = os.environ.get("SQLALCHEMY_ECHO", "False").lower() == "true"

    def __init__(self):
        super().__init__()
        # Fallback to SimpleCache if Redis isn't available in development
        try:
            redis_client = redis.Redis.from_url(self.CACHE_REDIS_URL)
            redis_client.ping()
        except redis.exceptions.ConnectionError:
            self.CACHE_TYPE = "SimpleCache"
            warnings.warn(
                "Redis not available, falling back to SimpleCache for development.",
                UserWarning,
            )


class ProductionConfig(Config):
    """Production configuration with security focus"""

    DEBUG = False

    # In production, require explicit environment variables
    def __init__(self):
        super().__init__()  # Call parent __init__ to build database URI

        if not os.environ.get("SECRET_KEY"):
            warnings.warn(
                "PRODUCTION WARNING: SECRET_KEY not explicitly set! "
                "Using auto-generated key is not recommended for production.",
                UserWarning,
            )


class TestingConfig(Config):
    """Testing configuration"""

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    CACHE_TYPE = "SimpleCache"
    RATELIMIT_ENABLED = False
    SOCKETIO_ASYNC_MODE = "threading"
    LOG_TO_FILE = False
    LOG_TO_CONSOLE = False

    def __init__(self):
        # Keep the in-memory database regardless of DATABASE_URL
        pass


# Configuration mapping
config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}
