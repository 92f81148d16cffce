"""
Logging configuration for PlayPredix
Provides structured logging with different levels and formatters
"""

import logging
import logging.handlers
import os
from logging import Filter

from flask import has_request_context, request


class RequestContextFilter(Filter):
    """Add request context to log records"""

    def filter(self, record):
        if has_request_context():
            record.url = request.url
            record.remote_addr = request.remote_addr
            record.method = request.method
        else:
            record.url = "N/A"
            record.remote_addr = "N/A"
            record.method = "N/A"
        return True


class ColoredFormatter(logging.Formatter):
    """Colored formatter for console output"""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",  # Reset
    }

    def format(self, record):
        log_color = self.COLORS.get(record.levelname, self.COLORS["RESET"])
        reset_color = self.COLORS["RESET"]

        # Color a copy so other handlers see the plain level name
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{log_color}{record.levelname}{reset_color}"

        return super().format(record)


def _mark(handler):
    handler._playpredix = True
    return handler


def setup_logging(app):
    """
    Setup logging for the Flask application

    Args:
        app: Flask application instance
    """

    log_level = getattr(logging, app.config.get("LOG_LEVEL", "INFO").upper())
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove handlers from a previous create_app() so they don't pile up;
    # handlers installed by anyone else are left alone
    for handler in root_logger.handlers[:]:
        if getattr(handler, "_playpredix", False):
            root_logger.removeHandler(handler)
            handler.close()

    # Console handler with colors (for development)
    if app.config.get("LOG_TO_CONSOLE", True):
        console_handler = _mark(logging.StreamHandler())
        console_handler.setLevel(log_level)

        if app.debug:
            console_formatter = ColoredFormatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s "
                "[%(filename)s:%(lineno)d]",
                datefmt="%H:%M:%S",
            )
        else:
            console_formatter = logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )

        console_handler.setFormatter(console_formatter)
        console_handler.addFilter(RequestContextFilter())
        root_logger.addHandler(console_handler)

    if app.config.get("LOG_TO_FILE", True):
        log_dir = app.config.get("LOG_DIR", "logs")
        os.makedirs(log_dir, exist_ok=True)

        # File handler for application logs
        file_handler = _mark(
            logging.handlers.RotatingFileHandler(
                os.path.join(log_dir, "playpredix.log"),
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
            )
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s "
                "[%(url)s] [%(remote_addr)s] [%(method)s]",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        file_handler.addFilter(RequestContextFilter())
        root_logger.addHandler(file_handler)

        # Error log file for errors and above
        error_handler = _mark(
            logging.handlers.RotatingFileHandler(
                os.path.join(log_dir, "errors.log"),
                maxBytes=5 * 1024 * 1024,  # 5MB
                backupCount=3,
            )
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s "
                "[%(pathname)s:%(lineno)d] [%(url)s] [%(remote_addr)s]",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        error_handler.addFilter(RequestContextFilter())
        root_logger.addHandler(error_handler)

    # Configure third-party loggers
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
    logging.getLogger("engineio").setLevel(logging.WARNING)
    logging.getLogger("socketio").setLevel(logging.WARNING)
    logging.getLogger("flask_limiter").setLevel(logging.WARNING)

    app.logger.info(f"Logging configured - Level: {logging.getLevelName(log_level)}")
