# logger.py - Centralized logging configuration
import os
import logging
from logging.handlers import RotatingFileHandler

LOG_DIR = os.environ.get("LOG_DIR", "logs")
LOG_FORMAT = "%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]"


def _rotating_handler(file_name, level):
    os.makedirs(LOG_DIR, exist_ok=True)
    handler = RotatingFileHandler(
        os.path.join(LOG_DIR, file_name),
        maxBytes=10240,
        backupCount=10,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.setLevel(level)
    return handler


def setup_logger(name, log_file=None, level=logging.INFO):
    """Named logger writing to LOG_DIR/<name>.log, echoed to the console outside production"""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(level)
    logger.addHandler(_rotating_handler(log_file or f"{name}.log", level))

    if os.environ.get("FLASK_ENV") != "production":
        console = logging.StreamHandler()
        console.setLevel(logging.DEBUG)
        console.setFormatter(logging.Formatter("%(name)s - %(levelname)s - %(message)s"))
        logger.addHandler(console)

    return logger


def configure_app_logging(app):
    """Route app.logger to LOG_DIR/app.log."""
    app.logger.handlers.clear()
    app.logger.addHandler(_rotating_handler("app.log", logging.INFO))
    app.logger.setLevel(logging.INFO)
    app.logger.propagate = False

    if app.debug:
        app.logger.addHandler(logging.StreamHandler())


# Status transitions on payments, withdrawals, visits, investments and farmers
review_logger = setup_logger("review")
notifications_logger = setup_logger("notifications")
