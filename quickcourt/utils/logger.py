import logging
import os
import time
from logging.handlers import RotatingFileHandler
from flask import g, request
from config.config import Config

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Child logger for per-request lines
ACCESS_LOGGER = 'quickcourt.access'


def setup_logger(name='quickcourt', log_file=None, level=None):
    """Set up application logger with a rotating file and the console"""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    log_file = log_file or Config.LOG_FILE
    logger.setLevel(getattr(logging, (level or Config.LOG_LEVEL).upper(), logging.INFO))

    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    # 10MB per file, 10 backups
    file_handler = RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=10)
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)
    return logger


def get_logger(name=None):
    """Get logger instance; module loggers under quickcourt.* share its handlers"""
    return logging.getLogger(name or 'quickcourt')


def init_request_logging(app):
    """Log one line per request: method, path, status and duration"""
    access_logger = get_logger(ACCESS_LOGGER)

    @app.before_request
    def start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def log_request(response):
        started = g.pop('request_started', None)
        elapsed_ms = (time.perf_counter() - started) * 1000 if started is not None else 0
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        access_logger.log(
            level,
            f"{request.method} {request.full_path.rstrip('?')} {response.status_code} {elapsed_ms:.1f}ms"
        )
        return response


# Create default logger
logger = setup_logger()
