# detailing/utils/my_logging.py
"""Logging configuration for the API process and the Celery worker"""
import logging
import sys
from detailing.config.settings import get_settings
from detailing.core.middleware import correlation_id_var

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s"

# Silenced unless LOG_LEVEL is DEBUG
NOISY_LOGGERS = ("sqlalchemy", "httpx", "httpcore", "celery", "kombu", "uvicorn.access")


class CorrelationIdFilter(logging.Filter):
    """Stamp each record with the id of the request being served ("-" outside requests)"""

    def filter(self, record):
        record.correlation_id = correlation_id_var.get()
        return True


def setup_logging(verbose=True):
    """Configure root logging once per process"""
    settings = get_settings()
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO) if verbose else logging.WARNING

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(CorrelationIdFilter())
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=[handler])

    if level > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
