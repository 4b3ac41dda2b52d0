"""Logging configuration"""
import logging
import logging.config
from typing import Any, Dict, Optional

from infrastructure.config import settings


def build_logging_config(level: str) -> Dict[str, Any]:
    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'standard',
                'level': level,
            },
        },
        'loggers': {
            # our layers
            'application': {'level': level},
            'infrastructure': {'level': level},
            'api': {'level': level},
            'main': {'level': level},
            'uvicorn.access': {'level': 'WARNING'},
        },
        'root': {
            'handlers': ['console'],
            'level': level,
        },
    }


def configure_logging(level: Optional[str] = None) -> None:
    """Install handlers once at startup"""
    level = (level or settings.LOG_LEVEL).upper()
    if settings.DEBUG:
        level = 'DEBUG'
    logging.config.dictConfig(build_logging_config(level))
    logging.getLogger(__name__).debug("Logging configured at %s", level)
