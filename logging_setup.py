"""Console logging for the kiosk.

One stdout handler on the root logger so every module logger shows up,
including werkzeug's request log.
"""
import logging
from logging.config import dictConfig

_DICT_CONFIG = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'default': {
            'format': '%(asctime)s %(levelname)s:%(name)s:%(message)s',
        }
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'level': 'INFO',
            'formatter': 'default',
            'stream': 'ext://sys.stdout',
        }
    },
    'root': {'level': 'INFO', 'handlers': ['console']},
    'loggers': {
        'werkzeug': {'level': 'INFO', 'handlers': ['console'], 'propagate': False},
    },
}


def configure_logging():
    # Already configured (reloader, second launcher call): keep existing handlers
    if logging.getLogger().handlers:
        return
    dictConfig(_DICT_CONFIG)
