# wallet_pass/log_config/logging_config.py

"""
Logging configuration for the wallet pass tools.

This configuration is used to initialize Python's logging module with a
dictionary-based setup. Library modules only create named loggers; the
command line entry point is the one place that applies this configuration.

An optional RotatingFileHandler keeps build logs from growing without limit.
"""

import copy
import logging.config
import os

LOGGING_CONFIG = {
    'version': 1,
    'disable_existing_loggers': False,

    # Formatters define the layout of the log messages.
    'formatters': {
        'detailed': {
            'format': '%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(message)s'
        },
        'simple': {
            'format': '%(asctime)s [%(levelname)s] %(message)s'
        }
    },

    # Handlers specify where log messages are sent.
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
            'level': 'INFO',
        }
    },

    'loggers': {
        'wallet_pass': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False
        },
        'wallet_pass.signers': {
            'level': 'INFO',        # Follows the wallet_pass level
        },
        'PIL': {
            'level': 'WARNING',     # Pillow logs every PNG chunk at DEBUG
        }
    },

    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    }
}

FILE_HANDLER = {
    'class': 'logging.handlers.RotatingFileHandler',
    'formatter': 'detailed',
    'level': 'DEBUG',
    'maxBytes': 10485760,   # 10MB
    'backupCount': 3,
    'encoding': 'utf-8'
}


def configure_logging(level: str = 'INFO', log_file: str = None) -> dict:
    """
    Apply LOGGING_CONFIG at the given level.

    Args:
        level: level name for the console handler and the wallet_pass logger
        log_file: optional path for a rotating file handler

    Returns:
        the dictionary that was applied
    """
    config = copy.deepcopy(LOGGING_CONFIG)
    level = level.upper()

    config['handlers']['console']['level'] = level
    config['loggers']['wallet_pass']['level'] = level
    config['loggers']['wallet_pass.signers']['level'] = level

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        config['handlers']['file'] = dict(FILE_HANDLER, filename=log_file)
        config['loggers']['wallet_pass']['handlers'].append('file')

    logging.config.dictConfig(config)
    return config
