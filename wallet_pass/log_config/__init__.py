# wallet_pass/log_config/__init__.py

from .logging_config import LOGGING_CONFIG, configure_logging

__all__ = ['LOGGING_CONFIG', 'configure_logging']
