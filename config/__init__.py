"""
Book Studio configuration: constants, environment settings and logging.
"""
from .constants import *
from .logging_config import get_logger, set_console_level, setup_logger
from .settings import Settings, settings

__all__ = [
    'Settings',
    'get_logger',
    'set_console_level',
    'settings',
    'setup_logger',
]
