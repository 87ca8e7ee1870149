"""
==============================================
Core infrastructure package for the plugin.
==============================================

Centralized configuration, logging and the error taxonomy shared by the
plugin, the ORM engine and the adapters.

Modules:
    config: Runtime settings from environment variables
    logger: Logging configuration and utilities
    errors: Plugin exception hierarchy

Example:
    >>> from core.config import config
    >>> from core.logger import get_logger
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info(f"Default migrate strategy: {config.migrate}")
"""

__version__ = "0.1.0"
__all__ = [
    'get_logger', 'setup_logging', 'config', 'Config',
    'PluginError', 'ConfigurationLockedError', 'AlreadyInitializedError',
    'NotConfiguredError', 'LifecycleBusyError', 'InvalidAdapterError',
    'InvalidModelError', 'UnknownIdentityError', 'OrmInitializationError',
    'OrmTeardownError',
]

from core.config import Config, config
from core.errors import (
    AlreadyInitializedError,
    ConfigurationLockedError,
    InvalidAdapterError,
    InvalidModelError,
    LifecycleBusyError,
    NotConfiguredError,
    OrmInitializationError,
    OrmTeardownError,
    PluginError,
    UnknownIdentityError,
)
from core.logger import get_logger, setup_logging
