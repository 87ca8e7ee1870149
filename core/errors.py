"""
==========================================
Error taxonomy for the ORM models plugin.
==========================================

All plugin-level failures derive from PluginError so callers can catch the
whole family in one place. Configuration misuse is raised synchronously;
initialize/teardown failures are raised from the awaitable (and handed to the
completion callback when one is supplied).

Classes:
    PluginError: Base class for all plugin errors
    ConfigurationLockedError: Config mutated after the ORM was initialized
    AlreadyInitializedError: configure/initialize called on an initialized plugin
    NotConfiguredError: initialize called before any configuration was merged
    LifecycleBusyError: initialize/tear_down called while another is in flight
    InvalidAdapterError: Adapter without an identity
    InvalidModelError: Live model without an identity (strict mode)
    UnknownIdentityError: Lookup of a model identity that is not registered
    OrmInitializationError: Wraps any failure of the ORM engine's initialize
    OrmTeardownError: Wraps any failure of the ORM engine's teardown

Example:
    >>> from core.errors import PluginError, OrmInitializationError
    >>>
    >>> try:
    ...     await plugin.initialize(adapters)
    ... except OrmInitializationError as e:
    ...     logger.error(f"ORM failed: {e.cause}")
"""

from typing import Optional


class PluginError(Exception):
    """Base exception for the ORM models plugin."""
    pass


class ConfigurationLockedError(PluginError):
    """Raised when configuration is merged after the ORM was initialized."""
    pass


class AlreadyInitializedError(PluginError):
    """Raised when configure() or initialize() is called on an initialized plugin."""
    pass


class NotConfiguredError(PluginError):
    """Raised when initialize() is called before any configuration exists."""
    pass


class LifecycleBusyError(PluginError):
    """Raised when initialize() or tear_down() is already in flight."""
    pass


class InvalidAdapterError(PluginError):
    """Raised when an adapter does not expose an identity."""
    pass


class InvalidModelError(PluginError):
    """Raised when a live model does not expose an identity."""
    pass


class UnknownIdentityError(PluginError, KeyError):
    """Raised when a model identity is not present in the registry.

    Also a KeyError so mapping-style access behaves as expected.
    """

    def __init__(self, identity: str):
        self.identity = identity
        super().__init__(f"No model registered for identity '{identity}'")

    def __str__(self) -> str:
        return self.args[0]


class OrmInitializationError(PluginError):
    """Wraps a failure raised by the ORM engine while initializing.

    Attributes:
        cause: The original exception, unmodified
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class OrmTeardownError(PluginError):
    """Wraps a failure raised by the ORM engine while tearing down.

    Attributes:
        cause: The original exception, unmodified
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
