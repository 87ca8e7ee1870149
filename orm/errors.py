"""
Exceptions raised by the ORM engine.

The plugin wraps any of these raised during initialize into
core.errors.OrmInitializationError; record-level errors raised by
Collection methods reach the caller unchanged.
"""


class OrmError(Exception):
    """Base exception for ORM engine errors."""
    pass


class UnknownAdapterError(OrmError):
    """Raised when a connection references an adapter that was not supplied."""
    pass


class UnknownConnectionError(OrmError):
    """Raised when a model references a connection that is not configured."""
    pass


class SchemaError(OrmError):
    """Raised when model definitions cannot be mapped to tables."""
    pass


class RecordValidationError(OrmError):
    """Raised when record values do not satisfy the model attributes."""
    pass
