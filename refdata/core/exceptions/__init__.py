"""Exception handling module."""

from refdata.core.exceptions.base import (
    BatchParseError,
    ConfigurationError,
    FieldDecodeError,
    PreconditionError,
    RefDataError,
    SchemaMismatchError,
    TransportError,
)

__all__ = [
    "RefDataError",
    "SchemaMismatchError",
    "FieldDecodeError",
    "PreconditionError",
    "ConfigurationError",
    "TransportError",
    "BatchParseError",
]
