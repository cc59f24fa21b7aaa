"""refdata core exception classes."""

from __future__ import annotations

from typing import Any


class RefDataError(Exception):
    """Base class for all refdata errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "GENERAL_ERROR",
        details: dict[str, Any] | None = None,
    ):
        """Initialise the error.

        Args:
            message: human readable reason
            error_code: stable machine readable code
            details: extra structured context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def annotate(self, context: str) -> RefDataError:
        """Prefix ``context`` to the message, keeping the exception type.

        Returns the same instance so callers can ``raise exc.annotate(...)``.
        """

        self.message = f"{context}: {self.message}"
        self.args = (self.message,)
        self.details.setdefault("context", []).insert(0, context)
        return self

    def __str__(self) -> str:
        return self.message


class SchemaMismatchError(RefDataError):
    """The upstream schema or CSV header lacks required fields."""

    def __init__(
        self,
        message: str,
        expected: str | None = None,
        actual: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if expected is not None:
            super_details["expected"] = expected
        if actual is not None:
            super_details["actual"] = actual
        super().__init__(message, "SCHEMA_MISMATCH", super_details)
        self.expected = expected
        self.actual = actual


class FieldDecodeError(RefDataError):
    """A raw value cannot be coerced to the type its field requires."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if field is not None:
            super_details["field"] = field
            super_details["value"] = repr(value)
        super().__init__(message, "FIELD_DECODE_ERROR", super_details)
        self.field = field
        self.value = value


class PreconditionError(RefDataError):
    """The remote resource is not in a state that allows the operation."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, "PRECONDITION_FAILED", details)


class ConfigurationError(RefDataError):
    """Invalid configuration values."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, "CONFIGURATION_ERROR", details)


class TransportError(RefDataError):
    """HTTP request failed after exhausting retries."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if status_code is not None:
            super_details["status_code"] = status_code
        if url is not None:
            super_details["url"] = url
        super().__init__(message, "TRANSPORT_ERROR", super_details)
        self.status_code = status_code


class BatchParseError(RefDataError):
    """First row-level failure surfaced by the parallel batch parser."""

    def __init__(
        self,
        message: str,
        batch_index: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if batch_index is not None:
            super_details["batch_index"] = batch_index
        super().__init__(message, "BATCH_PARSE_ERROR", super_details)
        self.batch_index = batch_index
