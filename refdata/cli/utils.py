"""Utility helpers shared across CLI commands."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence

import typer

from refdata.core.exceptions import (
    BatchParseError,
    ConfigurationError,
    FieldDecodeError,
    PreconditionError,
    RefDataError,
    SchemaMismatchError,
)

from .constants import PRECONDITION_EXIT_CODE, SYSTEM_EXIT_CODE, VALIDATION_EXIT_CODE


def emit_error(message: str, code: str, *, details: Mapping[str, object] | None = None) -> None:
    """Print a structured error payload to stderr."""

    payload: dict[str, object] = {"code": code, "message": message}
    if details:
        payload["details"] = _sanitize_details(details)
    typer.echo(json.dumps(payload, ensure_ascii=False, default=str), err=True)


def exit_code_for(error: RefDataError) -> int:
    """Map an error to the process exit code."""

    if isinstance(error, PreconditionError):
        return PRECONDITION_EXIT_CODE
    if isinstance(error, BatchParseError):
        cause = error.__cause__
        if isinstance(cause, RefDataError):
            return exit_code_for(cause)
        return SYSTEM_EXIT_CODE
    if isinstance(error, (SchemaMismatchError, FieldDecodeError, ConfigurationError)):
        return VALIDATION_EXIT_CODE
    return SYSTEM_EXIT_CODE


def fail(error: RefDataError) -> typer.Exit:
    """Report ``error`` and return the Exit to raise."""

    emit_error(error.message, error.error_code, details=error.details)
    return typer.Exit(code=exit_code_for(error))


def _sanitize_details(details: Mapping[str, object]) -> Mapping[str, object]:
    sanitized: dict[str, object] = {}
    for key, value in details.items():
        if isinstance(value, (str, int, float, bool)) or value is None:
            sanitized[key] = value
        elif isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
            sanitized[key] = [str(item) for item in value]
        else:
            sanitized[key] = str(value)
    return sanitized


__all__ = ["emit_error", "exit_code_for", "fail"]
