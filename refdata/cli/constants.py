"""Exit codes of the refdata command line interface."""

SYSTEM_EXIT_CODE = 1
VALIDATION_EXIT_CODE = 2
PRECONDITION_EXIT_CODE = 3

__all__ = ["PRECONDITION_EXIT_CODE", "SYSTEM_EXIT_CODE", "VALIDATION_EXIT_CODE"]
