"""Logging utilities for monitoring and debugging."""

from refdata.core.logging.config import LogConfig
from refdata.core.logging.logger import PIPELINE_FIELDS, configure_logging, current_trace_id, log_context, logger

__all__ = [
    "PIPELINE_FIELDS",
    "LogConfig",
    "configure_logging",
    "current_trace_id",
    "log_context",
    "logger",
]
