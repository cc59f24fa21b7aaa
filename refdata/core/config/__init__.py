"""Configuration management module."""

from refdata.core.config.settings import (
    DEFAULT_BASE_URL,
    SAMPLE_CONFIG,
    HttpSettings,
    LoggingSettings,
    PipelineSettings,
    RefDataConfig,
    default_config_path,
)

__all__ = [
    "DEFAULT_BASE_URL",
    "HttpSettings",
    "LoggingSettings",
    "PipelineSettings",
    "RefDataConfig",
    "SAMPLE_CONFIG",
    "default_config_path",
]
