"""
Configuration management for refdata.

Settings come from defaults, ``REFDATA_*`` environment variables and an
optional TOML file. Every component receives its slice of the configuration
through its constructor.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import toml
from pydantic import BaseModel, Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from refdata.core.exceptions import ConfigurationError

DEFAULT_BASE_URL = "https://data.nasdaq.com/api/v3"
DEFAULT_CONFIG_DIR = Path.home() / ".refdata"

SAMPLE_CONFIG = """key = "YourSecretNasdaqDataLinkKey"
tables = ["SEP", "SFP"]
"""


class HttpSettings(BaseModel):
    """HTTP transport settings."""

    timeout: float = Field(60.0, gt=0, description="Request timeout in seconds")
    max_retries: int = Field(3, ge=0, description="Retries for transient failures")
    backoff_factor: float = Field(2.0, gt=0, description="Exponential backoff base")
    user_agent: str = Field("refdata/0.1.0", description="User-Agent header")


class PipelineSettings(BaseModel):
    """Fetch and parse pipeline settings."""

    batch_size: int = Field(10_000, description="CSV rows per parse batch")
    workers: int = Field(default_factory=lambda: os.cpu_count() or 1, description="Parser pool size")
    per_page: int = Field(10_000, ge=0, le=10_000, description="Rows per table API page")
    monitor_interval: int = Field(10 * 1024 * 1024, gt=0, description="Bytes between progress reports")
    executor: Literal["thread", "process"] = Field(
        "process", description="Parser pool kind; threads share the GIL with the download"
    )

    @field_validator("batch_size", "workers")
    @classmethod
    def _positive(cls, value: int, info: ValidationInfo) -> int:
        if value <= 0:
            raise ValueError(f"{info.field_name} = {value} must be > 0")
        return value


class LoggingSettings(BaseModel):
    """Logging settings."""

    level: str = Field("INFO", description="Log level")
    file_path: Path | None = Field(None, description="Optional JSON-lines log file")
    serialize: bool = Field(True, description="Emit JSON records")


class RefDataConfig(BaseSettings):
    """Main refdata configuration."""

    model_config = SettingsConfigDict(
        env_prefix="REFDATA_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    api_key: str = Field("", description="Nasdaq Data Link API key")
    base_url: str = Field(DEFAULT_BASE_URL, description="Table API base URL")
    tables: list[str] = Field(default_factory=list, description="Price tables to download")
    db_path: Path = Field(DEFAULT_CONFIG_DIR / "refdata.duckdb", description="DuckDB database file")

    http: HttpSettings = Field(default_factory=HttpSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def load_from_file(cls, config_path: Path, **overrides: Any) -> RefDataConfig:
        """Load configuration from a TOML file."""

        if not config_path.exists():
            raise ConfigurationError(
                f"config file '{config_path}' does not exist.\n"
                f"Please create config file containing:\n{SAMPLE_CONFIG}",
                details={"path": str(config_path)},
            )
        try:
            config_data = toml.load(config_path)
        except (OSError, toml.TomlDecodeError) as exc:
            raise ConfigurationError(
                f"failed to read config file {config_path}: {exc}",
                details={"path": str(config_path)},
            ) from exc

        # The on-disk file names the API key "key".
        if "key" in config_data:
            config_data.setdefault("api_key", config_data.pop("key"))
        config_data.update(overrides)
        try:
            return cls(**config_data)
        except ValueError as exc:
            raise ConfigurationError(
                f"invalid config file {config_path}: {exc}",
                details={"path": str(config_path)},
            ) from exc


def default_config_path() -> Path:
    """Return the config file location used when none is given."""

    return DEFAULT_CONFIG_DIR / "config.toml"


__all__ = [
    "DEFAULT_BASE_URL",
    "HttpSettings",
    "LoggingSettings",
    "PipelineSettings",
    "RefDataConfig",
    "SAMPLE_CONFIG",
    "default_config_path",
]
