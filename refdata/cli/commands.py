"""Download and metadata commands."""

from __future__ import annotations

import json
from pathlib import Path

import typer

from refdata.core.config import RefDataConfig, default_config_path
from refdata.core.exceptions import ConfigurationError, RefDataError
from refdata.core.logging import configure_logging
from refdata.core.services import DEFAULT_PRICE_TABLES, Dataset, ParallelBatchParser, TableName
from refdata.core.storage import DuckDBSink
from refdata.core.tables import HttpClient, fetch_table_metadata

from .utils import fail


def register(app: typer.Typer) -> None:
    """Register the commands on the provided application."""

    app.command("download")(download_command)
    app.command("metadata")(metadata_command)


def get_http_client(config: RefDataConfig) -> HttpClient:
    """Factory hook for obtaining an :class:`HttpClient` instance."""

    return HttpClient.from_config(config)


def load_config(config_path: Path | None) -> RefDataConfig:
    """Load the config file, falling back to the environment alone."""

    if config_path is None:
        default_path = default_config_path()
        if not default_path.exists():
            config = RefDataConfig()
        else:
            config = RefDataConfig.load_from_file(default_path)
    else:
        config = RefDataConfig.load_from_file(config_path)
    if not config.api_key:
        raise ConfigurationError(
            "API key is not set: add 'key' to the config file or set REFDATA_API_KEY",
        )
    return config


def _price_table(name: str) -> TableName:
    try:
        table = TableName(name.upper())
    except ValueError:
        table = None
    if table not in DEFAULT_PRICE_TABLES:
        allowed = ", ".join(t.value for t in DEFAULT_PRICE_TABLES)
        raise ConfigurationError(f"unknown price table '{name}', expected one of: {allowed}")
    return table


def _config_option() -> Path | None:
    return typer.Option(None, "--config", "-c", help="TOML config file.")


def download_command(
    ctx: typer.Context,
    config_path: Path | None = _config_option(),
    db_path: Path | None = typer.Option(None, "--db", help="DuckDB database file."),
    tables: list[str] | None = typer.Option(
        None,
        "--table",
        "-t",
        help="Price table to download (SEP or SFP); repeatable. Default: both.",
    ),
) -> None:
    """Download tickers, actions and prices, and write them to DuckDB."""

    try:
        config = load_config(config_path)
        names = tables or config.tables
        price_tables = [_price_table(name) for name in names]
    except RefDataError as error:
        raise fail(error) from error

    configure_logging(
        (ctx.obj or {}).get("log_level") or config.logging.level,
        serialize=config.logging.serialize,
        file_path=config.logging.file_path,
    )

    database = db_path or config.db_path
    with get_http_client(config) as client:
        dataset = Dataset(
            client,
            parser=ParallelBatchParser.from_settings(config.pipeline),
            monitor_interval=config.pipeline.monitor_interval,
            per_page=config.pipeline.per_page,
        )
        try:
            summary = dataset.download_all(lambda: DuckDBSink(database), *price_tables)
        except RefDataError as error:
            raise fail(error) from error

    typer.echo(summary.model_dump_json(indent=2))


def metadata_command(
    table: str = typer.Argument(..., help="Table name, e.g. SHARADAR/SEP or SEP."),
    config_path: Path | None = _config_option(),
) -> None:
    """Print the metadata of a table as JSON."""

    if "/" not in table:
        table = f"SHARADAR/{table.upper()}"
    try:
        config = load_config(config_path)
        with get_http_client(config) as client:
            metadata = fetch_table_metadata(client, table)
    except RefDataError as error:
        raise fail(error) from error

    typer.echo(json.dumps(metadata.model_dump(mode="json"), indent=2))


__all__ = ["download_command", "get_http_client", "load_config", "metadata_command", "register"]
