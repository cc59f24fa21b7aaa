"""Table API access: paginated queries and bulk exports."""

from refdata.core.tables.bulk import (
    BulkDownloadHandle,
    BulkStatus,
    CSVReader,
    logging_monitor,
    open_bulk_csv,
    request_bulk_download,
)
from refdata.core.tables.http import HttpClient, HttpConfig, RetryConfig
from refdata.core.tables.query import (
    MAX_PER_PAGE,
    RowIterator,
    TableMetadata,
    TablePage,
    TableQuery,
    fetch_table_metadata,
)

__all__ = [
    "MAX_PER_PAGE",
    "BulkDownloadHandle",
    "BulkStatus",
    "CSVReader",
    "HttpClient",
    "HttpConfig",
    "RetryConfig",
    "RowIterator",
    "TableMetadata",
    "TablePage",
    "TableQuery",
    "fetch_table_metadata",
    "logging_monitor",
    "open_bulk_csv",
    "request_bulk_download",
]
