"""refdata - financial reference data downloader.

Downloads ticker metadata, corporate actions and daily prices from the
Nasdaq Data Link table API, reconciles actions against prices, and stores
the result in DuckDB.
"""

from refdata.core import (
    Dataset,
    DatasetSummary,
    DuckDBSink,
    HttpClient,
    ParallelBatchParser,
    RefDataConfig,
    TableName,
    TableQuery,
    reconcile_actions,
)

__version__ = "0.1.0"

__all__ = [
    "Dataset",
    "DatasetSummary",
    "DuckDBSink",
    "HttpClient",
    "ParallelBatchParser",
    "RefDataConfig",
    "TableName",
    "TableQuery",
    "__version__",
    "reconcile_actions",
]
