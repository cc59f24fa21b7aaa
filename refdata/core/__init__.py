"""refdata core modules."""

from refdata.core.config import RefDataConfig
from refdata.core.services import Dataset, DatasetSummary, ParallelBatchParser, TableName, reconcile_actions
from refdata.core.storage import DuckDBSink
from refdata.core.tables import HttpClient, TableQuery

__all__ = [
    "Dataset",
    "DatasetSummary",
    "DuckDBSink",
    "HttpClient",
    "ParallelBatchParser",
    "RefDataConfig",
    "TableName",
    "TableQuery",
    "reconcile_actions",
]
