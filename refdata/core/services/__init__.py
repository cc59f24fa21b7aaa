"""Download pipeline services."""

from refdata.core.services.batch_parser import ParallelBatchParser, PriceBatch, parse_price_batch
from refdata.core.services.dataset import (
    DEFAULT_PRICE_TABLES,
    Dataset,
    DatasetSummary,
    TableName,
    fetch_actions,
    fetch_tickers,
    full_table_name,
)
from refdata.core.services.monthly import compute_monthly
from refdata.core.services.reconciler import mark_active, reconcile_actions

__all__ = [
    "DEFAULT_PRICE_TABLES",
    "Dataset",
    "DatasetSummary",
    "ParallelBatchParser",
    "PriceBatch",
    "TableName",
    "compute_monthly",
    "fetch_actions",
    "fetch_tickers",
    "full_table_name",
    "mark_active",
    "parse_price_batch",
    "reconcile_actions",
]
