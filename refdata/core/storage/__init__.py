"""Persistence of downloaded datasets."""

from refdata.core.storage.schema import ColumnDef, TableSchema, ensure_schema
from refdata.core.storage.sink import DatasetSink, DuckDBSink

__all__ = ["ColumnDef", "DatasetSink", "DuckDBSink", "TableSchema", "ensure_schema"]
