"""Generic table schema and raw cell values.

Each table has a schema: the list of column names and their type tags, in the
order they appear in the table. A page of table data carries the schema of
the columns it actually contains, which may be a superset of what a record
type needs or ordered differently.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol, Self, TypeAlias, runtime_checkable

from refdata.core.exceptions import FieldDecodeError, SchemaMismatchError

# A table cell as decoded from JSON. JSON integers arrive as ``int``.
Value: TypeAlias = str | float | int | bool | None


@dataclass(frozen=True, slots=True)
class SchemaField:
    """Schema definition for a single table column."""

    name: str
    type: str

    def __str__(self) -> str:
        return f"{self.name}: {self.type}"


@dataclass(frozen=True, slots=True)
class Schema:
    """Ordered list of columns. Field names are assumed unique."""

    fields: tuple[SchemaField, ...]

    @classmethod
    def of(cls, *pairs: tuple[str, str]) -> Schema:
        return cls(tuple(SchemaField(name, tp) for name, tp in pairs))

    @classmethod
    def from_json(cls, columns: Iterable[Mapping[str, str]]) -> Schema:
        """Build a schema from the API's ``[{"name": ..., "type": ...}]`` list."""

        return cls(tuple(SchemaField(c["name"], c.get("type", "")) for c in columns))

    def to_json(self) -> list[dict[str, str]]:
        return [{"name": f.name, "type": f.type} for f in self.fields]

    def __len__(self) -> int:
        return len(self.fields)

    def __iter__(self):
        return iter(self.fields)

    def equal(self, other: Schema) -> bool:
        """Same set of fields, regardless of their order."""

        return len(self.fields) == len(other.fields) and self.subset_of(other)

    def subset_of(self, other: Schema) -> bool:
        """Every field of self exists in ``other`` with the same type tag.

        Lets a record type keep decoding when the table gains new columns.
        """

        types = {f.name: f.type for f in other.fields}
        return all(types.get(f.name) == f.type for f in self.fields)

    def map_fields(self) -> dict[str, int]:
        """Map of {field name -> field index}."""

        return {f.name: i for i, f in enumerate(self.fields)}

    def map_csv_columns(self, header: Sequence[str]) -> dict[str, int]:
        """Map a CSV header to {column name -> position}.

        The header may contain extra columns, but must contain every field of
        this schema.
        """

        column_map = {name: i for i, name in enumerate(header)}
        missing = [f.name for f in self.fields if f.name not in column_map]
        if missing:
            raise SchemaMismatchError(
                f"CSV header is missing required columns: {', '.join(missing)}",
                expected=str(self),
                actual=", ".join(header),
            )
        return column_map

    def __str__(self) -> str:
        return "{" + ", ".join(str(f) for f in self.fields) + "}"


@runtime_checkable
class RowDecodable(Protocol):
    """A record type that can be populated from one row of table values."""

    SCHEMA: Schema

    @classmethod
    def decode(cls, values: Sequence[Value], schema: Schema) -> Self: ...


def check_row(expected: Schema, values: Sequence[Value], schema: Schema) -> dict[str, int]:
    """Validate a raw row against ``expected`` and return its field index map."""

    if not expected.subset_of(schema):
        raise SchemaMismatchError(
            f"unexpected schema: {schema}", expected=str(expected), actual=str(schema)
        )
    if len(values) != len(schema):
        raise FieldDecodeError(
            f"expected {len(schema)} values, received {len(values)}: {list(values)!r}"
        )
    return schema.map_fields()


__all__ = ["Value", "SchemaField", "Schema", "RowDecodable", "check_row"]
