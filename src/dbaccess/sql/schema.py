# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Record-to-table binding used by the CRUD helpers.

A TableSchema names the table, its primary key and the ordered list of the
record fields mapped to columns. Schemas for dataclasses and pydantic models
are built once per (type, table, primary key) and cached. Dicts and plain
objects have no fixed shape, so their schema is derived per record.

Supported records:
    - dataclass instances (field declaration order)
    - pydantic BaseModel instances (``model_fields`` order)
    - dicts (insertion order)
    - plain objects with instance attributes (``vars()`` order)
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from pydantic import BaseModel


@dataclass(frozen=True)
class TableSchema:
    """Table name, primary key and column fields of a record type.

    Attributes:
        table: Table name in the database.
        primary_key: Name of the primary key field (excluded from columns).
        columns: Field names mapped to columns, in declaration order.
        writable: False for frozen records whose primary key cannot be set.
    """

    table: str
    primary_key: str = "id"
    columns: tuple[str, ...] = ()
    writable: bool = True

    @classmethod
    def for_record(cls, record: Any, table: str, primary_key: str = "id") -> TableSchema:
        """Return the schema of a record (or record type), cached for typed records."""
        record_type = record if isinstance(record, type) else type(record)
        if dataclasses.is_dataclass(record_type) or issubclass(record_type, BaseModel):
            return _typed_schema(record_type, table, primary_key)
        if isinstance(record, type):
            raise TypeError(f"Cannot derive columns from type {record_type.__name__}")
        names = tuple(_field_names(record))
        return cls(table, primary_key, tuple(n for n in names if n != primary_key))

    # -------------------------------------------------------------------------
    # Record access
    # -------------------------------------------------------------------------

    def values(self, record: Any) -> dict[str, Any]:
        """Return column values of a record keyed by column name."""
        if isinstance(record, dict):
            return {name: record.get(name) for name in self.columns}
        return {name: getattr(record, name, None) for name in self.columns}

    def assign(self, record: Any, name: str, value: Any) -> None:
        """Set a field on a record."""
        if isinstance(record, dict):
            record[name] = value
        else:
            setattr(record, name, value)

    # -------------------------------------------------------------------------
    # SQL builders
    # -------------------------------------------------------------------------

    def insert_sql(self, quote: Callable[[str], str] | None = None) -> str:
        """Return ``INSERT INTO table (c1, c2) VALUES (:c1, :c2)``."""
        quote = quote or _identity
        col_list = ", ".join(quote(c) for c in self.columns)
        placeholders = ", ".join(f":{c}" for c in self.columns)
        return f"INSERT INTO {self.table} ({col_list}) VALUES ({placeholders})"

    def update_sql(self, quote: Callable[[str], str] | None = None) -> str:
        """Return ``UPDATE table SET c1 = :c1, ... WHERE pk = :pk``."""
        quote = quote or _identity
        set_parts = ", ".join(f"{quote(c)} = :{c}" for c in self.columns)
        return (
            f"UPDATE {self.table} SET {set_parts} "
            f"WHERE {quote(self.primary_key)} = :{self.primary_key}"
        )


def _identity(name: str) -> str:
    return name


def _field_names(record: Any) -> list[str]:
    if isinstance(record, dict):
        return list(record.keys())
    try:
        return [name for name in vars(record) if not name.startswith("_")]
    except TypeError:
        raise TypeError(f"Cannot derive columns from {type(record).__name__}") from None


@lru_cache(maxsize=256)
def _typed_schema(record_type: type, table: str, primary_key: str) -> TableSchema:
    if dataclasses.is_dataclass(record_type):
        names = [f.name for f in dataclasses.fields(record_type)]
        writable = not record_type.__dataclass_params__.frozen  # type: ignore[attr-defined]
    else:
        names = list(record_type.model_fields)  # type: ignore[attr-defined]
        writable = not record_type.model_config.get("frozen", False)  # type: ignore[attr-defined]
    columns = tuple(n for n in names if n != primary_key)
    return TableSchema(table, primary_key, columns, writable)


__all__ = ["TableSchema"]
