# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for Database row mapping: field, row, rows and typed variants."""

from __future__ import annotations

from dataclasses import dataclass

import pytest
from pydantic import BaseModel

from dbaccess.config import DbConfig
from dbaccess.errors import NotConnected, NotFound
from dbaccess.sql import Database, ExecResult


@dataclass
class Item:
    id: int
    name: str
    qty: int = 0


class ItemModel(BaseModel):
    id: int
    name: str
    qty: int = 0


class Plain:
    def __init__(self, id, name):
        self.id = id
        self.name = name


class TestExecute:
    """Tests for parameter binding on the way to the connection."""

    async def test_named_parameters_bound_positionally(self, fake_db, adapter):
        await fake_db.execute("update", "UPDATE t SET a = :a WHERE id = :id OR p = :id", {"a": "x", "id": 3})
        assert adapter.executed == [("UPDATE t SET a = ? WHERE id = ? OR p = ?", ["x", 3, 3])]

    async def test_before_init_raises_not_connected(self, adapter):
        db = Database(DbConfig(), adapter=adapter)
        with pytest.raises(NotConnected):
            await db.rows("SELECT 1")

    async def test_context_manager_opens_and_closes(self, adapter):
        async with Database(DbConfig(), adapter=adapter, sink=lambda e: None) as db:
            assert db.connection.is_connected
        assert adapter.count("connect") == 1
        assert adapter.count("disconnect") == 1


class TestField:
    """Tests for field and field_or_fail."""

    async def test_first_column_of_first_row(self, fake_db, adapter):
        adapter.rows({"total": 5, "other": 9}, {"total": 6, "other": 0})
        assert await fake_db.field("SELECT COUNT(*) AS total, 9 AS other") == 5

    async def test_no_row_returns_default(self, fake_db, adapter):
        adapter.rows()
        assert await fake_db.field("SELECT x FROM t WHERE 0", default=-1) == -1

    async def test_no_row_default_none(self, fake_db, adapter):
        adapter.rows()
        assert await fake_db.field("SELECT x FROM t WHERE 0") is None

    async def test_null_value_indistinguishable_from_no_row(self, fake_db, adapter):
        adapter.rows({"x": None})
        assert await fake_db.field("SELECT NULL AS x") is None

    async def test_field_or_fail_raises_not_found(self, fake_db, adapter):
        adapter.rows()
        with pytest.raises(NotFound, match="no field"):
            await fake_db.field_or_fail("SELECT x FROM t WHERE id = :id", {"id": 1})

    async def test_field_or_fail_returns_null_value(self, fake_db, adapter):
        """A row with NULL is a row: no NotFound."""
        adapter.rows({"x": None})
        assert await fake_db.field_or_fail("SELECT NULL AS x") is None


class TestRow:
    """Tests for row, row_or_fail and rows."""

    async def test_row_returns_first(self, fake_db, adapter):
        adapter.rows({"id": 1}, {"id": 2})
        assert await fake_db.row("SELECT id FROM t") == {"id": 1}

    async def test_row_none_when_empty(self, fake_db, adapter):
        adapter.rows()
        assert await fake_db.row("SELECT id FROM t") is None

    async def test_row_or_fail(self, fake_db, adapter):
        adapter.rows()
        with pytest.raises(NotFound) as exc_info:
            await fake_db.row_or_fail("SELECT id FROM t WHERE id = :id", {"id": 4})
        assert exc_info.value.params == {"id": 4}

    async def test_rows_in_driver_order(self, fake_db, adapter):
        adapter.rows({"id": 3}, {"id": 1}, {"id": 2})
        assert [r["id"] for r in await fake_db.rows("SELECT id FROM t")] == [3, 1, 2]

    async def test_rows_empty(self, fake_db, adapter):
        adapter.rows()
        assert await fake_db.rows("SELECT id FROM t") == []


class TestTypedRows:
    """Tests for record conversion through convert_row."""

    async def test_row_as_dataclass_ignores_extra_columns(self, fake_db, adapter):
        adapter.rows({"id": 1, "name": "bolt", "qty": 4, "created": "2025-01-01"})
        item = await fake_db.row_as(Item, "SELECT * FROM items WHERE id = :id", {"id": 1})
        assert item == Item(1, "bolt", 4)

    async def test_row_as_none_when_empty(self, fake_db, adapter):
        adapter.rows()
        assert await fake_db.row_as(Item, "SELECT * FROM items") is None

    async def test_row_or_fail_as_pydantic_coerces(self, fake_db, adapter):
        adapter.rows({"id": "7", "name": "nut", "qty": "3"})
        item = await fake_db.row_or_fail_as(ItemModel, "SELECT * FROM items")
        assert item == ItemModel(id=7, name="nut", qty=3)

    async def test_row_or_fail_as_raises(self, fake_db, adapter):
        adapter.rows()
        with pytest.raises(NotFound):
            await fake_db.row_or_fail_as(ItemModel, "SELECT * FROM items")

    async def test_rows_as_plain_class(self, fake_db, adapter):
        adapter.rows({"id": 1, "name": "a"}, {"id": 2, "name": "b"})
        items = await fake_db.rows_as(Plain, "SELECT id, name FROM items")
        assert [(i.id, i.name) for i in items] == [(1, "a"), (2, "b")]

    def test_convert_row_dict_passthrough(self, adapter):
        db = Database(DbConfig(), adapter=adapter)
        row = {"id": 1}
        assert db.convert_row(row, None) is row
        assert db.convert_row(row, dict) is row

    async def test_convert_row_override(self, adapter, events):
        class UpperDatabase(Database):
            def convert_row(self, row, record_type):
                return {k.upper(): v for k, v in row.items()}

        db = UpperDatabase(DbConfig(), adapter=adapter, sink=events.append)
        await db.init()
        adapter.rows({"id": 1})
        assert await db.row_as(Item, "SELECT id FROM items") == {"ID": 1}
        await db.shutdown()


class TestExecResultShape:
    """Raw execute exposes rowcount and lastrowid."""

    async def test_execute_returns_exec_result(self, fake_db, adapter):
        adapter.script(ExecResult(rowcount=2, lastrowid=11))
        result = await fake_db.execute("insert", "INSERT INTO t (a) VALUES (:a)", {"a": 1})
        assert result.rowcount == 2
        assert result.lastrowid == 11
