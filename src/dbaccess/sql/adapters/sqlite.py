# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SQLite async adapter using aiosqlite."""

from __future__ import annotations

import asyncio
import sqlite3
from typing import Any

import aiosqlite

from .base import ConnectionParams, DriverAdapter, ExecResult


class SqliteAdapter(DriverAdapter):
    """SQLite async adapter.

    Connections are opened with ``isolation_level=None`` so every statement
    autocommits unless begin() issued an explicit BEGIN. Placeholders are
    rewritten to ``?``.
    """

    name = "sqlite"
    paramstyle = "qmark"

    async def connect(
        self, params: ConnectionParams, timeout: float | None = None
    ) -> aiosqlite.Connection:
        """Open the database file (or ``:memory:``)."""
        database = params.database or ":memory:"
        return await asyncio.wait_for(
            aiosqlite.connect(database, isolation_level=None), timeout=timeout
        )

    async def disconnect(self, conn: aiosqlite.Connection) -> None:
        """Close connection."""
        await conn.close()

    async def execute(
        self, conn: aiosqlite.Connection, sql: str, args: list[Any]
    ) -> ExecResult:
        """Execute statement, return rows (if any), rowcount and lastrowid."""
        async with conn.execute(sql, args) as cursor:
            if cursor.description is None:
                return ExecResult(rowcount=cursor.rowcount, lastrowid=cursor.lastrowid)
            raw_rows = await cursor.fetchall()
            cols = [c[0] for c in cursor.description]
            rows = [dict(zip(cols, row, strict=True)) for row in raw_rows]
            return ExecResult(rows=rows, rowcount=len(rows), lastrowid=cursor.lastrowid)

    async def begin(self, conn: aiosqlite.Connection) -> None:
        """Start an explicit transaction."""
        await conn.execute("BEGIN")

    async def commit(self, conn: aiosqlite.Connection) -> None:
        """Commit transaction on connection."""
        await conn.commit()

    async def rollback(self, conn: aiosqlite.Connection) -> None:
        """Rollback transaction on connection."""
        await conn.rollback()

    def can_reconnect(self, params: ConnectionParams) -> bool:
        """A private in-memory database is gone once its connection closes."""
        return (params.database or ":memory:") != ":memory:"

    def is_connection_error(self, error: BaseException) -> bool:
        """Closed handles surface as ProgrammingError or aiosqlite's ValueError."""
        if super().is_connection_error(error):
            return True
        if isinstance(error, sqlite3.ProgrammingError):
            return "closed" in str(error).lower()
        if isinstance(error, ValueError):
            message = str(error).lower()
            return "no active connection" in message or "connection closed" in message
        return False

    def error_code(self, error: BaseException) -> Any:
        """Return the SQLite error name (e.g. SQLITE_CONSTRAINT_UNIQUE)."""
        name = getattr(error, "sqlite_errorname", None)
        if name is not None:
            return name
        return super().error_code(error)
