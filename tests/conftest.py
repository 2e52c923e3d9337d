# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Shared fixtures: a scripted driver adapter and real SQLite databases.

FakeAdapter lets tests script exactly what the driver does: each call to
connect() and execute() pops the next scripted outcome (a value to return
or an exception to raise). Every call is recorded so tests can assert how
many connects, disconnects and executions happened and with which args.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from typing import Any

import pytest
import pytest_asyncio

from dbaccess.config import DbConfig
from dbaccess.events import DbEvent
from dbaccess.sql import ConnectionParams, Database, DriverAdapter, ExecResult


class FakeConnection:
    """Stand-in for a driver connection."""

    def __init__(self, number: int):
        self.number = number
        self.closed = False

    def __repr__(self) -> str:
        return f"<FakeConnection #{self.number}>"


class FakeAdapter(DriverAdapter):
    """Driver adapter whose behaviour is scripted per call.

    Attributes:
        results: Queue of outcomes for execute(); an ExecResult is returned,
            an exception instance is raised. When empty, an empty ExecResult.
        connect_results: Queue of outcomes for connect(); an exception is
            raised, anything else opens a new FakeConnection.
        reconnectable: What can_reconnect() answers.
        calls: Ordered log of (method, detail) tuples.
    """

    name = "fake"
    paramstyle = "qmark"

    def __init__(self) -> None:
        self.results: list[Any] = []
        self.connect_results: list[Any] = []
        self.disconnect_error: BaseException | None = None
        self.commit_error: BaseException | None = None
        self.rollback_error: BaseException | None = None
        self.reconnectable = True
        self.calls: list[tuple[str, Any]] = []
        self.executed: list[tuple[str, list[Any]]] = []
        self._count = 0

    # Scripting helpers

    def script(self, *outcomes: Any) -> FakeAdapter:
        self.results.extend(outcomes)
        return self

    def rows(self, *rows: dict[str, Any]) -> FakeAdapter:
        return self.script(ExecResult(rows=list(rows), rowcount=len(rows)))

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    # DriverAdapter

    async def connect(self, params: ConnectionParams, timeout: float | None = None) -> Any:
        self.calls.append(("connect", params))
        if self.connect_results:
            outcome = self.connect_results.pop(0)
            if isinstance(outcome, BaseException):
                raise outcome
        self._count += 1
        return FakeConnection(self._count)

    async def disconnect(self, conn: Any) -> None:
        self.calls.append(("disconnect", conn))
        conn.closed = True
        if self.disconnect_error is not None:
            raise self.disconnect_error

    async def execute(self, conn: Any, sql: str, args: list[Any]) -> ExecResult:
        self.calls.append(("execute", conn))
        self.executed.append((sql, list(args)))
        if not self.results:
            return ExecResult()
        outcome = self.results.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def can_reconnect(self, params: ConnectionParams) -> bool:
        return self.reconnectable

    async def begin(self, conn: Any) -> None:
        self.calls.append(("begin", conn))

    async def commit(self, conn: Any) -> None:
        self.calls.append(("commit", conn))
        if self.commit_error is not None:
            raise self.commit_error

    async def rollback(self, conn: Any) -> None:
        self.calls.append(("rollback", conn))
        if self.rollback_error is not None:
            raise self.rollback_error


@pytest.fixture
def adapter() -> FakeAdapter:
    """A fresh scripted adapter."""
    return FakeAdapter()


@pytest.fixture
def events() -> list[DbEvent]:
    """Collects emitted events."""
    return []


@pytest_asyncio.fixture
async def fake_db(adapter: FakeAdapter, events: list[DbEvent]) -> AsyncGenerator[Database, None]:
    """Database over the scripted adapter, already initialized."""
    db = Database(DbConfig(driver="fake", host="db.local", database="shop"), adapter=adapter, sink=events.append)
    await db.init()
    yield db
    await db.shutdown()


@pytest_asyncio.fixture
async def sqlite_db(tmp_path) -> AsyncGenerator[Database, None]:
    """Real SQLite database in a temp directory with an ``items`` table."""
    db_path = os.path.join(tmp_path, "test.db")
    db = Database(DbConfig.from_url(f"sqlite:{db_path}"))
    await db.init()
    await db.execute(
        "create",
        "CREATE TABLE items (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT, qty INTEGER, code TEXT)",
    )
    yield db
    await db.shutdown()
