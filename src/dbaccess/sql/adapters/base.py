# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Base adapter class for async database drivers."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..params import bind_parameters


@dataclass(frozen=True)
class ConnectionParams:
    """Parameters needed to (re)open a connection.

    For SQLite only ``database`` (file path or ``:memory:``) is used.
    """

    host: str = ""
    database: str = ""
    user: str = ""
    password: str = field(default="", repr=False)
    port: int | None = None


@dataclass
class ExecResult:
    """Raw outcome of a single statement.

    Attributes:
        rows: Result rows as dicts in column order (empty for DML).
        rowcount: Rows affected (or returned), -1 when unknown.
        lastrowid: Generated id reported by the driver, None if unavailable.
    """

    rows: list[dict[str, Any]] = field(default_factory=list)
    rowcount: int = -1
    lastrowid: int | None = None


class DriverAdapter(ABC):
    """Abstract base class for async driver adapters.

    An adapter knows how to talk to one driver. It holds no connection
    state itself: DbConnection owns the live connection and passes it in.

    Responsibilities:
    - Connection lifecycle (connect, disconnect)
    - Statement execution returning ExecResult
    - Transaction control (begin, commit, rollback)
    - Failure classification (is_connection_error, error_code)
    - Dialect bits: paramstyle, identifier quoting, generated ids

    Subclasses must implement the abstract methods and set ``paramstyle``
    (``qmark`` for SQLite, ``format`` for psycopg and aiomysql).
    """

    name: str = "base"
    paramstyle: str = "qmark"  # Override in subclass

    # Exceptions that always mean the connection is gone, whatever the driver
    connection_errors: tuple[type[BaseException], ...] = (
        ConnectionError,
        TimeoutError,
        asyncio.TimeoutError,
        BrokenPipeError,
    )

    @abstractmethod
    async def connect(self, params: ConnectionParams, timeout: float | None = None) -> Any:
        """Open a new driver connection in autocommit mode."""
        ...

    @abstractmethod
    async def disconnect(self, conn: Any) -> None:
        """Close a driver connection."""
        ...

    @abstractmethod
    async def execute(self, conn: Any, sql: str, args: list[Any]) -> ExecResult:
        """Execute a positional statement on the connection."""
        ...

    @abstractmethod
    async def begin(self, conn: Any) -> None:
        """Start a transaction on the connection."""
        ...

    @abstractmethod
    async def commit(self, conn: Any) -> None:
        """Commit the transaction on the connection."""
        ...

    @abstractmethod
    async def rollback(self, conn: Any) -> None:
        """Rollback the transaction on the connection."""
        ...

    # -------------------------------------------------------------------------
    # Failure classification
    # -------------------------------------------------------------------------

    def is_connection_error(self, error: BaseException) -> bool:
        """Return True if the error means the connection is lost."""
        return isinstance(error, self.connection_errors)

    def error_code(self, error: BaseException) -> Any:
        """Return the driver error code of an exception, None if unknown."""
        code = getattr(error, "errno", None)
        if code is not None:
            return code
        if error.args and isinstance(error.args[0], int):
            return error.args[0]
        return None

    def can_reconnect(self, params: ConnectionParams) -> bool:
        """Return True if reopening with params reaches the same data."""
        return True

    # -------------------------------------------------------------------------
    # SQL Helpers
    # -------------------------------------------------------------------------

    def bind(self, sql: str, values: Mapping[str, Any] | None) -> tuple[str, list[Any]]:
        """Rewrite ``:name`` placeholders into this driver's positional style."""
        return bind_parameters(sql, values, self.paramstyle)

    def _sql_name(self, name: str) -> str:
        """Return quoted SQL identifier for column name."""
        return f'"{name}"'

    def returning_clause(self, sql: str, primary_key: str | None) -> str:
        """Return the insert statement adjusted to report the generated id."""
        return sql

    def generated_id(self, result: ExecResult, primary_key: str | None) -> int:
        """Extract the generated id of an insert, 0 when there is none."""
        return result.lastrowid or 0


__all__ = ["ConnectionParams", "DriverAdapter", "ExecResult"]
