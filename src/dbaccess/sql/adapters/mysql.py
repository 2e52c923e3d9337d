# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""MySQL/MariaDB async adapter using aiomysql."""

from __future__ import annotations

from typing import Any

from .base import ConnectionParams, DriverAdapter, ExecResult

# Client error codes meaning the server connection is gone
# 2003: can't connect, 2006: server has gone away, 2013: lost connection during query,
# 2055: lost connection at system error
LOST_CONNECTION_CODES = frozenset({2003, 2006, 2013, 2055})


class MysqlAdapter(DriverAdapter):
    """MySQL async adapter.

    Placeholders are rewritten to ``%s``. Rows are fetched with a DictCursor,
    generated ids come from the cursor's lastrowid.
    """

    name = "mysql"
    paramstyle = "format"

    def __init__(self) -> None:
        try:
            import aiomysql  # noqa: F401
        except ImportError as e:
            raise ImportError(
                "MySQL support requires aiomysql. "
                "Install with: pip install genro-dbaccess[mysql]"
            ) from e

    async def connect(self, params: ConnectionParams, timeout: float | None = None) -> Any:
        """Open an autocommit connection."""
        import aiomysql

        kwargs: dict[str, Any] = {
            "host": params.host or "localhost",
            "db": params.database,  # aiomysql expects "db"
            "user": params.user or None,
            "password": params.password,
            "autocommit": True,
        }
        if params.port:
            kwargs["port"] = params.port
        if timeout is not None:
            kwargs["connect_timeout"] = timeout
        return await aiomysql.connect(**kwargs)

    async def disconnect(self, conn: Any) -> None:
        """Send QUIT and close; raises if the socket is already broken."""
        await conn.ensure_closed()

    async def execute(self, conn: Any, sql: str, args: list[Any]) -> ExecResult:
        """Execute statement, return rows (if any), rowcount and lastrowid."""
        import aiomysql

        async with conn.cursor(aiomysql.DictCursor) as cur:
            await cur.execute(sql, args)
            rows = await cur.fetchall() if cur.description else []
            return ExecResult(rows=list(rows), rowcount=cur.rowcount, lastrowid=cur.lastrowid)

    async def begin(self, conn: Any) -> None:
        """Start transaction."""
        await conn.begin()

    async def commit(self, conn: Any) -> None:
        """Commit transaction on connection."""
        await conn.commit()

    async def rollback(self, conn: Any) -> None:
        """Rollback transaction on connection."""
        await conn.rollback()

    def is_connection_error(self, error: BaseException) -> bool:
        """InterfaceError or an OperationalError with a lost-connection code."""
        import aiomysql

        if super().is_connection_error(error):
            return True
        if isinstance(error, aiomysql.InterfaceError):
            return True
        if isinstance(error, aiomysql.OperationalError):
            return self.error_code(error) in LOST_CONNECTION_CODES
        return False

    def _sql_name(self, name: str) -> str:
        """Return backtick-quoted identifier."""
        return f"`{name}`"
