# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""PostgreSQL async adapter using psycopg3.

One autocommit connection per DbConnection, no pool: transactions are
issued as explicit BEGIN/COMMIT/ROLLBACK statements.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..params import bind_parameters
from .base import ConnectionParams, DriverAdapter, ExecResult


class PostgresAdapter(DriverAdapter):
    """PostgreSQL async adapter.

    Placeholders are rewritten to ``%s``. Generated ids are read back with
    ``RETURNING`` since psycopg has no lastrowid.
    """

    name = "postgresql"
    paramstyle = "format"

    def __init__(self) -> None:
        # Verify psycopg is available at init time
        try:
            import psycopg  # noqa: F401
        except ImportError as e:
            raise ImportError(
                "PostgreSQL support requires psycopg. "
                "Install with: pip install genro-dbaccess[postgresql]"
            ) from e

    async def connect(self, params: ConnectionParams, timeout: float | None = None) -> Any:
        """Open an autocommit connection."""
        import psycopg

        kwargs: dict[str, Any] = {
            "host": params.host or None,
            "dbname": params.database,
            "user": params.user or None,
            "password": params.password or None,
            "autocommit": True,
        }
        if params.port:
            kwargs["port"] = params.port
        if timeout is not None:
            kwargs["connect_timeout"] = max(1, int(timeout))
        return await psycopg.AsyncConnection.connect(**kwargs)

    async def disconnect(self, conn: Any) -> None:
        """Close connection."""
        await conn.close()

    async def execute(self, conn: Any, sql: str, args: list[Any]) -> ExecResult:
        """Execute statement, return rows (if any) and rowcount."""
        from psycopg.rows import dict_row

        async with conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(sql, args)
            rows = await cur.fetchall() if cur.description else []
            return ExecResult(rows=list(rows), rowcount=cur.rowcount)

    async def begin(self, conn: Any) -> None:
        """Start transaction."""
        await conn.execute("BEGIN")

    async def commit(self, conn: Any) -> None:
        """Commit transaction on connection."""
        await conn.execute("COMMIT")

    async def rollback(self, conn: Any) -> None:
        """Rollback transaction on connection."""
        await conn.execute("ROLLBACK")

    def is_connection_error(self, error: BaseException) -> bool:
        """OperationalError and InterfaceError mean the connection is unusable."""
        import psycopg

        if super().is_connection_error(error):
            return True
        return isinstance(error, (psycopg.OperationalError, psycopg.InterfaceError))

    def error_code(self, error: BaseException) -> Any:
        """Return the SQLSTATE of a psycopg error."""
        sqlstate = getattr(error, "sqlstate", None)
        if sqlstate is not None:
            return sqlstate
        return super().error_code(error)

    def bind(self, sql: str, values: Mapping[str, Any] | None) -> tuple[str, list[Any]]:
        """Rewrite placeholders, leaving ``::type`` casts alone."""
        return bind_parameters(sql, values, self.paramstyle, skip_casts=True)

    def returning_clause(self, sql: str, primary_key: str | None) -> str:
        """Append ``RETURNING "pk"`` so the generated id comes back as a row."""
        if not primary_key:
            return sql
        return f"{sql.rstrip().rstrip(';')} RETURNING {self._sql_name(primary_key)}"

    def generated_id(self, result: ExecResult, primary_key: str | None) -> int:
        if primary_key and result.rows:
            return result.rows[0].get(primary_key) or 0
        return 0
