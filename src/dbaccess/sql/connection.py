# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Single logical connection with transparent reconnect-and-retry.

DbConnection owns exactly one driver connection and the parameters needed
to re-establish it. When a statement fails, the connection is presumed
broken (idle timeout, server restart): it is closed, a new one is opened
with the stored parameters and the statement is retried exactly once. A
failed reconnect or a failed retry surfaces to the caller with full
diagnostic context.

Inside a transaction only a real connection loss reconnects, and the
statement is not retried: the transaction is marked lost, later statements
and commit() fail until rollback() clears it. With retry_all_errors=False
the connection-loss rule applies outside transactions too. Adapters that
cannot reopen the same data (SQLite :memory:) never reconnect.

Concurrency model:
    Two asyncio.Locks per instance. The statement lock serializes every
    execute/reconnect sequence, so one instance runs one statement at a
    time. The unit lock is taken by hold() for a whole unit of work
    (transactions). Tasks inside the held block, including tasks spawned
    from it, are marked through a ContextVar and only queue on the
    statement lock while the block is open; every other task, and a
    spawned task that outlives the block, waits for the unit lock first.

Example:
    ::

        conn = DbConnection(get_adapter("mysql"), params)
        await conn.open()
        sql, args = conn.adapter.bind("SELECT * FROM items WHERE id = :id", {"id": 1})
        result = await conn.execute("row", sql, args)
        await conn.close()
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Any, TypeVar

from ..errors import DbAccessError, ExecutionFailed, NotConnected, ReconnectFailed
from ..events import EventEmitter, EventSink
from .adapters import ConnectionParams, DriverAdapter, ExecResult
from .cancel import CancelToken

T = TypeVar("T")

LOST_IN_TRANSACTION = "connection lost during transaction"


class _Hold:
    """One hold() block on one connection."""

    __slots__ = ("connection", "active")

    def __init__(self, connection: DbConnection):
        self.connection = connection
        self.active = True


# Holds entered in the current context (set by hold()). Tasks copy the
# context, so a hold only counts while it is still active.
_held_connections: ContextVar[tuple[_Hold, ...]] = ContextVar("dbaccess_held", default=())


class DbConnection:
    """Driver connection holder with reconnect-once recovery.

    Attributes:
        adapter: DriverAdapter used for every driver call.
        params: ConnectionParams used for the first connect and reconnects.
        connect_timeout: Seconds allowed to open a connection, None for no limit.
        statement_timeout: Seconds allowed per statement, None for no limit.
        retry_all_errors: Reconnect and retry on any failure outside a transaction,
            not only on connection loss.
        in_transaction: True between a successful begin() and commit()/rollback().
    """

    def __init__(
        self,
        adapter: DriverAdapter,
        params: ConnectionParams,
        *,
        sink: EventSink | None = None,
        connect_timeout: float | None = None,
        statement_timeout: float | None = None,
        retry_all_errors: bool = True,
    ):
        self.adapter = adapter
        self.params = params
        self.connect_timeout = connect_timeout
        self.statement_timeout = statement_timeout
        self.retry_all_errors = retry_all_errors
        self.in_transaction = False
        self._transaction_lost = False
        self._conn: Any = None
        self._opened = False
        self._lock = asyncio.Lock()
        self._statement_lock = asyncio.Lock()
        self._events = EventEmitter("connection", sink)

    @property
    def is_connected(self) -> bool:
        """True if a live driver connection is currently held."""
        return self._conn is not None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def open(self) -> None:
        """Open the first connection. Must be called once before any statement.

        Raises:
            DbAccessError: If the connection was already opened.
        """
        async with self._guard():
            if self._opened:
                raise DbAccessError("Connection already opened")
            try:
                self._conn = await self.adapter.connect(self.params, self.connect_timeout)
            except Exception as exc:
                self._events.error(
                    "connecting failed",
                    error=exc,
                    code=self.adapter.error_code(exc),
                    host=self.params.host,
                    database=self.params.database,
                    user=self.params.user,
                )
                raise
            self._opened = True
        self._events.info(
            "connected to database",
            host=self.params.host,
            database=self.params.database,
            user=self.params.user,
        )

    async def close(self) -> None:
        """Close the connection. Further statements raise NotConnected."""
        async with self._guard():
            conn, self._conn = self._conn, None
            self._opened = False
            self._end_transaction()
            if conn is not None:
                await self.adapter.disconnect(conn)

    # -------------------------------------------------------------------------
    # Locking
    # -------------------------------------------------------------------------

    def _holds_lock(self) -> bool:
        if not self._lock.locked():
            return False
        return any(h.connection is self and h.active for h in _held_connections.get())

    @asynccontextmanager
    async def _guard(self) -> AsyncIterator[None]:
        """Serialize one statement, waiting for the unit lock unless it is held here."""
        if self._holds_lock():
            async with self._statement_lock:
                yield
            return
        async with self._lock, self._statement_lock:
            yield

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[DbConnection]:
        """Keep the unit lock for the duration of the block.

        Statements issued from inside the block run without re-acquiring
        the unit lock, one at a time. Other tasks wait until the block exits.
        """
        if self._holds_lock():
            yield self
            return
        async with self._lock:
            holder = _Hold(self)
            token = _held_connections.set(_held_connections.get() + (holder,))
            try:
                yield self
            finally:
                holder.active = False
                _held_connections.reset(token)

    # -------------------------------------------------------------------------
    # Statement execution
    # -------------------------------------------------------------------------

    async def execute(
        self,
        description: str,
        sql: str,
        args: list[Any] | None = None,
        cancel: CancelToken | None = None,
    ) -> ExecResult:
        """Execute a positional statement, reconnecting and retrying once on failure.

        Args:
            description: Short label of the operation, used in logs and errors.
            sql: Statement already rewritten to the driver's paramstyle.
            args: Positional arguments.
            cancel: Optional token; a cancelled token discards the result.

        Returns:
            ExecResult of the (possibly retried) statement.

        Raises:
            NotConnected: open() was never called or close() was called.
            ExecutionFailed: The statement failed and was not (or no longer) retryable.
            ReconnectFailed: The lost connection could not be re-established.
            QueryCancelled: The token was cancelled before or during execution.
        """
        args = list(args or [])
        if cancel is not None:
            cancel.raise_if_cancelled(description)

        async with self._guard():
            result = await self._perform(
                description,
                sql,
                args,
                lambda conn: self.adapter.execute(conn, sql, args),
            )

        if cancel is not None:
            cancel.raise_if_cancelled(description)
        return result

    async def _perform(
        self,
        description: str,
        sql: str,
        args: list[Any],
        operation: Callable[[Any], Awaitable[T]],
    ) -> T:
        """Run operation(conn) with the reconnect-once policy. Caller holds the lock."""
        if not self._opened:
            raise NotConnected()

        if self.in_transaction and (self._transaction_lost or self._conn is None):
            # Statements must not run on a connection that never saw BEGIN
            raise ExecutionFailed(description, sql, args, None, LOST_IN_TRANSACTION)

        if self._conn is None:
            # An earlier reconnect failed: recovering is the first step
            await self._reconnect(description, sql, args)
            return await self._retry(description, sql, args, operation)

        try:
            return await self._timed(operation(self._conn))
        except Exception as exc:
            code = self.adapter.error_code(exc)
            self._events.error(
                "execution failed", error=exc, code=code, description=description, sql=sql, args=args
            )
            if not self._recoverable(exc):
                raise ExecutionFailed(description, sql, args, code, str(exc)) from exc
            failure = exc

        await self._discard_connection()
        if self.in_transaction:
            # The server-side transaction died with the old connection
            self._transaction_lost = True
        await self._reconnect(description, sql, args)

        if self.in_transaction:
            raise ExecutionFailed(description, sql, args, code, LOST_IN_TRANSACTION) from failure

        return await self._retry(description, sql, args, operation)

    def _recoverable(self, exc: BaseException) -> bool:
        """Whether a failure takes the close, reconnect and retry path.

        Never when the adapter cannot reopen the same data (SQLite
        :memory:). Otherwise a connection loss always does, and other
        failures do only when retry_all_errors is set and no transaction
        is open.
        """
        if not self.adapter.can_reconnect(self.params):
            return False
        if self.adapter.is_connection_error(exc):
            return True
        return self.retry_all_errors and not self.in_transaction

    async def _timed(self, awaitable: Awaitable[T]) -> T:
        if self.statement_timeout is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, timeout=self.statement_timeout)

    async def _discard_connection(self) -> None:
        """Close the presumed broken connection; failures are logged, not raised."""
        conn, self._conn = self._conn, None
        if conn is None:
            return
        try:
            await self.adapter.disconnect(conn)
        except Exception as exc:
            self._events.error(
                "ending connection failed", error=exc, code=self.adapter.error_code(exc)
            )

    async def _reconnect(self, description: str, sql: str, args: list[Any]) -> None:
        try:
            conn = await self.adapter.connect(self.params, self.connect_timeout)
        except Exception as exc:
            code = self.adapter.error_code(exc)
            self._events.error(
                "reconnecting failed",
                error=exc,
                code=code,
                description=description,
                sql=sql,
                args=args,
            )
            raise ReconnectFailed(code, str(exc)) from exc
        self._conn = conn
        self._events.info(
            "reconnected to database", host=self.params.host, database=self.params.database
        )

    async def _retry(
        self,
        description: str,
        sql: str,
        args: list[Any],
        operation: Callable[[Any], Awaitable[T]],
    ) -> T:
        try:
            return await self._timed(operation(self._conn))
        except Exception as exc:
            code = self.adapter.error_code(exc)
            self._events.error(
                "execution failed after reconnect",
                error=exc,
                code=code,
                description=description,
                sql=sql,
                args=args,
            )
            raise ExecutionFailed(description, sql, args, code, str(exc)) from exc

    # -------------------------------------------------------------------------
    # Transaction control
    # -------------------------------------------------------------------------

    async def begin(self) -> None:
        """Start a transaction, recovering a dead idle connection first if needed."""
        async with self._guard():
            await self._perform("begin", "BEGIN", [], self.adapter.begin)
            self.in_transaction = True
            self._transaction_lost = False

    async def commit(self) -> None:
        """Commit the open transaction. Never retried.

        If the connection was lost during the transaction nothing is sent:
        ExecutionFailed is raised and the transaction stays open until
        rollback() clears it.
        """
        async with self._guard():
            if self._transaction_lost:
                raise ExecutionFailed("commit", "COMMIT", [], None, LOST_IN_TRANSACTION)
            try:
                await self._finish("commit", "COMMIT", self.adapter.commit)
            finally:
                self._end_transaction()

    async def rollback(self) -> None:
        """Rollback the open transaction. Never retried.

        A transaction lost with its connection is only cleared locally.
        """
        async with self._guard():
            try:
                if not self._transaction_lost:
                    await self._finish("rollback", "ROLLBACK", self.adapter.rollback)
            finally:
                self._end_transaction()

    def _end_transaction(self) -> None:
        self.in_transaction = False
        self._transaction_lost = False

    async def _finish(
        self, description: str, sql: str, operation: Callable[[Any], Awaitable[None]]
    ) -> None:
        if not self._opened:
            raise NotConnected()
        if self._conn is None:
            raise ExecutionFailed(description, sql, [], None, LOST_IN_TRANSACTION)
        try:
            await self._timed(operation(self._conn))
        except Exception as exc:
            code = self.adapter.error_code(exc)
            self._events.error(
                f"{description} failed", error=exc, code=code, description=description
            )
            raise ExecutionFailed(description, sql, [], code, str(exc)) from exc


__all__ = ["DbConnection"]
