# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Exception hierarchy for the database access layer.

All errors derive from DbAccessError so callers can catch the whole family
with a single except clause. Driver exceptions are never swallowed: they are
chained as ``__cause__`` of the error raised here.

Hierarchy:
    DbAccessError
        NotConnected: no live connection when a statement is attempted.
        ExecutionFailed: the driver rejected the statement.
        ReconnectFailed: a lost connection could not be re-established.
        NotFound: an ``*_or_fail`` accessor found no row or field.
        TransactionAlreadyActive: transaction() called inside a transaction.
        CodeSpaceExhausted: get_unique_code() ran out of attempts.
        QueryCancelled: the caller cancelled the statement via CancelToken.
"""

from __future__ import annotations

from typing import Any


class DbAccessError(Exception):
    """Base class for all database access errors."""


class NotConnected(DbAccessError):
    """Raised when a statement is attempted before open() or after close()."""

    def __init__(self, message: str = "There is no connection to the database."):
        super().__init__(message)


class ExecutionFailed(DbAccessError):
    """Raised when the driver rejects a statement.

    Carries the full diagnostic context: description of the operation,
    the rewritten SQL, the positional arguments and the driver error code.
    """

    def __init__(
        self,
        description: str,
        sql: str,
        args: Any = None,
        code: Any = None,
        reason: str | None = None,
    ):
        self.description = description
        self.sql = sql
        self.arguments = args
        self.code = code
        msg = f"{description} failed"
        if code is not None:
            msg += f" [{code}]"
        if reason:
            msg += f": {reason}"
        msg += f" (sql={sql!r}, args={args!r})"
        super().__init__(msg)


class ReconnectFailed(DbAccessError):
    """Raised when the connection could not be re-established."""

    def __init__(self, code: Any = None, reason: str | None = None):
        self.code = code
        msg = "Reconnecting to the database failed"
        if code is not None:
            msg += f" [{code}]"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class NotFound(DbAccessError):
    """Raised by the ``*_or_fail`` accessors when the query returned nothing."""

    def __init__(self, what: str, sql: str, params: Any = None):
        self.sql = sql
        self.params = params
        super().__init__(f"no {what} for query {sql!r} with params={params!r}")


class TransactionAlreadyActive(DbAccessError):
    """Raised when transaction() is called while one is open in the same task."""

    def __init__(self) -> None:
        super().__init__("A transaction is already active on this connection")


class CodeSpaceExhausted(DbAccessError):
    """Raised when no unused code was found within the attempt ceiling."""

    def __init__(self, table: str, column: str, length: int, attempts: int):
        self.table = table
        self.column = column
        self.length = length
        self.attempts = attempts
        super().__init__(
            f"No unique code of length {length} for {table}.{column} "
            f"after {attempts} attempts"
        )


class QueryCancelled(DbAccessError):
    """Raised when a statement was cancelled through its CancelToken."""

    def __init__(self, description: str):
        self.description = description
        super().__init__(f"{description} was cancelled")


__all__ = [
    "CodeSpaceExhausted",
    "DbAccessError",
    "ExecutionFailed",
    "NotConnected",
    "NotFound",
    "QueryCancelled",
    "ReconnectFailed",
    "TransactionAlreadyActive",
]
