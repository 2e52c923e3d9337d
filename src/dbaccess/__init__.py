# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""genro-dbaccess: named-parameter async SQL access with reconnect-once."""

from .config import DbConfig, config_from_env
from .errors import (
    CodeSpaceExhausted,
    DbAccessError,
    ExecutionFailed,
    NotConnected,
    NotFound,
    QueryCancelled,
    ReconnectFailed,
    TransactionAlreadyActive,
)
from .sql import CancelToken, Database, TableSchema

__version__ = "0.1.0"

__all__ = [
    "CancelToken",
    "CodeSpaceExhausted",
    "Database",
    "DbAccessError",
    "DbConfig",
    "ExecutionFailed",
    "NotConnected",
    "NotFound",
    "QueryCancelled",
    "ReconnectFailed",
    "TableSchema",
    "TransactionAlreadyActive",
    "config_from_env",
]
