# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Named parameter rewriting for SQL templates.

Templates use ``:name`` placeholders where name is one or more letters,
digits or underscores. Drivers bind positionally, so every occurrence is
replaced left to right by whatever the callback returns and the caller
collects the values in the same order.

Every match is an occurrence: in ``value::int`` the second colon starts a
placeholder named ``int``. Drivers whose dialect has ``::type`` casts pass
``skip_casts=True``, which ignores a colon preceded by another colon. A
bare colon that is not followed by a word character is copied literally.

Example:
    ::

        sql, args = bind_parameters(
            "SELECT * FROM users WHERE id = :id OR parent = :id",
            {"id": 7},
            "qmark",
        )
        # sql  -> "SELECT * FROM users WHERE id = ? OR parent = ?"
        # args -> [7, 7]
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from typing import Any

ParameterCallback = Callable[[str, Any], str]

PARAMETER_PATTERN = re.compile(r":([A-Za-z0-9_]+)")

# Same grammar, but ``::type`` casts are left alone
CAST_SAFE_PATTERN = re.compile(r"(?<!:):([A-Za-z0-9_]+)")

PARAMSTYLES = ("qmark", "format", "numeric")


def _pattern(skip_casts: bool) -> re.Pattern[str]:
    return CAST_SAFE_PATTERN if skip_casts else PARAMETER_PATTERN


def find_parameters(sql: str, *, skip_casts: bool = False) -> list[str]:
    """Return placeholder names in occurrence order (repeats included)."""
    return [match.group(1) for match in _pattern(skip_casts).finditer(sql)]


def process_sql_parameters(
    sql: str,
    values: Mapping[str, Any] | None,
    callback: ParameterCallback,
    *,
    skip_casts: bool = False,
) -> str:
    """Replace every placeholder occurrence with the callback's return value.

    The callback receives the placeholder name and its value from ``values``
    (None when the name is missing) and returns the replacement text. It is
    invoked once per occurrence, left to right. No completeness check is made
    in either direction: unused values and missing names are both allowed.

    Args:
        sql: SQL template.
        values: Parameter bag keyed by placeholder name.
        callback: Called as ``callback(name, value)`` for each occurrence.
        skip_casts: Do not treat ``::type`` as a placeholder.

    Returns:
        The rewritten SQL statement.
    """
    values = values or {}
    start = 0
    parts: list[str] = []
    for match in _pattern(skip_casts).finditer(sql):
        name = match.group(1)
        parts.append(sql[start : match.start()])
        parts.append(callback(name, values.get(name)))
        start = match.end()
    if not parts:
        return sql
    parts.append(sql[start:])
    return "".join(parts)


def bind_parameters(
    sql: str,
    values: Mapping[str, Any] | None,
    paramstyle: str = "qmark",
    *,
    skip_casts: bool = False,
) -> tuple[str, list[Any]]:
    """Rewrite a named template into positional SQL plus its argument list.

    Args:
        sql: SQL template with ``:name`` placeholders.
        values: Parameter bag.
        paramstyle: ``qmark`` (``?``), ``format`` (``%s``) or ``numeric`` (``$1``).
        skip_casts: Leave ``::type`` casts untouched.

    Returns:
        Tuple of rewritten SQL and positional arguments.

    Raises:
        ValueError: If paramstyle is not supported.
    """
    if paramstyle not in PARAMSTYLES:
        raise ValueError(f"Unsupported paramstyle: '{paramstyle}'. Supported: {', '.join(PARAMSTYLES)}")

    if paramstyle == "format":
        # pyformat drivers treat a lone % as a conversion marker
        sql = sql.replace("%", "%%")

    args: list[Any] = []

    def collect(name: str, value: Any) -> str:
        args.append(value)
        if paramstyle == "qmark":
            return "?"
        if paramstyle == "format":
            return "%s"
        return f"${len(args)}"

    return process_sql_parameters(sql, values, collect, skip_casts=skip_casts), args


__all__ = [
    "CAST_SAFE_PATTERN",
    "PARAMETER_PATTERN",
    "PARAMSTYLES",
    "ParameterCallback",
    "bind_parameters",
    "find_parameters",
    "process_sql_parameters",
]
