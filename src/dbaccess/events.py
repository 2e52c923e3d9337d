# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Structured events emitted by the database access layer.

The core never formats log output itself. Every failure and every successful
(re)connection becomes a DbEvent handed to a sink. The default sink forwards
events to the standard logging module, one logger per component
(``dbaccess.connection``, ``dbaccess.database``), with the event context
attached as ``extra`` so handlers and formatters decide the rendering.

Example:
    Collecting events in tests or shipping them elsewhere::

        events: list[DbEvent] = []
        db = Database(config, sink=events.append)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class DbEvent:
    """A single structured log event.

    Attributes:
        level: logging level (logging.INFO, logging.ERROR, ...).
        component: Emitting component ("connection", "database", ...).
        message: Short constant message, no interpolated values.
        context: Diagnostic values (error, code, description, sql, args...).
    """

    level: int
    component: str
    message: str
    context: dict[str, Any] = field(default_factory=dict)


EventSink = Callable[[DbEvent], None]


def logging_sink(event: DbEvent) -> None:
    """Forward an event to ``logging.getLogger("dbaccess.<component>")``."""
    target = logging.getLogger(f"dbaccess.{event.component}")
    exc = event.context.get("error")
    target.log(
        event.level,
        event.message,
        exc_info=exc if isinstance(exc, BaseException) else None,
        extra={"component": event.component, "context": event.context},
    )


class EventEmitter:
    """Emits DbEvents for one component into a sink."""

    def __init__(self, component: str, sink: EventSink | None = None):
        self.component = component
        self.sink: EventSink = sink or logging_sink

    def emit(self, level: int, message: str, **context: Any) -> None:
        self.sink(DbEvent(level, self.component, message, context))

    def info(self, message: str, **context: Any) -> None:
        self.emit(logging.INFO, message, **context)

    def error(
        self, message: str, error: BaseException | None = None, code: Any = None, **context: Any
    ) -> None:
        """Emit an error event in the ``(prefix, error, code, ...context)`` shape."""
        self.emit(logging.ERROR, message, error=error, code=code, **context)


__all__ = ["DbEvent", "EventEmitter", "EventSink", "logging_sink"]
