# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Cooperative cancellation for in-flight statements."""

from __future__ import annotations

import asyncio

from ..errors import QueryCancelled


class CancelToken:
    """Flag a caller sets to abandon a statement.

    The network round-trip is not interrupted. A token cancelled before the
    statement starts prevents it from running, a token cancelled while it
    runs makes the late result be discarded. Both cases raise QueryCancelled.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        """Wait until the token is cancelled."""
        await self._event.wait()

    def raise_if_cancelled(self, description: str) -> None:
        if self._event.is_set():
            raise QueryCancelled(description)


__all__ = ["CancelToken"]
