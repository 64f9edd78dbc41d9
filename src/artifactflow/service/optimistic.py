"""Snapshot, mutate, persist, restore-on-failure."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, TypeVar

from artifactflow.storage.repository import PersistenceError

S = TypeVar("S")

_logger = logging.getLogger("artifactflow.optimistic")


class Snapshottable(Protocol[S]):
    def snapshot(self) -> S: ...

    def restore(self, snapshot: S) -> None: ...


async def optimistic_update(
    target: Snapshottable[Any],
    mutate: Callable[[], None],
    persist: Callable[[], Awaitable[object]],
    logger: logging.Logger | None = None,
) -> bool:
    """Apply ``mutate`` to ``target`` immediately, then await ``persist``.

    If persisting raises :class:`PersistenceError` the snapshot taken before
    the mutation is restored verbatim and False is returned.  Cancellation
    also restores the snapshot before propagating.
    """
    log = logger or _logger
    snapshot = target.snapshot()
    try:
        mutate()
        await persist()
    except PersistenceError as exc:
        target.restore(snapshot)
        log.error("Persist failed, optimistic update rolled back: %s", exc)
        return False
    except (asyncio.CancelledError, Exception):
        target.restore(snapshot)
        raise
    return True
