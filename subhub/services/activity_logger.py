"""Best-effort audit logging."""

from __future__ import annotations

import asyncio
import logging

from ..domain.models import ActivityRecord
from ..domain.ports.persistence import ActivityStore
from .background import DetachedTasks

logger = logging.getLogger(__name__)


class ActivityLogger:
    """Sends activity records to the audit store without blocking the caller.

    ``record`` returns immediately; the write runs as a detached task and
    any failure is logged and discarded.
    """

    def __init__(self, store: ActivityStore, tasks: DetachedTasks) -> None:
        self._store = store
        self._tasks = tasks

    def record(self, event: ActivityRecord) -> None:
        try:
            self._tasks.spawn(self._write(event), name=f"activity:{event.action}")
        except RuntimeError as exc:
            # No running event loop.
            logger.warning("Unable to schedule activity %s: %s", event.action, exc)

    async def _write(self, event: ActivityRecord) -> None:
        try:
            await asyncio.to_thread(self._store.append, event)
        except Exception as exc:
            logger.warning("Failed to log activity %s: %s", event.action, exc)
