"""
Audit events emitted after each aggregated fetch.

Recording is fire-and-forget: a failing sink is logged and never affects
the fetch that produced the event.
"""

import asyncio
import logging
from typing import Optional, Protocol, Set

from ..models.schemas import AuditEvent

logger = logging.getLogger(__name__)


class AuditSink(Protocol):
    async def record(self, event: AuditEvent) -> None:
        ...


class LoggingAuditSink:
    """Writes each event as a structured log record."""

    def __init__(self, logger_name: str = "news_pipeline.audit"):
        self._logger = logging.getLogger(logger_name)

    async def record(self, event: AuditEvent) -> None:
        self._logger.info(
            "%s: %s", event.decision, event.rationale,
            extra={"audit_event": event.model_dump()},
        )


class AuditDispatcher:
    """Schedules sink writes in the background and keeps their tasks alive."""

    def __init__(self, sink: Optional[AuditSink] = None):
        self.sink = sink if sink is not None else LoggingAuditSink()
        self._pending: Set[asyncio.Task] = set()

    def emit(self, event: AuditEvent) -> None:
        task = asyncio.create_task(self._record(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _record(self, event: AuditEvent) -> None:
        try:
            await self.sink.record(event)
        except Exception as e:
            logger.warning(f"Failed to record audit event {event.session_id}: {e}")

    async def drain(self) -> None:
        """Wait for outstanding writes; used on shutdown and in tests."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
