"""
Audit sinks that write to the application log or a JSON Lines file.
"""

import asyncio
import json
from pathlib import Path

from loguru import logger

from linkvault.domain.models import AuditEvent
from linkvault.infrastructure.repositories.audit_sink import AuditSink


class LogAuditSink(AuditSink):
    """Emits each event as a structured loguru record."""

    async def append(self, event: AuditEvent) -> None:
        logger.bind(audit_event=event.to_dict()).info(
            f"AUDIT {event.action} user={event.user_id} "
            f"resource={event.resource_type}:{event.resource_id or '-'}"
        )


class FileAuditSink(AuditSink):
    """
    Appends events to a JSON Lines file.

    Each line is one ``AuditEvent.to_dict()`` payload.
    """

    def __init__(self, path: str = "./.credentials/audit.jsonl"):
        """
        Initialize the file sink.

        Args:
            path: JSONL file to append to
        """
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()

        logger.info(f"Initialized FileAuditSink at {self.path}")

    async def append(self, event: AuditEvent) -> None:
        line = json.dumps(event.to_dict(), separators=(",", ":"))
        async with self._lock:
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")
