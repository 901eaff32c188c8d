"""
Abstract append-only audit sink.
"""

from abc import ABC, abstractmethod

from linkvault.domain.models import AuditEvent


class AuditSink(ABC):
    """
    Narrow interface for recording audit events.

    Implementations may raise; callers are responsible for swallowing
    failures so auditing never breaks a request.
    """

    @abstractmethod
    async def append(self, event: AuditEvent) -> None:
        """
        Append one event.

        Args:
            event: Event to record
        """
        pass
