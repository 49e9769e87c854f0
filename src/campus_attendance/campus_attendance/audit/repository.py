from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import AuditLogEntry, AuditQuery, NewAuditLogEntry


class AuditRepository(Protocol):
    """Append-only: there is deliberately no update or delete."""

    def append(self, entry: NewAuditLogEntry) -> int:
        raise NotImplementedError

    def get_by_id(self, entry_id: int) -> Optional[AuditLogEntry]:
        raise NotImplementedError

    def list(self, query: AuditQuery) -> Sequence[AuditLogEntry]:
        """Newest first."""

        raise NotImplementedError
