from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import AuditEntry


class AuditRepository(Protocol):
    def append(self, entry: AuditEntry) -> int:
        """Persist one entry in its own transaction. Returns audit_id."""

        raise NotImplementedError

    def list_recent(self, *, limit: int, actor_id: Optional[int] = None) -> Sequence[AuditEntry]:
        raise NotImplementedError
