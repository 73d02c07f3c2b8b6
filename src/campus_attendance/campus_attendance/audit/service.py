from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import AuditAction
from .model import AuditEntry
from .repository import AuditRepository


class AuditTrail:
    """Append-only audit writer shared by the issuer, validator and services."""

    def __init__(self, audit: AuditRepository):
        self._audit = audit

    def record(
        self,
        *,
        actor_id: Optional[int],
        action: AuditAction,
        target_table: str,
        target_id: Optional[int],
        at: datetime,
        success: bool = True,
        **details,
    ) -> int:
        return self._audit.append(
            AuditEntry(
                actor_id=actor_id,
                action=action,
                target_table=target_table,
                target_id=target_id,
                created_at=at,
                success=success,
                details=details,
            )
        )

    def recent(self, *, limit: int, actor_id: Optional[int] = None) -> Sequence[AuditEntry]:
        return self._audit.list_recent(limit=int(limit), actor_id=actor_id)
