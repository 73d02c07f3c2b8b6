from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import AuditAction


@dataclass(frozen=True)
class AuditEntry:
    """Immutable audit log line: who did what to which row, and when."""

    actor_id: Optional[int]
    action: AuditAction
    target_table: str
    target_id: Optional[int]
    created_at: datetime
    success: bool = True
    details: dict = field(default_factory=dict)
    audit_id: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "auditId": self.audit_id,
            "actorId": self.actor_id,
            "action": self.action.value,
            "targetTable": self.target_table,
            "targetId": self.target_id,
            "success": self.success,
            "details": dict(self.details),
            "createdAt": self.created_at.isoformat(),
        }
