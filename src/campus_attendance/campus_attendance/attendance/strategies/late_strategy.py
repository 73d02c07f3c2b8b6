from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ...sessions.model import AttendanceSession
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Scan after the lateness window; the note records by how much."""

    def decide_scan(self, *, now: datetime, session: AttendanceSession, late_after_minutes: int) -> StatusDecision:
        late_minutes = int((now - session.scheduled_start).total_seconds() // 60)
        return StatusDecision(status=AttendanceStatus.LATE, note=f"Late by {late_minutes} min")
