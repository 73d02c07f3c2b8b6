from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ...sessions.model import AttendanceSession
from .base import AttendanceStrategy, StatusDecision


class PresentStrategy(AttendanceStrategy):
    """Scan within the lateness window."""

    def decide_scan(self, *, now: datetime, session: AttendanceSession, late_after_minutes: int) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)
