from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from ..sessions.model import AttendanceSession
from .strategies.base import AttendanceStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.present_strategy import PresentStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def late_window_for(self, session: AttendanceSession, default_minutes: int) -> int:
        if session.late_after_minutes is not None:
            return int(session.late_after_minutes)
        return int(default_minutes)

    def for_scan(self, *, now: datetime, session: AttendanceSession, late_after_minutes: int) -> AttendanceStrategy:
        cutoff = session.scheduled_start + timedelta(minutes=late_after_minutes)
        if now <= cutoff:
            return PresentStrategy()
        return LateStrategy()
