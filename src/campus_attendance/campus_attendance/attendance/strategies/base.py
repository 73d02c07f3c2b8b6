from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceStatus
from ...sessions.model import AttendanceSession


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    note: Optional[str] = None


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide the status of a scan."""

    @abstractmethod
    def decide_scan(self, *, now: datetime, session: AttendanceSession, late_after_minutes: int) -> StatusDecision:
        raise NotImplementedError
