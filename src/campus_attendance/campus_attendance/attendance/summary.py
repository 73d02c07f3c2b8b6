from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from ..core.enums import AttendanceStatus, Standing
from .model import AttendanceRecord, AttendanceSummary, SessionStats
from .repository import AttendanceRepository, SummaryRepository


def attendance_percentage(attended: int, total: int) -> int:
    """round(attended / total * 100), half up; 0 when total is 0."""
    if total <= 0:
        return 0
    return (attended * 200 + total) // (2 * total)


def standing_for(percentage: int) -> Standing:
    if percentage < 50:
        return Standing.CRITICAL
    if percentage < 70:
        return Standing.WARNING
    if percentage < 85:
        return Standing.GOOD
    return Standing.EXCELLENT


def _count(statuses: Iterable[AttendanceStatus]) -> dict[AttendanceStatus, int]:
    counts = {status: 0 for status in AttendanceStatus}
    for status in statuses:
        counts[status] += 1
    return counts


def compute_summary(
    user_id: int,
    records: Iterable[AttendanceRecord],
    *,
    updated_at: Optional[datetime] = None,
) -> AttendanceSummary:
    statuses = [r.status for r in records]
    counts = _count(statuses)
    total = len(statuses)
    percentage = attendance_percentage(counts[AttendanceStatus.PRESENT], total)
    return AttendanceSummary(
        user_id=int(user_id),
        total=total,
        present=counts[AttendanceStatus.PRESENT],
        late=counts[AttendanceStatus.LATE],
        absent=counts[AttendanceStatus.ABSENT],
        percentage=percentage,
        standing=standing_for(percentage),
        updated_at=updated_at,
    )


def compute_session_stats(session_id: int, records: Iterable[AttendanceRecord]) -> SessionStats:
    """Per-session counts; late scans count as attended here."""
    statuses = [r.status for r in records]
    counts = _count(statuses)
    total = len(statuses)
    attended = counts[AttendanceStatus.PRESENT] + counts[AttendanceStatus.LATE]
    return SessionStats(
        session_id=int(session_id),
        total=total,
        present=counts[AttendanceStatus.PRESENT],
        late=counts[AttendanceStatus.LATE],
        absent=counts[AttendanceStatus.ABSENT],
        percentage=attendance_percentage(attended, total),
    )


class SummaryRecorder:
    """Rebuilds a user's cached summary from the full record set.

    Always recomputed from source, never incremented. Writers call
    invalidate() before touching a user's records and recompute() after, so
    a failure in between leaves no cache and readers fall back to the records.
    """

    def __init__(self, attendance: AttendanceRepository, summaries: SummaryRepository):
        self._attendance = attendance
        self._summaries = summaries

    def invalidate(self, user_id: int) -> None:
        self._summaries.invalidate(int(user_id))

    def recompute(self, user_id: int, *, at: datetime) -> AttendanceSummary:
        records = self._attendance.list_for_user(int(user_id))
        summary = compute_summary(user_id, records, updated_at=at)
        self._summaries.upsert(summary)
        return summary
