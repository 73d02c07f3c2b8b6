from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

from ..attendance.model import AttendanceRecord, AttendanceSummary, CohortRecordRow
from ..attendance.repository import AttendanceRepository, SummaryRepository
from ..attendance.summary import attendance_percentage, compute_summary, standing_for
from ..core.constants import DEFAULT_SHORTAGE_THRESHOLD
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class CohortFilter:
    department: Optional[str] = None
    semester: Optional[int] = None
    subject: Optional[str] = None
    start: Optional[date] = None
    end: Optional[date] = None

    def __post_init__(self):
        if self.start and self.end and self.start > self.end:
            raise ValidationError("start must not be after end")


@dataclass(frozen=True)
class UserReport:
    records: list[AttendanceRecord]
    summary: AttendanceSummary


@dataclass(frozen=True)
class CohortReport:
    aggregate: dict
    users: list[dict]
    below_threshold: list[dict]
    threshold: int


class AnalyticsAggregator:
    """Read-only statistics. Never writes the summary cache."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        summaries: SummaryRepository,
        *,
        shortage_threshold: int = DEFAULT_SHORTAGE_THRESHOLD,
    ):
        self._attendance = attendance
        self._summaries = summaries
        self._threshold = int(shortage_threshold)

    def summarize_user(
        self,
        user_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        use_cache: bool = True,
    ) -> AttendanceSummary:
        if start is None and end is None and use_cache:
            cached = self._summaries.get(int(user_id))
            if cached:
                return cached
        records = self._attendance.list_for_user(int(user_id), start=start, end=end)
        return compute_summary(user_id, records)

    def user_report(self, user_id: int, *, start: Optional[date] = None, end: Optional[date] = None) -> UserReport:
        records = list(self._attendance.list_for_user(int(user_id), start=start, end=end))
        if start is None and end is None:
            summary = self.summarize_user(user_id)
        else:
            summary = compute_summary(user_id, records)
        return UserReport(records=records, summary=summary)

    def cohort_rows(self, cohort: CohortFilter) -> Sequence[CohortRecordRow]:
        return self._attendance.get_cohort_rows(
            start=cohort.start,
            end=cohort.end,
            department=cohort.department,
            semester=cohort.semester,
            subject=cohort.subject,
        )

    def summarize_cohort(self, cohort: CohortFilter, *, threshold: Optional[int] = None) -> CohortReport:
        threshold = self._threshold if threshold is None else int(threshold)
        if not 0 <= threshold <= 100:
            raise ValidationError("threshold must be between 0 and 100")

        rows = self.cohort_rows(cohort)

        per_user: dict[int, dict] = {}
        totals = {status: 0 for status in AttendanceStatus}
        for r in rows:
            totals[r.status] += 1
            u = per_user.get(r.user_id)
            if not u:
                u = {
                    "userId": r.user_id,
                    "fullName": r.full_name,
                    "department": r.department,
                    "semester": r.semester,
                    "counts": {status: 0 for status in AttendanceStatus},
                }
                per_user[r.user_id] = u
            u["counts"][r.status] += 1

        users = [self._stats_row(u) for u in per_user.values()]
        users.sort(key=lambda x: (x["percentage"], x["userId"]))
        below = [u for u in users if u["percentage"] < threshold]

        aggregate = self._shape(totals)
        aggregate["users"] = len(users)
        return CohortReport(aggregate=aggregate, users=users, below_threshold=below, threshold=threshold)

    @staticmethod
    def _shape(counts: dict) -> dict:
        total = sum(counts.values())
        present = counts[AttendanceStatus.PRESENT]
        percentage = attendance_percentage(present, total)
        return {
            "total": total,
            "present": present,
            "late": counts[AttendanceStatus.LATE],
            "absent": counts[AttendanceStatus.ABSENT],
            "percentage": percentage,
            "standing": standing_for(percentage).value,
        }

    def _stats_row(self, u: dict) -> dict:
        row = {
            "userId": u["userId"],
            "fullName": u["fullName"],
            "department": u["department"],
            "semester": u["semester"],
        }
        row.update(self._shape(u["counts"]))
        return row

    def export_rows(self, cohort: CohortFilter) -> list[dict]:
        return [
            {
                "marked_at": r.marked_at.strftime("%Y-%m-%d %H:%M:%S"),
                "user_id": r.user_id,
                "full_name": r.full_name,
                "department": r.department or "-",
                "semester": r.semester if r.semester is not None else "-",
                "session_id": r.session_id,
                "subject": r.subject,
                "status": r.status.value,
                "geofence_verified": "yes" if r.geofence_verified else "no",
                "note": r.note or "",
            }
            for r in self.cohort_rows(cohort)
        ]
