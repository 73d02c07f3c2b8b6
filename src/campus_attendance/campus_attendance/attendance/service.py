from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from ..audit.service import AuditTrail
from ..common.datetime_utils import now_utc
from ..common.validators import optional_text
from ..core.constants import MAX_TEXT_LENGTH
from ..core.enums import AttendanceStatus, AuditAction, Role
from ..core.exceptions import NotFound, ValidationError
from ..users.service import UserService
from .model import AttendanceRecord
from .repository import AttendanceRepository
from .summary import SummaryRecorder

logger = logging.getLogger(__name__)


class AttendanceService:
    """Admin corrections. The summary cache is dropped before each change and rebuilt after."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        summaries: SummaryRecorder,
        users: UserService,
        audit: AuditTrail,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._attendance = attendance
        self._summaries = summaries
        self._users = users
        self._audit = audit
        self._clock = clock

    @staticmethod
    def parse_status(value) -> AttendanceStatus:
        try:
            return AttendanceStatus(str(value or "").strip().lower())
        except ValueError:
            allowed = ", ".join(s.value for s in AttendanceStatus)
            raise ValidationError(f"status must be one of: {allowed}")

    def _get_record(self, record_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(int(record_id))
        if not record:
            raise NotFound("Attendance record not found")
        return record

    def override_status(
        self,
        *,
        record_id: int,
        admin_id: int,
        status: AttendanceStatus,
        note: Optional[str] = None,
    ) -> AttendanceRecord:
        self._users.require_role(admin_id, Role.ADMIN)
        note = optional_text(note, "note", max_length=MAX_TEXT_LENGTH)
        record = self._get_record(record_id)
        now = self._clock()

        self._summaries.invalidate(record.user_id)
        if not self._attendance.update_status(record_id=record.record_id, status=status, note=note or record.note):
            raise NotFound("Attendance record not found")

        self._audit.record(
            actor_id=int(admin_id),
            action=AuditAction.ATTENDANCE_OVERRIDDEN,
            target_table="attendance_records",
            target_id=record.record_id,
            at=now,
            user_id=record.user_id,
            old_status=record.status.value,
            new_status=status.value,
        )
        self._summaries.recompute(record.user_id, at=now)
        logger.info(
            "Admin %s changed record %s: %s -> %s",
            admin_id,
            record.record_id,
            record.status.value,
            status.value,
        )
        return self._get_record(record.record_id)

    def delete_record(self, *, record_id: int, admin_id: int) -> None:
        self._users.require_role(admin_id, Role.ADMIN)
        record = self._get_record(record_id)
        now = self._clock()

        self._summaries.invalidate(record.user_id)
        if not self._attendance.delete(record_id=record.record_id):
            raise NotFound("Attendance record not found")

        self._audit.record(
            actor_id=int(admin_id),
            action=AuditAction.ATTENDANCE_DELETED,
            target_table="attendance_records",
            target_id=record.record_id,
            at=now,
            user_id=record.user_id,
            session_id=record.session_id,
            old_status=record.status.value,
        )
        self._summaries.recompute(record.user_id, at=now)
        logger.info("Admin %s deleted record %s (user %s)", admin_id, record.record_id, record.user_id)
