"""Example: drive the service layer directly, without Flask.

Controllers are thin; every rule lives in the services wired by the container.
Needs a database prepared with scripts/init_db.py and scripts/seed_db.py.
"""

import importlib
from datetime import timedelta

from config import get_settings_module

from src.campus_attendance.campus_attendance.common.datetime_utils import now_utc
from src.campus_attendance.campus_attendance.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, settings=settings)

    session = container.session_service.create_session(
        faculty_id=10,
        subject="Data Structures",
        scheduled_start=now_utc(),
        scheduled_end=now_utc() + timedelta(hours=1),
    )
    issued = container.qr_issuer.issue_token(session.session_id, 10, expiry_minutes=15)
    record = container.attendance_validator.validate(issued.token, 100)
    print(record.to_dict())
    print(container.session_service.session_stats(session.session_id).to_dict())


if __name__ == "__main__":
    main()
