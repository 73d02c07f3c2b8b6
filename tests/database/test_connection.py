from __future__ import annotations

import mysql.connector
from mysql.connector.constants import ClientFlag

from src.campus_attendance.campus_attendance.database.connection import DBConfig, DatabaseConnection


def test_connect_counts_matched_rows(monkeypatch):
    captured = {}

    def fake_connect(**kwargs):
        captured.update(kwargs)
        return object()

    monkeypatch.setattr(mysql.connector, "connect", fake_connect)

    DatabaseConnection(DBConfig.from_dict({"host": "db", "database": "campus_attendance"})).connect()

    assert ClientFlag.FOUND_ROWS in captured["client_flags"]
    assert captured["host"] == "db"
    assert captured["connection_timeout"] == 5
