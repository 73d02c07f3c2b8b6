from __future__ import annotations

import csv
import io

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_optional_date
from ..common.validators import require_int
from ..container import Container
from .service import CohortFilter

EXPORT_FIELDS = [
    "marked_at",
    "user_id",
    "full_name",
    "department",
    "semester",
    "session_id",
    "subject",
    "status",
    "geofence_verified",
    "note",
]


def register(app: Flask, container: Container) -> None:
    def _cohort_from_args() -> CohortFilter:
        semester = request.args.get("semester")
        return CohortFilter(
            department=(request.args.get("department") or "").strip() or None,
            semester=require_int(semester, "semester") if semester else None,
            subject=(request.args.get("subject") or "").strip() or None,
            start=parse_optional_date(request.args.get("start")),
            end=parse_optional_date(request.args.get("end")),
        )

    def _write_report_csv(*, rows: list[dict], filename: str):
        """Write export rows to a CSV response (BOM so spreadsheets pick up UTF-8)."""
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=EXPORT_FIELDS)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)

        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/analytics/attendance", methods=["GET"], endpoint="cohort_analytics")
    def cohort_analytics():
        threshold = request.args.get("threshold")
        report = container.analytics.summarize_cohort(
            _cohort_from_args(),
            threshold=require_int(threshold, "threshold") if threshold else None,
        )
        return jsonify(
            {
                "aggregate": report.aggregate,
                "users": report.users,
                "belowThreshold": report.below_threshold,
                "threshold": report.threshold,
            }
        )

    @app.route("/analytics/attendance.csv", methods=["GET"], endpoint="cohort_export")
    def cohort_export():
        cohort = _cohort_from_args()
        rows = container.analytics.export_rows(cohort)
        start = cohort.start.isoformat() if cohort.start else "all"
        end = cohort.end.isoformat() if cohort.end else "all"
        return _write_report_csv(rows=rows, filename=f"attendance_{start}_{end}.csv")
