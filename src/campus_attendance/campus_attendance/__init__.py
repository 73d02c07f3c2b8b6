"""Campus Attendance package.

This package is organized by feature modules (sessions, qr, attendance,
analytics, ...) with a thin Flask controller layer and service/repository
layers underneath.
"""
