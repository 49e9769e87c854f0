"""Campus Attendance package.

This package is organized by feature modules (attendance, escalations, audit,
permissions, ...) with a thin Flask controller layer and service/repository
layers underneath.
"""
