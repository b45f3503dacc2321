"""Attendance Engine package.

Organized by feature modules (schedules, attendance, reports, workflows, ...)
with a thin Flask controller layer over service/repository layers.
"""
