"""Semester attendance tracker package.

Organized by feature modules (users, students, attendance, reports, ...)
with a thin Flask controller layer over service/repository layers.
"""
