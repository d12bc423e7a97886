"""Attendance-based payroll calculation, adjustment and finalization."""

__version__ = "0.1.0"
