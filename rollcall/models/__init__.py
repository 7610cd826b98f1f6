"""Beanie document models and Pydantic schemas."""
from rollcall.models.attendance import (
    AttendanceEntry,
    AttendanceSubmission,
    AttendanceOut,
    AttendanceRow,
)
from rollcall.models.device import DeviceToken, DeviceTokenRequest

__all__ = [
    "AttendanceEntry",
    "AttendanceSubmission",
    "AttendanceOut",
    "AttendanceRow",
    "DeviceToken",
    "DeviceTokenRequest",
]
