"""Attendance Pydantic v2 schemas."""

import uuid
from datetime import date, time
from typing import Optional

from pydantic import BaseModel, ConfigDict

from dayflow.common.constants import AttendanceState, AttendanceStatus, AttendanceView


class EmployeeBrief(BaseModel):
    id: uuid.UUID
    login_id: str
    display_name: str
    department: Optional[str] = None
    profile_picture: Optional[str] = None


class AttendanceRecordOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    date: date
    check_in: Optional[time] = None
    check_out: Optional[time] = None
    work_hours: float = 0
    extra_hours: float = 0
    status: AttendanceStatus
    employee: Optional[EmployeeBrief] = None


class TodayStateOut(BaseModel):
    """Which action the check-in/out button offers right now."""

    date: date
    state: AttendanceState
    record: Optional[AttendanceRecordOut] = None


class AttendanceRangeOut(BaseModel):
    """A day or month of records plus navigation anchors."""

    view: AttendanceView
    start_date: date
    end_date: date
    previous: date
    next: date
    data: list[AttendanceRecordOut]
    total_work_hours: float = 0
    total_extra_hours: float = 0
