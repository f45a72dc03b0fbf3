"""Leave Pydantic v2 schemas — request/response validation."""

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from dayflow.common.constants import LeaveStatus, LeaveType
from dayflow.common.pagination import PaginationMeta


# ═════════════════════════════════════════════════════════════════════
# Embedded briefs
# ═════════════════════════════════════════════════════════════════════


class EmployeeBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    login_id: str
    display_name: str
    profile_picture: Optional[str] = None


class ReviewerBrief(BaseModel):
    id: uuid.UUID
    email: str
    display_name: Optional[str] = None


# ═════════════════════════════════════════════════════════════════════
# Balance
# ═════════════════════════════════════════════════════════════════════


class LeaveBalanceOut(BaseModel):
    """Available days per type. ``unpaid_leave`` counts days already taken."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: uuid.UUID
    year: int
    paid_leave: int
    sick_leave: int
    unpaid_leave: int
    pending_paid: int = 0
    pending_sick: int = 0


# ═════════════════════════════════════════════════════════════════════
# Requests
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestCreate(BaseModel):
    leave_type: LeaveType
    start_date: date
    end_date: date
    remarks: Optional[str] = Field(None, max_length=2000)
    attachment_url: Optional[str] = None


class LeaveReviewRequest(BaseModel):
    comment: Optional[str] = Field(None, max_length=2000)


class LeaveRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    leave_type: LeaveType
    start_date: date
    end_date: date
    allocation: int
    remarks: Optional[str] = None
    attachment_url: Optional[str] = None
    status: LeaveStatus
    admin_comment: Optional[str] = None
    reviewed_by: Optional[uuid.UUID] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    employee: Optional[EmployeeBrief] = None
    reviewer: Optional[ReviewerBrief] = None


class LeaveRequestListResponse(BaseModel):
    data: list[LeaveRequestOut]
    meta: PaginationMeta
    pending_count: int = 0


class AttachmentUploadOut(BaseModel):
    attachment_url: str
