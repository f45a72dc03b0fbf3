"""Core HR Pydantic v2 schemas — request/response validation."""

import uuid
from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from dayflow.common.constants import GenderType, PresenceIndicator
from dayflow.common.pagination import PaginationMeta


# ═════════════════════════════════════════════════════════════════════
# Company
# ═════════════════════════════════════════════════════════════════════


class CompanyBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    prefix: str
    logo_url: Optional[str] = None


class AuditEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    action: str
    entity_type: str
    entity_id: uuid.UUID
    actor_id: Optional[uuid.UUID] = None
    old_values: Optional[dict[str, Any]] = None
    new_values: Optional[dict[str, Any]] = None
    created_at: datetime


# ═════════════════════════════════════════════════════════════════════
# Employee — write schemas
# ═════════════════════════════════════════════════════════════════════


class EmployeeCreate(BaseModel):
    """Payload for onboarding an employee; login ID and password are generated."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=20)
    job_position: Optional[str] = Field(None, max_length=150)
    department: Optional[str] = Field(None, max_length=150)
    manager_id: Optional[uuid.UUID] = None
    location: Optional[str] = Field(None, max_length=150)
    date_of_joining: Optional[date] = None


class EmployeeUpdate(BaseModel):
    """Partial-update payload for an employee (all fields optional)."""

    # Admin-only
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    job_position: Optional[str] = Field(None, max_length=150)
    department: Optional[str] = Field(None, max_length=150)
    manager_id: Optional[uuid.UUID] = None
    location: Optional[str] = Field(None, max_length=150)
    date_of_joining: Optional[date] = None

    # Self-service
    phone: Optional[str] = Field(None, max_length=20)
    profile_picture: Optional[str] = None
    about: Optional[str] = None
    what_i_love_about_job: Optional[str] = None
    interests_hobbies: Optional[str] = None
    skills: Optional[list[str]] = None
    certifications: Optional[list[str]] = None
    date_of_birth: Optional[date] = None
    residing_address: Optional[str] = None
    nationality: Optional[str] = Field(None, max_length=50)
    personal_email: Optional[EmailStr] = None
    gender: Optional[GenderType] = None
    bank_name: Optional[str] = Field(None, max_length=150)
    account_number: Optional[str] = Field(None, max_length=50)
    ifsc_code: Optional[str] = Field(None, max_length=20)
    pan_no: Optional[str] = Field(None, max_length=20)
    uan_no: Optional[str] = Field(None, max_length=20)
    emp_code: Optional[str] = Field(None, max_length=50)


class EmployeeCredentials(BaseModel):
    """Returned once, at onboarding; the temporary password is never stored in clear."""

    employee_id: uuid.UUID
    login_id: str
    email: str
    temporary_password: str


# ═════════════════════════════════════════════════════════════════════
# Employee — read schemas
# ═════════════════════════════════════════════════════════════════════


class EmployeeSummary(BaseModel):
    """Minimal employee reference (manager links)."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    login_id: str
    full_name: str
    email: str
    job_position: Optional[str] = None
    profile_picture: Optional[str] = None


class EmployeeListItem(BaseModel):
    """Directory card: identity plus today's presence badge."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    login_id: str
    first_name: str
    last_name: str
    full_name: str
    email: str
    phone: Optional[str] = None
    job_position: Optional[str] = None
    department: Optional[str] = None
    profile_picture: Optional[str] = None
    presence: PresenceIndicator = PresenceIndicator.absent


class EmployeeListResponse(BaseModel):
    data: list[EmployeeListItem]
    meta: PaginationMeta


class EmployeeDetail(BaseModel):
    """Full employee profile — returned by GET /employees/{id}."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    company_id: uuid.UUID
    login_id: str
    first_name: str
    last_name: str
    full_name: str
    email: str
    phone: Optional[str] = None
    profile_picture: Optional[str] = None
    job_position: Optional[str] = None
    department: Optional[str] = None
    manager_id: Optional[uuid.UUID] = None
    location: Optional[str] = None
    date_of_joining: date
    joining_year: int

    # Resume
    about: Optional[str] = None
    what_i_love_about_job: Optional[str] = None
    interests_hobbies: Optional[str] = None
    skills: list[str] = []
    certifications: list[str] = []

    # Private info
    date_of_birth: Optional[date] = None
    residing_address: Optional[str] = None
    nationality: Optional[str] = None
    personal_email: Optional[str] = None
    gender: Optional[GenderType] = None

    # Bank details
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    ifsc_code: Optional[str] = None
    pan_no: Optional[str] = None
    uan_no: Optional[str] = None
    emp_code: Optional[str] = None

    role: Optional[str] = None
    manager: Optional[EmployeeSummary] = None
    company: Optional[CompanyBrief] = None
