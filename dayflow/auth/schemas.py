"""Auth Pydantic schemas for request / response validation."""


import uuid
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


# ── Requests ────────────────────────────────────────────────────────

class SignUpRequest(BaseModel):
    company_name: str = Field(..., min_length=1, max_length=200)
    company_prefix: Optional[str] = Field(
        None, min_length=2, max_length=2, pattern=r"^[A-Za-z]{2}$",
    )
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=1)
    logo_url: Optional[str] = None


class SignInRequest(BaseModel):
    """``identifier`` is either an email address or a login ID."""

    identifier: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


# ── Embedded / Shared ──────────────────────────────────────────────

class CompanyInfo(BaseModel):
    id: uuid.UUID
    name: str
    prefix: str
    logo_url: Optional[str] = None


class UserInfo(BaseModel):
    id: uuid.UUID
    employee_id: uuid.UUID
    login_id: str
    display_name: str
    email: str
    role: str
    must_change_password: bool = False
    profile_picture: Optional[str] = None
    company: CompanyInfo


# ── Responses ───────────────────────────────────────────────────────

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    redirect_to: str
    user: UserInfo


class MeResponse(UserInfo):
    permissions: list[str]
