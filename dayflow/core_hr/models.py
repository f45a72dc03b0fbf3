"""Core HR ORM models: Company, Employee, JoiningSequence.

SQLAlchemy 2.0 async-compatible models with Mapped[] annotations.
Column names match the PostgreSQL schema defined in 001_initial_schema.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dayflow.common.constants import GenderType
from dayflow.database import Base

if TYPE_CHECKING:
    from dayflow.attendance.models import AttendanceRecord
    from dayflow.auth.models import User
    from dayflow.leave.models import LeaveBalance, LeaveRequest
    from dayflow.salary.models import SalaryInfo


# ═════════════════════════════════════════════════════════════════════
# Company (tenant)
# ═════════════════════════════════════════════════════════════════════


class Company(Base):
    """Tenant: every employee, user and audit entry belongs to one company."""

    __tablename__ = "companies"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    prefix: Mapped[str] = mapped_column(sa.String(10), unique=True, nullable=False)
    logo_url: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(),
    )

    # ── Relationships ───────────────────────────────────────────────
    employees: Mapped[list[Employee]] = relationship(back_populates="company")

    def __repr__(self) -> str:
        return f"<Company {self.name!r} ({self.prefix})>"


# ═════════════════════════════════════════════════════════════════════
# Joining sequence (per company, per year)
# ═════════════════════════════════════════════════════════════════════


class JoiningSequence(Base):
    """Last serial handed out for a (company, joining year) pair."""

    __tablename__ = "joining_sequences"
    __table_args__ = (
        sa.UniqueConstraint("company_id", "year", name="uq_joining_seq_company_year"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
    )
    year: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    last_serial: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<JoiningSequence {self.company_id} {self.year}={self.last_serial}>"


# ═════════════════════════════════════════════════════════════════════
# Employee
# ═════════════════════════════════════════════════════════════════════


class Employee(Base):
    """Core employee record — central entity for the HR platform."""

    __tablename__ = "employees"

    # ── Primary key ─────────────────────────────────────────────────
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # ── Tenant / account ────────────────────────────────────────────
    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="SET NULL"),
        unique=True,
    )

    # ── Identifiers ─────────────────────────────────────────────────
    login_id: Mapped[str] = mapped_column(
        sa.String(50), unique=True, nullable=False,
    )
    joining_year: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    joining_serial: Mapped[Optional[int]] = mapped_column(sa.Integer)

    # ── Name / contact ──────────────────────────────────────────────
    first_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    email: Mapped[str] = mapped_column(
        sa.String(255), unique=True, nullable=False,
    )
    phone: Mapped[Optional[str]] = mapped_column(sa.String(20))
    profile_picture: Mapped[Optional[str]] = mapped_column(sa.Text)

    # ── Job ─────────────────────────────────────────────────────────
    job_position: Mapped[Optional[str]] = mapped_column(sa.String(150))
    department: Mapped[Optional[str]] = mapped_column(sa.String(150))
    manager_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", ondelete="SET NULL"),
    )
    location: Mapped[Optional[str]] = mapped_column(sa.String(150))
    date_of_joining: Mapped[date] = mapped_column(sa.Date, nullable=False)

    # ── Private info ────────────────────────────────────────────────
    date_of_birth: Mapped[Optional[date]] = mapped_column(sa.Date)
    residing_address: Mapped[Optional[str]] = mapped_column(sa.Text)
    nationality: Mapped[Optional[str]] = mapped_column(sa.String(50))
    personal_email: Mapped[Optional[str]] = mapped_column(sa.String(255))
    gender: Mapped[Optional[GenderType]] = mapped_column(
        sa.Enum(GenderType, name="gender_type", create_type=False),
    )

    # ── Resume ──────────────────────────────────────────────────────
    about: Mapped[Optional[str]] = mapped_column(sa.Text)
    what_i_love_about_job: Mapped[Optional[str]] = mapped_column(sa.Text)
    interests_hobbies: Mapped[Optional[str]] = mapped_column(sa.Text)
    skills: Mapped[Optional[list]] = mapped_column(JSONB, default=list)
    certifications: Mapped[Optional[list]] = mapped_column(JSONB, default=list)

    # ── Bank details ────────────────────────────────────────────────
    bank_name: Mapped[Optional[str]] = mapped_column(sa.String(150))
    account_number: Mapped[Optional[str]] = mapped_column(sa.String(50))
    ifsc_code: Mapped[Optional[str]] = mapped_column(sa.String(20))
    pan_no: Mapped[Optional[str]] = mapped_column(sa.String(20))
    uan_no: Mapped[Optional[str]] = mapped_column(sa.String(20))
    emp_code: Mapped[Optional[str]] = mapped_column(sa.String(50))

    # ── Timestamps ──────────────────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(),
    )

    # ── Relationships ───────────────────────────────────────────────
    company: Mapped[Company] = relationship(back_populates="employees")
    user: Mapped[Optional["User"]] = relationship(back_populates="employee")
    manager: Mapped[Optional[Employee]] = relationship(
        remote_side=[id], foreign_keys=[manager_id],
    )

    attendance_records: Mapped[list["AttendanceRecord"]] = relationship(
        back_populates="employee",
    )
    leave_balances: Mapped[list["LeaveBalance"]] = relationship(
        back_populates="employee",
    )
    leave_requests: Mapped[list["LeaveRequest"]] = relationship(
        back_populates="employee",
        foreign_keys="LeaveRequest.employee_id",
    )
    salary_info: Mapped[Optional["SalaryInfo"]] = relationship(
        back_populates="employee",
    )

    # ── Helpers ─────────────────────────────────────────────────────

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return (
            f"<Employee {self.login_id} "
            f"{self.first_name} {self.last_name}>"
        )
