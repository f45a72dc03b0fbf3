"""Leave ORM models: LeaveBalance, LeaveRequest."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dayflow.common.constants import LeaveStatus, LeaveType
from dayflow.database import Base

if TYPE_CHECKING:
    from dayflow.auth.models import User
    from dayflow.core_hr.models import Employee


class LeaveBalance(Base):
    """Remaining paid/sick days and used unpaid days for one employee-year."""

    __tablename__ = "leave_balances"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "year", name="uq_leave_balance"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    year: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    paid_leave: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    sick_leave: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    unpaid_leave: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    employee: Mapped["Employee"] = relationship(back_populates="leave_balances")

    def days_for(self, leave_type: LeaveType) -> int:
        return {
            LeaveType.paid: self.paid_leave,
            LeaveType.sick: self.sick_leave,
            LeaveType.unpaid: self.unpaid_leave,
        }[leave_type]


class LeaveRequest(Base):
    __tablename__ = "leave_requests"
    __table_args__ = (
        sa.Index("ix_leave_requests_employee_dates", "employee_id", "start_date", "end_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    leave_type: Mapped[LeaveType] = mapped_column(
        sa.Enum(LeaveType, name="leave_type", create_type=False),
        nullable=False,
    )
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    allocation: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    remarks: Mapped[Optional[str]] = mapped_column(sa.Text)
    attachment_url: Mapped[Optional[str]] = mapped_column(sa.Text)
    status: Mapped[LeaveStatus] = mapped_column(
        sa.Enum(LeaveStatus, name="leave_status", create_type=False),
        nullable=False,
        default=LeaveStatus.pending,
    )
    admin_comment: Mapped[Optional[str]] = mapped_column(sa.Text)
    reviewed_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True)
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    employee: Mapped["Employee"] = relationship(
        back_populates="leave_requests", foreign_keys=[employee_id]
    )
    reviewer: Mapped[Optional["User"]] = relationship(foreign_keys=[reviewed_by])

    def __repr__(self) -> str:
        return (
            f"<LeaveRequest {self.employee_id} {self.leave_type.value} "
            f"{self.start_date}..{self.end_date} {self.status.value}>"
        )
