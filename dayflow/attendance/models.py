"""Attendance ORM model: AttendanceRecord (one row per employee per day)."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dayflow.common.constants import AttendanceStatus
from dayflow.database import Base

if TYPE_CHECKING:
    from dayflow.core_hr.models import Employee


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "date", name="uq_attendance_employee_date"),
        sa.Index("ix_attendance_records_date", "date"),
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
    date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    check_in: Mapped[Optional[time]] = mapped_column(sa.Time)
    check_out: Mapped[Optional[time]] = mapped_column(sa.Time)
    work_hours: Mapped[Decimal] = mapped_column(
        sa.Numeric(5, 2), default=Decimal("0")
    )
    extra_hours: Mapped[Decimal] = mapped_column(
        sa.Numeric(5, 2), default=Decimal("0")
    )
    # DB values use "half-day", so persist enum values rather than member names
    status: Mapped[AttendanceStatus] = mapped_column(
        sa.Enum(
            AttendanceStatus,
            name="attendance_status",
            create_type=False,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=AttendanceStatus.present,
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
    employee: Mapped["Employee"] = relationship(back_populates="attendance_records")

    def __repr__(self) -> str:
        return f"<AttendanceRecord {self.employee_id} {self.date} {self.status.value}>"
