"""Salary ORM model: SalaryInfo, the per-employee compensation configuration.

SQLAlchemy 2.0 async-compatible model. One row per employee, updated in
place; the breakdown is never stored.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dayflow.database import Base
from dayflow.salary.calculator import MONTHS_PER_YEAR, CompensationConfig

if TYPE_CHECKING:
    from dayflow.core_hr.models import Employee


class SalaryInfo(Base):
    """Compensation configuration of a single employee."""

    __tablename__ = "salary_info"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    monthly_wage: Mapped[Decimal] = mapped_column(sa.Numeric(12, 2), nullable=False)
    yearly_wage: Mapped[Decimal] = mapped_column(sa.Numeric(14, 2), nullable=False)
    working_days_per_week: Mapped[Decimal] = mapped_column(sa.Numeric(4, 1), default=5)
    break_time_hours: Mapped[Decimal] = mapped_column(sa.Numeric(4, 2), default=1)

    basic_salary_percentage: Mapped[Decimal] = mapped_column(sa.Numeric(7, 3), nullable=False)
    hra_percentage: Mapped[Decimal] = mapped_column(sa.Numeric(7, 3), nullable=False)
    standard_allowance_percentage: Mapped[Decimal] = mapped_column(sa.Numeric(7, 3), nullable=False)
    performance_bonus_percentage: Mapped[Decimal] = mapped_column(sa.Numeric(7, 3), nullable=False)
    leave_travel_allowance_percentage: Mapped[Decimal] = mapped_column(sa.Numeric(7, 3), nullable=False)
    # NULL means "derive as the balancing item"; 0 is an explicit override
    fixed_allowance: Mapped[Optional[Decimal]] = mapped_column(sa.Numeric(12, 2), nullable=True)

    pf_employee_percentage: Mapped[Decimal] = mapped_column(sa.Numeric(7, 3), nullable=False)
    pf_employer_percentage: Mapped[Decimal] = mapped_column(sa.Numeric(7, 3), nullable=False)
    professional_tax: Mapped[Decimal] = mapped_column(sa.Numeric(10, 2), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    employee: Mapped["Employee"] = relationship(back_populates="salary_info")

    def refresh_yearly_wage(self) -> None:
        self.yearly_wage = Decimal(str(self.monthly_wage)) * MONTHS_PER_YEAR

    def to_compensation(self) -> CompensationConfig:
        """Engine input built from the stored columns."""
        return CompensationConfig(
            monthly_wage=float(self.monthly_wage),
            working_days_per_week=float(self.working_days_per_week),
            break_time_hours=float(self.break_time_hours),
            basic_salary_percentage=float(self.basic_salary_percentage),
            hra_percentage=float(self.hra_percentage),
            standard_allowance_percentage=float(self.standard_allowance_percentage),
            performance_bonus_percentage=float(self.performance_bonus_percentage),
            leave_travel_allowance_percentage=float(self.leave_travel_allowance_percentage),
            fixed_allowance=(
                float(self.fixed_allowance) if self.fixed_allowance is not None else None
            ),
            pf_employee_percentage=float(self.pf_employee_percentage),
            pf_employer_percentage=float(self.pf_employer_percentage),
            professional_tax=float(self.professional_tax),
        )

    def __repr__(self) -> str:
        return f"<SalaryInfo employee_id={self.employee_id} wage={self.monthly_wage}>"
