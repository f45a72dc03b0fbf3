"""Salary Pydantic v2 schemas — request/response validation."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Upper bounds that fit the salary_info NUMERIC columns
MAX_PERCENTAGE = 1000
MAX_AMOUNT = 99_999_999


# ═════════════════════════════════════════════════════════════════════
# Configuration
# ═════════════════════════════════════════════════════════════════════


class SalaryConfigIn(BaseModel):
    """Create/update payload; omitted fields fall back to the defaults.

    ``fixed_allowance`` is tri-state: omitted keeps the stored value, an
    explicit ``null`` clears the override, a number sets it.
    """

    monthly_wage: Optional[float] = Field(None, ge=0, le=MAX_AMOUNT)
    working_days_per_week: Optional[float] = Field(None, ge=0, le=7)
    break_time_hours: Optional[float] = Field(None, ge=0, le=24)
    basic_salary_percentage: Optional[float] = Field(None, ge=0, le=MAX_PERCENTAGE)
    hra_percentage: Optional[float] = Field(None, ge=0, le=MAX_PERCENTAGE)
    standard_allowance_percentage: Optional[float] = Field(None, ge=0, le=MAX_PERCENTAGE)
    performance_bonus_percentage: Optional[float] = Field(None, ge=0, le=MAX_PERCENTAGE)
    leave_travel_allowance_percentage: Optional[float] = Field(None, ge=0, le=MAX_PERCENTAGE)
    fixed_allowance: Optional[float] = Field(None, ge=0, le=MAX_AMOUNT)
    pf_employee_percentage: Optional[float] = Field(None, ge=0, le=MAX_PERCENTAGE)
    pf_employer_percentage: Optional[float] = Field(None, ge=0, le=MAX_PERCENTAGE)
    professional_tax: Optional[float] = Field(None, ge=0, le=MAX_AMOUNT)


class SalaryConfigOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[uuid.UUID] = None
    employee_id: Optional[uuid.UUID] = None
    monthly_wage: float
    yearly_wage: float
    working_days_per_week: float
    break_time_hours: float
    basic_salary_percentage: float
    hra_percentage: float
    standard_allowance_percentage: float
    performance_bonus_percentage: float
    leave_travel_allowance_percentage: float
    fixed_allowance: Optional[float] = None
    pf_employee_percentage: float
    pf_employer_percentage: float
    professional_tax: float
    updated_at: Optional[datetime] = None


# ═════════════════════════════════════════════════════════════════════
# Breakdown
# ═════════════════════════════════════════════════════════════════════


class BreakdownAmounts(BaseModel):
    basic_salary: float
    hra: float
    standard_allowance: float
    performance_bonus: float
    leave_travel_allowance: float
    fixed_allowance: float
    pf_employee: float
    pf_employer: float
    professional_tax: float
    gross_salary: float
    net_salary: float


class SalaryBreakdownOut(BaseModel):
    """Itemised monthly pay, recomputed on every request."""

    employee_id: Optional[uuid.UUID] = None
    config: SalaryConfigOut
    breakdown: BreakdownAmounts
    formatted: dict[str, str]
    fixed_allowance_is_negative: bool = False
