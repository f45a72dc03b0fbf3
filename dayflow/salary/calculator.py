"""Salary breakdown engine: monthly wage → itemised earnings and deductions.

Pure functions with no I/O. Every amount is in the same currency unit as
``monthly_wage``.

    basic_salary           = wage  × basic%
    hra                    = basic × hra%          (of BASIC, not wage)
    standard_allowance     = wage  × standard%
    performance_bonus      = wage  × bonus%
    leave_travel_allowance = wage  × lta%
    fixed_allowance        = override, or wage − sum(components above)
    pf_employee / employer = basic × pf%
    gross_salary           = components + fixed_allowance
    net_salary             = gross − pf_employee − professional_tax
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any, Optional

MONTHS_PER_YEAR = 12


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CompensationConfig:
    """Employer-defined pay structure for one employee."""

    monthly_wage: float
    basic_salary_percentage: float
    hra_percentage: float
    standard_allowance_percentage: float
    performance_bonus_percentage: float
    leave_travel_allowance_percentage: float
    pf_employee_percentage: float
    pf_employer_percentage: float
    professional_tax: float
    fixed_allowance: Optional[float] = None   # None → derived balancing item
    working_days_per_week: float = 5
    break_time_hours: float = 1

    @property
    def yearly_wage(self) -> float:
        return self.monthly_wage * MONTHS_PER_YEAR

    def with_overrides(self, **changes: Any) -> "CompensationConfig":
        """Copy with *changes* applied; keys present with ``None`` still apply."""
        return replace(self, **changes)


@dataclass(frozen=True)
class SalaryBreakdown:
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
    components_total: float

    @property
    def fixed_allowance_is_negative(self) -> bool:
        """Named components exceed the wage (a configuration smell, not an error)."""
        return self.fixed_allowance < 0

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


# Single source of default pay-structure values for new configurations
DEFAULT_COMPENSATION = CompensationConfig(
    monthly_wage=50000,
    working_days_per_week=5,
    break_time_hours=1,
    basic_salary_percentage=50,
    hra_percentage=50,
    standard_allowance_percentage=4.167,
    performance_bonus_percentage=8.33,
    leave_travel_allowance_percentage=8.33,
    fixed_allowance=None,
    pf_employee_percentage=12,
    pf_employer_percentage=12,
    professional_tax=200,
)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

def _percent_of(amount: float, percentage: float) -> float:
    return amount * percentage / 100


def compute_breakdown(config: CompensationConfig) -> SalaryBreakdown:
    """Itemise *config* into earnings, deductions and totals."""
    wage = config.monthly_wage

    basic_salary = _percent_of(wage, config.basic_salary_percentage)
    hra = _percent_of(basic_salary, config.hra_percentage)
    standard_allowance = _percent_of(wage, config.standard_allowance_percentage)
    performance_bonus = _percent_of(wage, config.performance_bonus_percentage)
    leave_travel_allowance = _percent_of(wage, config.leave_travel_allowance_percentage)

    components_total = (
        basic_salary + hra + standard_allowance + performance_bonus + leave_travel_allowance
    )
    if config.fixed_allowance is not None:
        fixed_allowance = config.fixed_allowance
    else:
        fixed_allowance = wage - components_total

    pf_employee = _percent_of(basic_salary, config.pf_employee_percentage)
    pf_employer = _percent_of(basic_salary, config.pf_employer_percentage)
    professional_tax = config.professional_tax

    gross_salary = (
        basic_salary
        + hra
        + standard_allowance
        + performance_bonus
        + leave_travel_allowance
        + fixed_allowance
    )
    net_salary = gross_salary - pf_employee - professional_tax

    return SalaryBreakdown(
        basic_salary=basic_salary,
        hra=hra,
        standard_allowance=standard_allowance,
        performance_bonus=performance_bonus,
        leave_travel_allowance=leave_travel_allowance,
        fixed_allowance=fixed_allowance,
        pf_employee=pf_employee,
        pf_employer=pf_employer,
        professional_tax=professional_tax,
        gross_salary=gross_salary,
        net_salary=net_salary,
        components_total=components_total,
    )


# ---------------------------------------------------------------------------
# Presentation
# ---------------------------------------------------------------------------

def format_inr(amount: float) -> str:
    """Render *amount* as whole rupees with Indian digit grouping: ₹12,34,567."""
    rounded = int(round(abs(amount)))
    digits = str(rounded)
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups) + "," + tail
    sign = "-" if amount < 0 and rounded else ""
    return f"{sign}₹{digits}"
