"""Salary service layer — per-employee pay structure and breakdowns."""

from __future__ import annotations

import logging
import uuid
from dataclasses import asdict
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dayflow.common.audit import create_audit_entry
from dayflow.common.exceptions import NotFoundException
from dayflow.salary.calculator import (
    DEFAULT_COMPENSATION,
    CompensationConfig,
    compute_breakdown,
    format_inr,
)
from dayflow.salary.models import SalaryInfo
from dayflow.salary.schemas import (
    BreakdownAmounts,
    SalaryBreakdownOut,
    SalaryConfigIn,
    SalaryConfigOut,
)

logger = logging.getLogger(__name__)


def merge_config(base: CompensationConfig, data: SalaryConfigIn) -> CompensationConfig:
    """Apply the fields present in *data* on top of *base*.

    A ``None`` only counts for ``fixed_allowance``, where it clears the
    override; elsewhere it means "keep the base value".
    """
    changes: dict[str, Any] = {}
    for name, value in data.model_dump(exclude_unset=True).items():
        if value is None and name != "fixed_allowance":
            continue
        changes[name] = value
    return base.with_overrides(**changes)


def _config_out(config: CompensationConfig, row: Optional[SalaryInfo] = None) -> SalaryConfigOut:
    return SalaryConfigOut(
        id=row.id if row else None,
        employee_id=row.employee_id if row else None,
        yearly_wage=config.yearly_wage,
        updated_at=row.updated_at if row else None,
        **asdict(config),
    )


def build_breakdown(
    config: CompensationConfig,
    *,
    row: Optional[SalaryInfo] = None,
) -> SalaryBreakdownOut:
    result = compute_breakdown(config)
    amounts = {k: v for k, v in result.as_dict().items() if k != "components_total"}
    formatted = {k: format_inr(v) for k, v in amounts.items()}
    formatted["monthly_wage"] = format_inr(config.monthly_wage)
    formatted["yearly_wage"] = format_inr(config.yearly_wage)
    return SalaryBreakdownOut(
        employee_id=row.employee_id if row else None,
        config=_config_out(config, row),
        breakdown=BreakdownAmounts(**amounts),
        formatted=formatted,
        fixed_allowance_is_negative=result.fixed_allowance_is_negative,
    )


def _column_value(name: str, value: Optional[float]) -> Optional[Decimal]:
    """*value* rounded to the scale of the ``salary_info`` column it is stored in."""
    if value is None:
        return None
    scale = SalaryInfo.__table__.c[name].type.scale
    return Decimal(str(value)).quantize(Decimal(1).scaleb(-scale), rounding=ROUND_HALF_UP)


class SalaryService:
    """Business logic for salary configuration."""

    @staticmethod
    def defaults() -> SalaryConfigOut:
        return _config_out(DEFAULT_COMPENSATION)

    @staticmethod
    def preview(data: SalaryConfigIn) -> SalaryBreakdownOut:
        """Breakdown of an unsaved configuration (defaults fill the gaps)."""
        return build_breakdown(merge_config(DEFAULT_COMPENSATION, data))

    @staticmethod
    async def _find_config(db: AsyncSession, employee_id: uuid.UUID) -> Optional[SalaryInfo]:
        result = await db.execute(
            select(SalaryInfo).where(SalaryInfo.employee_id == employee_id)
        )
        return result.scalars().first()

    @staticmethod
    async def get_config(db: AsyncSession, employee_id: uuid.UUID) -> SalaryInfo:
        row = await SalaryService._find_config(db, employee_id)
        if row is None:
            raise NotFoundException("Salary configuration", employee_id)
        return row

    @staticmethod
    async def get_breakdown(db: AsyncSession, employee_id: uuid.UUID) -> SalaryBreakdownOut:
        row = await SalaryService.get_config(db, employee_id)
        return build_breakdown(row.to_compensation(), row=row)

    @staticmethod
    async def upsert_config(
        db: AsyncSession,
        employee_id: uuid.UUID,
        data: SalaryConfigIn,
        *,
        actor_id: Optional[uuid.UUID] = None,
        company_id: Optional[uuid.UUID] = None,
    ) -> SalaryBreakdownOut:
        """Create or update the employee's configuration in place."""
        row = await SalaryService._find_config(db, employee_id)
        base = row.to_compensation() if row else DEFAULT_COMPENSATION
        old_values = asdict(base) if row else None
        merged = merge_config(base, data)

        if row is None:
            row = SalaryInfo(employee_id=employee_id)
            db.add(row)
        for name, value in asdict(merged).items():
            setattr(row, name, _column_value(name, value))
        row.refresh_yearly_wage()
        await db.flush()
        saved = row.to_compensation()

        await create_audit_entry(
            db,
            action="update" if old_values else "create",
            entity_type="salary_info",
            entity_id=row.id,
            actor_id=actor_id,
            company_id=company_id,
            old_values=old_values,
            new_values=asdict(saved),
        )
        logger.info("Saved salary configuration for employee %s", employee_id)
        return build_breakdown(saved, row=row)
