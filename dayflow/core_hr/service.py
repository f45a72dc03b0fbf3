"""Core HR service layer — async CRUD + business logic.

Uses:
  - ``paginate()`` from dayflow.common.pagination
  - ``apply_filters / apply_search`` from dayflow.common.filters
  - ``create_audit_entry`` from dayflow.common.audit
  - ``NotFoundException / ConflictError`` from dayflow.common.exceptions
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Optional, Sequence

from fastapi import UploadFile
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from dayflow.attendance.models import AttendanceRecord
from dayflow.attendance.service import local_today
from dayflow.auth.models import User, UserSession
from dayflow.auth.service import hash_password
from dayflow.common.audit import create_audit_entry, list_audit_entries
from dayflow.common.constants import (
    AttendanceStatus,
    LeaveStatus,
    PresenceIndicator,
    UserRole,
)
from dayflow.common.exceptions import (
    ConflictError,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from dayflow.common.filters import apply_filters, apply_search
from dayflow.common.pagination import PaginationParams, paginate
from dayflow.common.storage import IMAGE_TYPES, save_upload
from dayflow.config import settings
from dayflow.core_hr.identifiers import generate_login_id, generate_random_password
from dayflow.core_hr.models import Company, Employee, JoiningSequence
from dayflow.core_hr.schemas import (
    AuditEntryOut,
    CompanyBrief,
    EmployeeCreate,
    EmployeeCredentials,
    EmployeeDetail,
    EmployeeListItem,
    EmployeeListResponse,
    EmployeeSummary,
    EmployeeUpdate,
)
from dayflow.leave.models import LeaveBalance, LeaveRequest
from dayflow.leave.service import LeaveService
from dayflow.salary.models import SalaryInfo

logger = logging.getLogger(__name__)

# Fields an employee may change on their own profile
SELF_SERVICE_FIELDS = frozenset({
    "phone",
    "profile_picture",
    "about",
    "what_i_love_about_job",
    "interests_hobbies",
    "skills",
    "certifications",
    "date_of_birth",
    "residing_address",
    "nationality",
    "personal_email",
    "gender",
    "bank_name",
    "account_number",
    "ifsc_code",
    "pan_no",
    "uan_no",
    "emp_code",
})

# Hidden when a colleague (not the owner, not an admin) views a profile
PRIVATE_FIELDS = (
    "date_of_birth",
    "residing_address",
    "nationality",
    "personal_email",
    "gender",
    "bank_name",
    "account_number",
    "ifsc_code",
    "pan_no",
    "uan_no",
    "emp_code",
)

SEARCH_COLUMNS = ["first_name", "last_name", "email", "login_id"]


def _serialize(value: Any) -> Any:
    if isinstance(value, uuid.UUID):
        return str(value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if hasattr(value, "value"):
        return value.value
    return value


# ═════════════════════════════════════════════════════════════════════
# EmployeeService
# ═════════════════════════════════════════════════════════════════════


class EmployeeService:
    """Async CRUD operations for employees."""

    # ── Helpers ─────────────────────────────────────────────────────

    @staticmethod
    def _detail_query():
        return select(Employee).options(
            selectinload(Employee.manager),
            selectinload(Employee.company),
            selectinload(Employee.user),
        )

    @staticmethod
    def _build_detail(emp: Employee, *, include_private: bool = True) -> EmployeeDetail:
        detail = EmployeeDetail.model_validate(emp)
        detail.skills = list(emp.skills or [])
        detail.certifications = list(emp.certifications or [])
        detail.role = emp.user.role.value if emp.user else None
        detail.manager = EmployeeSummary.model_validate(emp.manager) if emp.manager else None
        detail.company = CompanyBrief.model_validate(emp.company)
        if not include_private:
            detail = detail.model_copy(update={name: None for name in PRIVATE_FIELDS})
        return detail

    @staticmethod
    async def _load_employee(
        db: AsyncSession,
        company_id: uuid.UUID,
        employee_id: uuid.UUID,
    ) -> Employee:
        result = await db.execute(
            EmployeeService._detail_query()
            .where(Employee.id == employee_id, Employee.company_id == company_id)
            .execution_options(populate_existing=True)
        )
        emp = result.scalars().first()
        if emp is None:
            raise NotFoundException("Employee", employee_id)
        return emp

    @staticmethod
    async def _ensure_email_free(
        db: AsyncSession,
        email: str,
        *,
        exclude_user_id: Optional[uuid.UUID] = None,
    ) -> None:
        stmt = select(User.id).where(func.lower(User.email) == email.lower())
        if exclude_user_id is not None:
            stmt = stmt.where(User.id != exclude_user_id)
        if (await db.execute(stmt)).scalars().first() is not None:
            raise ConflictError("email", email)

    @staticmethod
    async def _validate_manager(
        db: AsyncSession,
        company_id: uuid.UUID,
        manager_id: Optional[uuid.UUID],
        *,
        employee_id: Optional[uuid.UUID] = None,
    ) -> None:
        if manager_id is None:
            return
        if employee_id is not None and manager_id == employee_id:
            raise ValidationException({"manager_id": ["An employee cannot manage themselves."]})
        result = await db.execute(
            select(Employee.id).where(
                Employee.id == manager_id, Employee.company_id == company_id,
            )
        )
        if result.scalars().first() is None:
            raise ValidationException({"manager_id": ["Manager not found in this company."]})

    # ── Joining serial ──────────────────────────────────────────────

    @staticmethod
    async def next_joining_serial(
        db: AsyncSession,
        company_id: uuid.UUID,
        year: int,
    ) -> int:
        """Reserve the next serial for (company, year); starts at 1 every year."""
        stmt = (
            select(JoiningSequence)
            .where(JoiningSequence.company_id == company_id, JoiningSequence.year == year)
            .with_for_update()
        )
        seq = (await db.execute(stmt)).scalars().first()
        if seq is None:
            # UNIQUE(company_id, year) rejects a concurrent first insert
            seq = JoiningSequence(company_id=company_id, year=year, last_serial=0)
            db.add(seq)

        seq.last_serial += 1
        await db.flush()
        return seq.last_serial

    # ── List (paginated, searchable, filterable) ────────────────────

    @staticmethod
    async def _presence_for(
        db: AsyncSession,
        employee_ids: Sequence[uuid.UUID],
    ) -> dict[uuid.UUID, PresenceIndicator]:
        """Today's badge per employee: checked in, on approved leave, else absent."""
        if not employee_ids:
            return {}
        today = local_today()
        presence = {emp_id: PresenceIndicator.absent for emp_id in employee_ids}

        leave_result = await db.execute(
            select(LeaveRequest.employee_id).where(
                LeaveRequest.employee_id.in_(employee_ids),
                LeaveRequest.status == LeaveStatus.approved,
                LeaveRequest.start_date <= today,
                LeaveRequest.end_date >= today,
            )
        )
        for emp_id in leave_result.scalars().all():
            presence[emp_id] = PresenceIndicator.on_leave

        att_result = await db.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.employee_id.in_(employee_ids),
                AttendanceRecord.date == today,
            )
        )
        for record in att_result.scalars().all():
            if record.check_in is not None:
                presence[record.employee_id] = PresenceIndicator.present
            elif record.status == AttendanceStatus.leave:
                presence[record.employee_id] = PresenceIndicator.on_leave
        return presence

    @staticmethod
    async def list_employees(
        db: AsyncSession,
        company_id: uuid.UUID,
        pagination: PaginationParams,
        *,
        search: Optional[str] = None,
        department: Optional[str] = None,
        location: Optional[str] = None,
    ) -> EmployeeListResponse:
        """Return a paginated company directory with today's presence badges."""
        query = select(Employee).where(Employee.company_id == company_id)
        query = apply_filters(query, Employee, {
            "department__ilike": department,
            "location__ilike": location,
        })
        query = apply_search(query, Employee, search, SEARCH_COLUMNS)
        query = query.order_by(Employee.first_name, Employee.last_name)

        page = await paginate(db, query, pagination, model=Employee)
        presence = await EmployeeService._presence_for(db, [e.id for e in page.data])

        items = []
        for emp in page.data:
            item = EmployeeListItem.model_validate(emp)
            item.presence = presence.get(emp.id, PresenceIndicator.absent)
            items.append(item)
        return EmployeeListResponse(data=items, meta=page.meta)

    # ── Get ─────────────────────────────────────────────────────────

    @staticmethod
    async def get_employee_model(
        db: AsyncSession,
        company_id: uuid.UUID,
        employee_id: uuid.UUID,
    ) -> Employee:
        """Fetch an employee of *company_id*; other tenants' employees are 404."""
        return await EmployeeService._load_employee(db, company_id, employee_id)

    @staticmethod
    async def get_employee(
        db: AsyncSession,
        company_id: uuid.UUID,
        employee_id: uuid.UUID,
        *,
        viewer_employee_id: Optional[uuid.UUID] = None,
        viewer_is_admin: bool = False,
    ) -> EmployeeDetail:
        emp = await EmployeeService._load_employee(db, company_id, employee_id)
        include_private = viewer_is_admin or viewer_employee_id == emp.id
        return EmployeeService._build_detail(emp, include_private=include_private)

    # ── Create ──────────────────────────────────────────────────────

    @staticmethod
    async def create_employee(
        db: AsyncSession,
        company: Company,
        data: EmployeeCreate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> EmployeeCredentials:
        """Onboard an employee: generated login ID, temporary password, leave balances."""
        email = data.email.lower()
        await EmployeeService._ensure_email_free(db, email)
        await EmployeeService._validate_manager(db, company.id, data.manager_id)

        joined = data.date_of_joining or local_today()
        serial = await EmployeeService.next_joining_serial(db, company.id, joined.year)
        login_id = generate_login_id(
            company.prefix, data.first_name.strip(), data.last_name.strip(), joined.year, serial,
        )
        temporary_password = generate_random_password(settings.TEMP_PASSWORD_LENGTH)

        user = User(
            company_id=company.id,
            email=email,
            password_hash=hash_password(temporary_password),
            role=UserRole.employee,
            is_active=True,
            must_change_password=True,
        )
        db.add(user)

        emp = Employee(
            company_id=company.id,
            login_id=login_id,
            joining_year=joined.year,
            joining_serial=serial,
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
            email=email,
            phone=data.phone,
            job_position=data.job_position,
            department=data.department,
            manager_id=data.manager_id,
            location=data.location,
            date_of_joining=joined,
            skills=[],
            certifications=[],
        )
        try:
            await db.flush()
            emp.user_id = user.id
            db.add(emp)
            await db.flush()
        except IntegrityError as exc:
            await db.rollback()
            err = str(exc.orig)
            if "login_id" in err:
                raise ConflictError("login_id", login_id) from exc
            if "email" in err:
                raise ConflictError("email", email) from exc
            raise

        await LeaveService.ensure_balance(db, emp.id, joined.year)

        await create_audit_entry(
            db,
            action="create",
            entity_type="employee",
            entity_id=emp.id,
            actor_id=actor_id,
            company_id=company.id,
            new_values={"login_id": login_id, "email": email},
        )
        logger.info("Onboarded employee %s in company %s", login_id, company.prefix)
        return EmployeeCredentials(
            employee_id=emp.id,
            login_id=login_id,
            email=email,
            temporary_password=temporary_password,
        )

    # ── Update ──────────────────────────────────────────────────────

    @staticmethod
    async def update_employee(
        db: AsyncSession,
        company_id: uuid.UUID,
        employee_id: uuid.UUID,
        data: EmployeeUpdate,
        *,
        actor_id: Optional[uuid.UUID] = None,
        actor_employee_id: Optional[uuid.UUID] = None,
        is_admin: bool = False,
    ) -> EmployeeDetail:
        """Partial update; non-admins may only touch self-service fields of their own profile."""
        emp = await EmployeeService._load_employee(db, company_id, employee_id)
        changes = data.model_dump(exclude_unset=True)

        if not is_admin:
            if actor_employee_id != emp.id:
                raise ForbiddenException("You can only edit your own profile.")
            blocked = sorted(set(changes) - SELF_SERVICE_FIELDS)
            if blocked:
                raise ForbiddenException(
                    f"Only an administrator can change: {', '.join(blocked)}."
                )

        if not changes:
            return EmployeeService._build_detail(emp)

        if "email" in changes:
            if changes["email"] is None:
                raise ValidationException({"email": ["Email cannot be empty."]})
            changes["email"] = changes["email"].lower()
            await EmployeeService._ensure_email_free(
                db, changes["email"], exclude_user_id=emp.user_id,
            )
            if emp.user is not None:
                emp.user.email = changes["email"]
        if "manager_id" in changes:
            await EmployeeService._validate_manager(
                db, company_id, changes["manager_id"], employee_id=emp.id,
            )
        for name in ("first_name", "last_name", "date_of_joining"):
            if name in changes and changes[name] is None:
                raise ValidationException({name: ["This field cannot be empty."]})
        for name in ("skills", "certifications"):
            if name in changes and changes[name] is None:
                changes[name] = []

        old_values = {k: _serialize(getattr(emp, k, None)) for k in changes}
        for field, value in changes.items():
            setattr(emp, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="employee",
            entity_id=emp.id,
            actor_id=actor_id,
            company_id=company_id,
            old_values=old_values,
            new_values={k: _serialize(v) for k, v in changes.items()},
        )
        logger.info("Updated employee %s: %s", emp.login_id, ", ".join(sorted(changes)))

        emp = await EmployeeService._load_employee(db, company_id, employee_id)
        return EmployeeService._build_detail(emp)

    # ── Profile picture ─────────────────────────────────────────────

    @staticmethod
    async def upload_profile_picture(
        db: AsyncSession,
        company_id: uuid.UUID,
        employee_id: uuid.UUID,
        file: UploadFile,
        *,
        actor_id: Optional[uuid.UUID] = None,
        actor_employee_id: Optional[uuid.UUID] = None,
        is_admin: bool = False,
    ) -> EmployeeDetail:
        emp = await EmployeeService._load_employee(db, company_id, employee_id)
        if not is_admin and actor_employee_id != emp.id:
            raise ForbiddenException("You can only change your own profile picture.")

        url = await save_upload(file, "profile-pictures", IMAGE_TYPES)
        old_url = emp.profile_picture
        emp.profile_picture = url
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="employee",
            entity_id=emp.id,
            actor_id=actor_id,
            company_id=company_id,
            old_values={"profile_picture": old_url},
            new_values={"profile_picture": url},
        )
        return EmployeeService._build_detail(emp)

    # ── Delete ──────────────────────────────────────────────────────

    @staticmethod
    async def delete_employee(
        db: AsyncSession,
        company_id: uuid.UUID,
        employee_id: uuid.UUID,
        *,
        actor_id: Optional[uuid.UUID] = None,
        actor_employee_id: Optional[uuid.UUID] = None,
    ) -> None:
        """Remove an employee with their login, attendance, leave and salary data."""
        emp = await EmployeeService._load_employee(db, company_id, employee_id)
        if emp.id == actor_employee_id:
            raise ValidationException({"employee_id": ["You cannot delete your own account."]})

        user_id = emp.user_id
        snapshot = {"login_id": emp.login_id, "email": emp.email}

        await db.execute(
            update(Employee)
            .where(Employee.manager_id == emp.id)
            .values(manager_id=None)
        )
        await db.execute(delete(AttendanceRecord).where(AttendanceRecord.employee_id == emp.id))
        await db.execute(delete(LeaveRequest).where(LeaveRequest.employee_id == emp.id))
        await db.execute(delete(LeaveBalance).where(LeaveBalance.employee_id == emp.id))
        await db.execute(delete(SalaryInfo).where(SalaryInfo.employee_id == emp.id))
        await db.execute(delete(Employee).where(Employee.id == emp.id))

        if user_id is not None:
            await db.execute(
                update(LeaveRequest)
                .where(LeaveRequest.reviewed_by == user_id)
                .values(reviewed_by=None)
            )
            await db.execute(delete(UserSession).where(UserSession.user_id == user_id))
            await db.execute(delete(User).where(User.id == user_id))
            await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="employee",
            entity_id=employee_id,
            actor_id=actor_id,
            company_id=company_id,
            old_values=snapshot,
        )
        logger.info("Deleted employee %s", snapshot["login_id"])


# ═════════════════════════════════════════════════════════════════════
# CompanyService
# ═════════════════════════════════════════════════════════════════════


class CompanyService:
    """Tenant-level settings: name, prefix and logo."""

    @staticmethod
    async def get_company(db: AsyncSession, company_id: uuid.UUID) -> Company:
        company = await db.get(Company, company_id)
        if company is None:
            raise NotFoundException("Company", company_id)
        return company

    @staticmethod
    async def get_company_brief(db: AsyncSession, company_id: uuid.UUID) -> CompanyBrief:
        return CompanyBrief.model_validate(await CompanyService.get_company(db, company_id))

    @staticmethod
    async def update_logo(
        db: AsyncSession,
        company_id: uuid.UUID,
        file: UploadFile,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> CompanyBrief:
        company = await CompanyService.get_company(db, company_id)
        url = await save_upload(file, "company-logos", IMAGE_TYPES)
        old_url = company.logo_url
        company.logo_url = url
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="company",
            entity_id=company.id,
            actor_id=actor_id,
            company_id=company.id,
            old_values={"logo_url": old_url},
            new_values={"logo_url": url},
        )
        logger.info("Company %s logo updated", company.prefix)
        return CompanyBrief.model_validate(company)

    @staticmethod
    async def audit_log(
        db: AsyncSession,
        company_id: uuid.UUID,
        *,
        entity_type: Optional[str] = None,
        entity_id: Optional[uuid.UUID] = None,
        limit: int = 100,
    ) -> list[AuditEntryOut]:
        entries = await list_audit_entries(
            db,
            company_id=company_id,
            entity_type=entity_type,
            entity_id=entity_id,
            limit=limit,
        )
        return [AuditEntryOut.model_validate(e) for e in entries]
