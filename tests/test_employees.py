"""Employee module test suite — onboarding, directory search and presence,
profile updates with self-service rules, deletion, uploads, company settings.

Tests exercise the service layer and the HTTP API (via router).
Uses the shared conftest.py pattern with in-memory SQLite.
"""

from __future__ import annotations

from datetime import date, time

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dayflow.attendance.models import AttendanceRecord
from dayflow.attendance.service import local_today
from dayflow.auth.models import User
from dayflow.auth.service import verify_password
from dayflow.common.constants import AttendanceStatus, LeaveStatus, LeaveType
from dayflow.common.exceptions import ConflictError
from dayflow.core_hr.models import Company, Employee, JoiningSequence
from dayflow.core_hr.schemas import EmployeeCreate
from dayflow.core_hr.service import EmployeeService
from dayflow.leave.models import LeaveBalance, LeaveRequest
from dayflow.salary.models import SalaryInfo
from tests.conftest import TestSessionFactory, create_person, login_headers

NEW_HIRE = {
    "first_name": "Jane",
    "last_name": "Smith",
    "email": "jane.smith@acme.io",
    "job_position": "Designer",
    "department": "Design",
    "date_of_joining": "2025-03-01",
}


# ═════════════════════════════════════════════════════════════════════
# Onboarding (service)
# ═════════════════════════════════════════════════════════════════════


class TestEmployeeCreate:

    async def test_login_id_and_credentials(self, db: AsyncSession, company, admin):
        comp = await db.get(Company, company["id"])
        creds = await EmployeeService.create_employee(
            db, comp, EmployeeCreate(**NEW_HIRE), actor_id=admin["user_id"],
        )
        await db.commit()

        assert creds.login_id == "ACJASM20250001"
        assert creds.email == "jane.smith@acme.io"
        assert len(creds.temporary_password) == 12

        user = (await db.execute(
            select(User).where(User.email == "jane.smith@acme.io")
        )).scalars().one()
        assert user.must_change_password is True
        assert verify_password(creds.temporary_password, user.password_hash)
        assert user.password_hash != creds.temporary_password

    async def test_serial_increments_within_year(self, db: AsyncSession, company):
        comp = await db.get(Company, company["id"])
        first = await EmployeeService.create_employee(db, comp, EmployeeCreate(**NEW_HIRE))
        second = await EmployeeService.create_employee(
            db, comp,
            EmployeeCreate(**{**NEW_HIRE, "email": "bob.stone@acme.io",
                              "first_name": "Bob", "last_name": "Stone"}),
        )
        assert first.login_id.endswith("20250001")
        assert second.login_id == "ACBOST20250002"

    async def test_serial_restarts_each_year(self, db: AsyncSession, company):
        comp = await db.get(Company, company["id"])
        await EmployeeService.create_employee(db, comp, EmployeeCreate(**NEW_HIRE))
        creds = await EmployeeService.create_employee(
            db, comp,
            EmployeeCreate(**{**NEW_HIRE, "email": "new.year@acme.io",
                              "date_of_joining": "2026-01-05"}),
        )
        assert creds.login_id == "ACJASM20260001"

        seqs = (await db.execute(
            select(JoiningSequence).order_by(JoiningSequence.year)
        )).scalars().all()
        assert [(s.year, s.last_serial) for s in seqs] == [(2025, 1), (2026, 1)]

    async def test_serials_are_per_company(self, db: AsyncSession, company, other_company):
        acme = await db.get(Company, company["id"])
        globex = await db.get(Company, other_company["id"])
        await EmployeeService.create_employee(db, acme, EmployeeCreate(**NEW_HIRE))
        creds = await EmployeeService.create_employee(
            db, globex, EmployeeCreate(**{**NEW_HIRE, "email": "jane@globex.io"}),
        )
        assert creds.login_id == "GLJASM20250001"

    async def test_same_person_in_two_companies_gets_distinct_ids(self, client, db: AsyncSession):
        for name, prefix, email in (
            ("Orbit Industries", "oi", "founder@orbit.io"),
            ("Oxide Labs", "ox", "founder@oxide.io"),
        ):
            resp = await client.post("/api/v1/auth/sign-up", json={
                "company_name": name, "company_prefix": prefix,
                "first_name": "Fay", "last_name": "Founder",
                "email": email, "password": "Str0ngPass!",
            })
            assert resp.status_code == 201

        ids = []
        for prefix, email in (("OI", "john@orbit.io"), ("OX", "john@oxide.io")):
            comp = (await db.execute(
                select(Company).where(Company.prefix == prefix)
            )).scalars().one()
            creds = await EmployeeService.create_employee(
                db, comp,
                EmployeeCreate(first_name="John", last_name="Doe", email=email,
                               date_of_joining=date(2024, 3, 1)),
            )
            ids.append(creds.login_id)
        assert ids == ["OIJODO20240001", "OXJODO20240001"]

    async def test_login_id_collision_reported_on_login_id(
        self, db: AsyncSession, company, other_company,
    ):
        # A row already holding the ID the next Acme hire would get
        await create_person(
            db, other_company, email="squatter@globex.io", login_id="ACJASM20250001",
        )
        comp = await db.get(Company, company["id"])
        with pytest.raises(ConflictError) as exc:
            await EmployeeService.create_employee(db, comp, EmployeeCreate(**NEW_HIRE))
        assert list(exc.value.errors) == ["login_id"]

    async def test_seeds_leave_balance_for_joining_year(self, db: AsyncSession, company):
        comp = await db.get(Company, company["id"])
        creds = await EmployeeService.create_employee(db, comp, EmployeeCreate(**NEW_HIRE))
        balance = (await db.execute(
            select(LeaveBalance).where(LeaveBalance.employee_id == creds.employee_id)
        )).scalars().one()
        assert balance.year == 2025
        assert balance.paid_leave == 24
        assert balance.sick_leave == 7
        assert balance.unpaid_leave == 0

    async def test_duplicate_email_conflict(self, db: AsyncSession, company, employee):
        comp = await db.get(Company, company["id"])
        with pytest.raises(ConflictError):
            await EmployeeService.create_employee(
                db, comp, EmployeeCreate(**{**NEW_HIRE, "email": employee["email"].upper()}),
            )

    async def test_short_names(self, db: AsyncSession, company):
        comp = await db.get(Company, company["id"])
        creds = await EmployeeService.create_employee(
            db, comp,
            EmployeeCreate(**{**NEW_HIRE, "first_name": "A", "last_name": "Li",
                              "email": "a.li@acme.io"}),
        )
        assert creds.login_id == "ACALI20250001"


# ═════════════════════════════════════════════════════════════════════
# Onboarding (API)
# ═════════════════════════════════════════════════════════════════════


async def test_admin_creates_employee_via_api(client, admin_headers):
    resp = await client.post("/api/v1/employees", json=NEW_HIRE, headers=admin_headers)
    assert resp.status_code == 201
    data = resp.json()
    assert data["login_id"] == "ACJASM20250001"
    assert "temporary_password" in data

    # The new hire can sign in with the generated credentials
    resp = await client.post(
        "/api/v1/auth/sign-in",
        json={"identifier": data["login_id"], "password": data["temporary_password"]},
    )
    assert resp.status_code == 200
    assert resp.json()["user"]["must_change_password"] is True


async def test_employee_cannot_create_employee(client, auth_headers):
    resp = await client.post("/api/v1/employees", json=NEW_HIRE, headers=auth_headers)
    assert resp.status_code == 403


async def test_create_employee_unknown_manager(client, admin_headers, outsider):
    resp = await client.post(
        "/api/v1/employees",
        json={**NEW_HIRE, "manager_id": str(outsider["employee_id"])},
        headers=admin_headers,
    )
    assert resp.status_code == 422
    assert "manager_id" in resp.json()["errors"]


async def test_create_employee_invalid_email(client, admin_headers):
    resp = await client.post(
        "/api/v1/employees", json={**NEW_HIRE, "email": "not-an-email"}, headers=admin_headers,
    )
    assert resp.status_code == 422


# ═════════════════════════════════════════════════════════════════════
# Directory
# ═════════════════════════════════════════════════════════════════════


class TestDirectory:

    async def test_lists_only_own_company(self, client, auth_headers, admin, outsider):
        resp = await client.get("/api/v1/employees", headers=auth_headers)
        assert resp.status_code == 200
        data = resp.json()
        emails = {item["email"] for item in data["data"]}
        assert emails == {"admin@acme.io", "john.doe@acme.io"}
        assert data["meta"]["total"] == 2

    async def test_search_by_name_and_login_id(self, client, db, company, admin_headers, employee):
        await create_person(
            db, company, email="mary.major@acme.io", login_id="ACMAMA20240002",
            first_name="Mary", last_name="Major",
        )
        resp = await client.get("/api/v1/employees?search=john d", headers=admin_headers)
        assert [i["login_id"] for i in resp.json()["data"]] == [employee["login_id"]]

        resp = await client.get("/api/v1/employees?search=acmama", headers=admin_headers)
        assert [i["email"] for i in resp.json()["data"]] == ["mary.major@acme.io"]

    async def test_department_filter(self, client, admin_headers, admin, employee):
        resp = await client.get("/api/v1/employees?department=engineering", headers=admin_headers)
        assert [i["email"] for i in resp.json()["data"]] == [employee["email"]]

    async def test_pagination(self, client, db, company, admin_headers, admin):
        for n in range(4):
            await create_person(
                db, company, email=f"p{n}@acme.io", login_id=f"ACPEPE2024000{n + 2}",
                first_name=f"Person{n}", last_name="Page",
            )
        resp = await client.get("/api/v1/employees?page=2&page_size=2", headers=admin_headers)
        meta = resp.json()["meta"]
        assert meta["total"] == 5
        assert meta["total_pages"] == 3
        assert meta["has_next"] is True
        assert meta["has_prev"] is True
        assert len(resp.json()["data"]) == 2

    async def test_presence_indicator(self, client, db, company, admin_headers, admin, employee):
        on_leave = await create_person(
            db, company, email="lee@acme.io", login_id="ACLEON20240002",
            first_name="Lee", last_name="Onleave",
        )
        today = local_today()
        db.add(AttendanceRecord(
            employee_id=employee["employee_id"],
            date=today,
            check_in=time(9, 0),
            status=AttendanceStatus.present,
        ))
        db.add(LeaveRequest(
            employee_id=on_leave["employee_id"],
            leave_type=LeaveType.paid,
            start_date=today,
            end_date=today,
            allocation=1,
            status=LeaveStatus.approved,
        ))
        await db.commit()

        resp = await client.get("/api/v1/employees", headers=admin_headers)
        presence = {i["email"]: i["presence"] for i in resp.json()["data"]}
        assert presence == {
            "admin@acme.io": "absent",
            "john.doe@acme.io": "present",
            "lee@acme.io": "on_leave",
        }


# ═════════════════════════════════════════════════════════════════════
# Profile read / update
# ═════════════════════════════════════════════════════════════════════


class TestProfile:

    async def test_get_includes_company_and_manager(self, client, db, admin, employee, auth_headers):
        emp = await db.get(Employee, employee["employee_id"])
        emp.manager_id = admin["employee_id"]
        await db.commit()

        resp = await client.get(f"/api/v1/employees/{employee['employee_id']}", headers=auth_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["full_name"] == "John Doe"
        assert data["company"]["prefix"] == "AC"
        assert data["manager"]["login_id"] == "ACADMIN001"
        assert data["role"] == "employee"

    async def test_cross_tenant_is_not_found(self, client, auth_headers, outsider):
        resp = await client.get(f"/api/v1/employees/{outsider['employee_id']}", headers=auth_headers)
        assert resp.status_code == 404

    async def test_colleague_sees_no_private_fields(self, client, db, admin, employee, admin_headers):
        emp = await db.get(Employee, admin["employee_id"])
        emp.account_number = "1234567890"
        emp.nationality = "Indian"
        await db.commit()

        headers = await login_headers(db, employee)
        resp = await client.get(f"/api/v1/employees/{admin['employee_id']}", headers=headers)
        assert resp.json()["account_number"] is None
        assert resp.json()["nationality"] is None

        resp = await client.get(f"/api/v1/employees/{admin['employee_id']}", headers=admin_headers)
        assert resp.json()["account_number"] == "1234567890"

    async def test_self_service_update(self, client, employee, auth_headers):
        resp = await client.patch(
            f"/api/v1/employees/{employee['employee_id']}",
            json={
                "phone": "+91 98765 43210",
                "about": "Builds things.",
                "skills": ["Python", "SQL"],
                "gender": "male",
                "ifsc_code": "HDFC0001234",
            },
            headers=auth_headers,
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["skills"] == ["Python", "SQL"]
        assert data["ifsc_code"] == "HDFC0001234"
        assert data["gender"] == "male"

    async def test_employee_cannot_change_admin_fields(self, client, employee, auth_headers):
        resp = await client.patch(
            f"/api/v1/employees/{employee['employee_id']}",
            json={"job_position": "CTO", "phone": "123"},
            headers=auth_headers,
        )
        assert resp.status_code == 403
        assert "job_position" in resp.json()["detail"]

    async def test_employee_cannot_edit_colleague(self, client, admin, auth_headers):
        resp = await client.patch(
            f"/api/v1/employees/{admin['employee_id']}",
            json={"phone": "123"},
            headers=auth_headers,
        )
        assert resp.status_code == 403

    async def test_admin_updates_any_field_and_audits(self, client, employee, admin_headers):
        resp = await client.patch(
            f"/api/v1/employees/{employee['employee_id']}",
            json={"job_position": "Lead Engineer", "email": "JOHN@acme.io"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["job_position"] == "Lead Engineer"
        assert resp.json()["email"] == "john@acme.io"

        async with TestSessionFactory() as session:
            user = await session.get(User, employee["user_id"])
            assert user.email == "john@acme.io"

        resp = await client.get(
            f"/api/v1/company/audit-log?entity_type=employee&entity_id={employee['employee_id']}",
            headers=admin_headers,
        )
        entry = resp.json()[0]
        assert entry["action"] == "update"
        assert entry["old_values"]["job_position"] == "Engineer"
        assert entry["new_values"]["job_position"] == "Lead Engineer"

    async def test_admin_cannot_take_colleague_email(self, client, admin, employee, admin_headers):
        resp = await client.patch(
            f"/api/v1/employees/{employee['employee_id']}",
            json={"email": admin["email"]},
            headers=admin_headers,
        )
        assert resp.status_code == 409

    async def test_employee_cannot_be_own_manager(self, client, employee, admin_headers):
        resp = await client.patch(
            f"/api/v1/employees/{employee['employee_id']}",
            json={"manager_id": str(employee["employee_id"])},
            headers=admin_headers,
        )
        assert resp.status_code == 422


# ═════════════════════════════════════════════════════════════════════
# Delete
# ═════════════════════════════════════════════════════════════════════


class TestDelete:

    async def test_delete_removes_related_rows(self, client, db, employee, admin_headers):
        db.add(AttendanceRecord(
            employee_id=employee["employee_id"], date=date(2025, 1, 2),
            status=AttendanceStatus.present,
        ))
        db.add(LeaveBalance(
            employee_id=employee["employee_id"], year=2025,
            paid_leave=24, sick_leave=7, unpaid_leave=0,
        ))
        db.add(SalaryInfo(
            employee_id=employee["employee_id"], monthly_wage=50000, yearly_wage=600000,
            basic_salary_percentage=50, hra_percentage=50,
            standard_allowance_percentage=4.167, performance_bonus_percentage=8.33,
            leave_travel_allowance_percentage=8.33, pf_employee_percentage=12,
            pf_employer_percentage=12, professional_tax=200,
        ))
        await db.commit()

        resp = await client.delete(f"/api/v1/employees/{employee['employee_id']}", headers=admin_headers)
        assert resp.status_code == 204

        async with TestSessionFactory() as session:
            for model, col in (
                (Employee, Employee.id),
                (AttendanceRecord, AttendanceRecord.employee_id),
                (LeaveBalance, LeaveBalance.employee_id),
                (SalaryInfo, SalaryInfo.employee_id),
            ):
                count = (await session.execute(
                    select(func.count()).select_from(model).where(col == employee["employee_id"])
                )).scalar_one()
                assert count == 0, model.__name__
            assert await session.get(User, employee["user_id"]) is None

    async def test_admin_cannot_delete_self(self, client, admin, admin_headers):
        resp = await client.delete(f"/api/v1/employees/{admin['employee_id']}", headers=admin_headers)
        assert resp.status_code == 422

    async def test_employee_cannot_delete(self, client, admin, auth_headers):
        resp = await client.delete(f"/api/v1/employees/{admin['employee_id']}", headers=auth_headers)
        assert resp.status_code == 403


# ═════════════════════════════════════════════════════════════════════
# Uploads and company
# ═════════════════════════════════════════════════════════════════════


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


async def test_upload_own_profile_picture(client, employee, auth_headers):
    resp = await client.post(
        f"/api/v1/employees/{employee['employee_id']}/profile-picture",
        files={"file": ("me.png", PNG_BYTES, "image/png")},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    url = resp.json()["profile_picture"]
    assert url.startswith("/uploads/profile-pictures/")
    assert url.endswith(".png")


async def test_upload_profile_picture_rejects_pdf(client, employee, auth_headers):
    resp = await client.post(
        f"/api/v1/employees/{employee['employee_id']}/profile-picture",
        files={"file": ("cv.pdf", b"%PDF-1.4", "application/pdf")},
        headers=auth_headers,
    )
    assert resp.status_code == 422
    assert "file" in resp.json()["errors"]


async def test_company_logo_upload_admin_only(client, auth_headers, admin_headers):
    files = {"file": ("logo.png", PNG_BYTES, "image/png")}
    resp = await client.post("/api/v1/company/logo", files=files, headers=auth_headers)
    assert resp.status_code == 403

    resp = await client.post("/api/v1/company/logo", files=files, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["logo_url"].startswith("/uploads/company-logos/")

    resp = await client.get("/api/v1/company", headers=auth_headers)
    assert resp.json()["logo_url"].startswith("/uploads/company-logos/")
