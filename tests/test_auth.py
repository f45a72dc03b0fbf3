"""Auth module test suite — sign-up, sign-in, JWT sessions, RBAC."""

from __future__ import annotations

import uuid

from jose import jwt
from sqlalchemy import select

from dayflow.auth.models import User, UserSession
from dayflow.common.constants import PERMISSIONS, UserRole
from dayflow.config import settings
from dayflow.core_hr.models import Company, Employee
from dayflow.leave.models import LeaveBalance
from tests.conftest import (
    DEFAULT_PASSWORD,
    TestSessionFactory,
    create_access_token,
)

SIGN_UP = {
    "company_name": "Odoo India",
    "first_name": "Priya",
    "last_name": "Shah",
    "email": "priya@odoo-india.io",
    "password": "Str0ngPass!",
}


# ── Sign-up ─────────────────────────────────────────────────────────


async def test_sign_up_creates_company_admin_and_balances(client):
    resp = await client.post("/api/v1/auth/sign-up", json=SIGN_UP)
    assert resp.status_code == 201
    data = resp.json()
    assert data["token_type"] == "bearer"
    assert data["redirect_to"] == "/employees"
    assert data["user"]["role"] == "admin"
    assert data["user"]["login_id"] == "ODADMIN001"
    assert data["user"]["company"]["prefix"] == "OD"

    async with TestSessionFactory() as session:
        company = (await session.execute(select(Company))).scalars().one()
        assert company.name == "Odoo India"
        emp = (await session.execute(select(Employee))).scalars().one()
        assert emp.company_id == company.id
        balances = (await session.execute(select(LeaveBalance))).scalars().all()
        assert len(balances) == 1
        assert balances[0].paid_leave == settings.DEFAULT_PAID_LEAVE_DAYS
        assert balances[0].sick_leave == settings.DEFAULT_SICK_LEAVE_DAYS


async def test_sign_up_explicit_prefix(client):
    resp = await client.post(
        "/api/v1/auth/sign-up", json={**SIGN_UP, "company_prefix": "oi"},
    )
    assert resp.status_code == 201
    assert resp.json()["user"]["login_id"] == "OIADMIN001"


async def test_sign_up_prefix_must_be_two_letters(client):
    for prefix in ("oin", "o", "o1"):
        resp = await client.post(
            "/api/v1/auth/sign-up", json={**SIGN_UP, "company_prefix": prefix},
        )
        assert resp.status_code == 422
        assert "company_prefix" in resp.json()["errors"]


async def test_sign_up_name_without_two_letters_needs_prefix(client):
    resp = await client.post("/api/v1/auth/sign-up", json={**SIGN_UP, "company_name": "7 X"})
    assert resp.status_code == 422
    assert "company_prefix" in resp.json()["errors"]

    resp = await client.post(
        "/api/v1/auth/sign-up", json={**SIGN_UP, "company_name": "7 X", "company_prefix": "sx"},
    )
    assert resp.status_code == 201


async def test_sign_up_duplicate_email_conflict(client):
    assert (await client.post("/api/v1/auth/sign-up", json=SIGN_UP)).status_code == 201
    resp = await client.post(
        "/api/v1/auth/sign-up",
        json={**SIGN_UP, "company_name": "Other Co", "company_prefix": "OT"},
    )
    assert resp.status_code == 409
    assert "email" in resp.json()["errors"]


async def test_sign_up_taken_prefix_conflict(client):
    assert (await client.post("/api/v1/auth/sign-up", json=SIGN_UP)).status_code == 201
    resp = await client.post(
        "/api/v1/auth/sign-up",
        json={**SIGN_UP, "email": "someone@odoo-india.io", "company_name": "Odin Labs"},
    )
    assert resp.status_code == 409
    assert "company_prefix" in resp.json()["errors"]


async def test_sign_up_weak_password_rejected(client):
    resp = await client.post("/api/v1/auth/sign-up", json={**SIGN_UP, "password": "short"})
    assert resp.status_code == 422
    assert "password" in resp.json()["errors"]


async def test_sign_up_password_over_bcrypt_limit_rejected(client):
    resp = await client.post("/api/v1/auth/sign-up", json={**SIGN_UP, "password": "x" * 100})
    assert resp.status_code == 422
    assert "72 bytes" in resp.json()["errors"]["password"][0]

    # Multi-byte characters count by their encoded size
    resp = await client.post("/api/v1/auth/sign-up", json={**SIGN_UP, "password": "\u00e9" * 40})
    assert resp.status_code == 422


# ── Sign-in ─────────────────────────────────────────────────────────


async def test_sign_in_with_email(client, employee):
    resp = await client.post(
        "/api/v1/auth/sign-in",
        json={"identifier": employee["email"], "password": DEFAULT_PASSWORD},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["redirect_to"] == "/attendance"
    assert data["user"]["employee_id"] == str(employee["employee_id"])


async def test_sign_in_with_login_id_case_insensitive(client, employee):
    resp = await client.post(
        "/api/v1/auth/sign-in",
        json={"identifier": employee["login_id"].lower(), "password": DEFAULT_PASSWORD},
    )
    assert resp.status_code == 200
    assert resp.json()["user"]["login_id"] == employee["login_id"]


async def test_sign_in_wrong_password(client, employee):
    resp = await client.post(
        "/api/v1/auth/sign-in",
        json={"identifier": employee["email"], "password": "nope-nope"},
    )
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid credentials."


async def test_sign_in_overlong_password_is_unauthorized(client, employee):
    resp = await client.post(
        "/api/v1/auth/sign-in",
        json={"identifier": employee["email"], "password": DEFAULT_PASSWORD + "x" * 100},
    )
    assert resp.status_code == 401


async def test_sign_in_unknown_identifier(client):
    resp = await client.post(
        "/api/v1/auth/sign-in",
        json={"identifier": "nobody@acme.io", "password": DEFAULT_PASSWORD},
    )
    assert resp.status_code == 401


async def test_sign_in_inactive_user(client, db, employee):
    user = await db.get(User, employee["user_id"])
    user.is_active = False
    await db.commit()

    resp = await client.post(
        "/api/v1/auth/sign-in",
        json={"identifier": employee["email"], "password": DEFAULT_PASSWORD},
    )
    assert resp.status_code == 401


async def test_jwt_has_expected_claims(client, employee):
    resp = await client.post(
        "/api/v1/auth/sign-in",
        json={"identifier": employee["email"], "password": DEFAULT_PASSWORD},
    )
    token = resp.json()["access_token"]
    payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    assert payload["sub"] == str(employee["user_id"])
    assert payload["role"] == "employee"
    assert payload["company_id"] == str(employee["company_id"])
    assert payload["type"] == "access"
    assert "exp" in payload


async def test_sign_in_persists_session(client, employee):
    await client.post(
        "/api/v1/auth/sign-in",
        json={"identifier": employee["email"], "password": DEFAULT_PASSWORD},
    )
    async with TestSessionFactory() as session:
        sessions = (await session.execute(
            select(UserSession).where(UserSession.user_id == employee["user_id"])
        )).scalars().all()
    assert len(sessions) == 1
    assert sessions[0].is_revoked is False


async def test_sign_in_rate_limited(client, employee):
    body = {"identifier": employee["email"], "password": "wrong-password"}
    statuses = [
        (await client.post("/api/v1/auth/sign-in", json=body)).status_code
        for _ in range(11)
    ]
    assert statuses[:10] == [401] * 10
    assert statuses[10] == 429


# ── Current user / logout ───────────────────────────────────────────


async def test_me_returns_permissions(client, employee, auth_headers):
    resp = await client.get("/api/v1/auth/me", headers=auth_headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["email"] == employee["email"]
    assert data["display_name"] == "John Doe"
    assert set(data["permissions"]) == set(PERMISSIONS[UserRole.employee])


async def test_missing_token_is_unauthorized(client):
    resp = await client.get("/api/v1/auth/me")
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Bearer"


async def test_expired_token_is_unauthorized(client, employee):
    token = create_access_token(employee["user_id"], expired=True)
    resp = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert "expired" in resp.json()["detail"].lower()


async def test_token_without_session_is_unauthorized(client, employee):
    token = create_access_token(employee["user_id"])
    resp = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


async def test_wrong_token_type_is_unauthorized(client, employee):
    token = create_access_token(employee["user_id"], token_type="refresh")
    resp = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


async def test_logout_revokes_session(client, auth_headers):
    resp = await client.post("/api/v1/auth/logout", headers=auth_headers)
    assert resp.status_code == 200
    resp = await client.get("/api/v1/auth/me", headers=auth_headers)
    assert resp.status_code == 401


# ── Change password ─────────────────────────────────────────────────


async def test_change_password_clears_flag(client, db, employee, auth_headers):
    user = await db.get(User, employee["user_id"])
    user.must_change_password = True
    await db.commit()

    resp = await client.post(
        "/api/v1/auth/change-password",
        headers=auth_headers,
        json={"current_password": DEFAULT_PASSWORD, "new_password": "BrandNew#2026"},
    )
    assert resp.status_code == 200

    resp = await client.post(
        "/api/v1/auth/sign-in",
        json={"identifier": employee["email"], "password": "BrandNew#2026"},
    )
    assert resp.status_code == 200
    assert resp.json()["user"]["must_change_password"] is False


async def test_change_password_wrong_current(client, auth_headers):
    resp = await client.post(
        "/api/v1/auth/change-password",
        headers=auth_headers,
        json={"current_password": "not-it", "new_password": "BrandNew#2026"},
    )
    assert resp.status_code == 422
    assert "current_password" in resp.json()["errors"]


async def test_change_password_too_long(client, auth_headers):
    resp = await client.post(
        "/api/v1/auth/change-password",
        headers=auth_headers,
        json={"current_password": DEFAULT_PASSWORD, "new_password": "Ab1!" * 20},
    )
    assert resp.status_code == 422
    assert "new_password" in resp.json()["errors"]


async def test_change_password_too_short(client, auth_headers):
    resp = await client.post(
        "/api/v1/auth/change-password",
        headers=auth_headers,
        json={"current_password": DEFAULT_PASSWORD, "new_password": "abc"},
    )
    assert resp.status_code == 422


# ── RBAC ────────────────────────────────────────────────────────────


async def test_employee_cannot_reach_admin_endpoint(client, auth_headers):
    resp = await client.get("/api/v1/attendance", headers=auth_headers)
    assert resp.status_code == 403


async def test_admin_inherits_employee_rights(client, admin_headers):
    resp = await client.get("/api/v1/attendance/today", headers=admin_headers)
    assert resp.status_code == 200


async def test_unknown_user_in_token(client, db, company):
    ghost = {
        "user_id": uuid.uuid4(),
        "role": UserRole.employee,
        "company_id": company["id"],
    }
    from tests.conftest import login_headers

    headers = await login_headers(db, ghost)
    resp = await client.get("/api/v1/auth/me", headers=headers)
    assert resp.status_code == 401
