"""Enums and constants for Dayflow — matching PostgreSQL ENUM types."""

from __future__ import annotations

import enum


# ── Employee ────────────────────────────────────────────────────────

class GenderType(str, enum.Enum):
    male = "male"
    female = "female"
    other = "other"


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    employee = "employee"
    admin = "admin"


# ── Time off ────────────────────────────────────────────────────────

class LeaveType(str, enum.Enum):
    paid = "paid"
    sick = "sick"
    unpaid = "unpaid"


class LeaveStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


# ── Attendance ──────────────────────────────────────────────────────

class AttendanceStatus(str, enum.Enum):
    present = "present"
    absent = "absent"
    half_day = "half-day"
    leave = "leave"


class AttendanceState(str, enum.Enum):
    """Next check-in/out action available to an employee today."""

    check_in = "check-in"
    check_out = "check-out"
    done = "done"


class AttendanceView(str, enum.Enum):
    day = "day"
    month = "month"


class PresenceIndicator(str, enum.Enum):
    """Directory badge: is the employee in today?"""

    present = "present"
    on_leave = "on_leave"
    absent = "absent"


# ── Role-based permissions ──────────────────────────────────────────

PERMISSIONS: dict[UserRole, list[str]] = {
    UserRole.employee: [
        "profile:read_own",
        "profile:update_own",
        "attendance:check_in",
        "attendance:read_own",
        "leave:request",
        "leave:read_own",
        "salary:read_own",
    ],
    UserRole.admin: [
        "profile:read_own",
        "profile:update_own",
        "profile:read_all",
        "profile:create",
        "profile:update",
        "profile:delete",
        "attendance:check_in",
        "attendance:read_own",
        "attendance:read_all",
        "leave:request",
        "leave:read_own",
        "leave:read_all",
        "leave:approve",
        "leave:reject",
        "salary:read_own",
        "salary:read_all",
        "salary:configure",
        "company:configure",
        "audit:read",
    ],
}

# Landing route after sign-in, per role
HOME_ROUTES: dict[UserRole, str] = {
    UserRole.admin: "/employees",
    UserRole.employee: "/attendance",
}

# ── Misc constants ──────────────────────────────────────────────────

TIMEZONE = "Asia/Kolkata"
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50
