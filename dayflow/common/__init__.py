"""Common module — shared utilities for Dayflow."""

from dayflow.common.audit import AuditTrail, create_audit_entry, list_audit_entries
from dayflow.common.constants import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    PERMISSIONS,
    TIMEZONE,
    AttendanceState,
    AttendanceStatus,
    AttendanceView,
    GenderType,
    LeaveStatus,
    LeaveType,
    PresenceIndicator,
    UserRole,
)
from dayflow.common.exceptions import (
    AppException,
    ConflictError,
    ForbiddenException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
    register_exception_handlers,
)
from dayflow.common.filters import apply_filters, apply_search
from dayflow.common.pagination import (
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    paginate,
)
from dayflow.common.storage import save_upload

__all__ = [
    # Audit
    "AuditTrail",
    "create_audit_entry",
    "list_audit_entries",
    # Constants / Enums
    "AttendanceState",
    "AttendanceStatus",
    "AttendanceView",
    "GenderType",
    "LeaveStatus",
    "LeaveType",
    "PresenceIndicator",
    "UserRole",
    "PERMISSIONS",
    "TIMEZONE",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    # Exceptions
    "AppException",
    "ConflictError",
    "ForbiddenException",
    "NotFoundException",
    "UnauthorizedException",
    "ValidationException",
    "register_exception_handlers",
    # Filters
    "apply_filters",
    "apply_search",
    # Pagination
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationParams",
    "paginate",
    # Storage
    "save_upload",
]
