"""Employee login-ID and temporary-password generation.

Login IDs follow ``<CO><FN><LN><YYYY><NNNN>``: two letters of the company
prefix, two of the first name, two of the last name, joining year and a
zero-padded joining serial, e.g. ``OIJODO20220001``.

Serial allocation lives in :meth:`EmployeeService.next_joining_serial`;
everything here is pure.
"""

from __future__ import annotations

import secrets
import string

PREFIX_LENGTH = 2
PASSWORD_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits + "!@#$%"
DEFAULT_PASSWORD_LENGTH = 12
SERIAL_WIDTH = 4


def _segment(value: str) -> str:
    # Shorter names yield a shorter segment
    return value[:2].upper()


def generate_login_id(
    company_prefix: str,
    first_name: str,
    last_name: str,
    year: int,
    serial: int,
) -> str:
    """Build a login ID; serials wider than four digits are kept whole."""
    return (
        _segment(company_prefix)
        + _segment(first_name)
        + _segment(last_name)
        + str(year)
        + str(serial).zfill(SERIAL_WIDTH)
    )


def generate_random_password(length: int = DEFAULT_PASSWORD_LENGTH) -> str:
    """Temporary password drawn from :data:`PASSWORD_ALPHABET` with a CSPRNG."""
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def company_prefix_from_name(name: str) -> str:
    """First two letters of *name*; shorter when the name has fewer letters."""
    return "".join(ch for ch in name if ch.isalpha())[:2].upper()


def admin_login_id(prefix: str) -> str:
    """Login ID of the administrator created at company sign-up."""
    return f"{prefix.upper()}ADMIN001"
