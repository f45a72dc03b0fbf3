"""001 – Initial schema: tenants, users, employees, attendance, time off, salary.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-16 10:00:00.000000+05:30
"""

from alembic import op

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

ENUM_TYPES: list[tuple[str, list[str]]] = [
    ("gender_type", ["male", "female", "other"]),
    ("user_role", ["employee", "admin"]),
    ("attendance_status", ["present", "absent", "half-day", "leave"]),
    ("leave_type", ["paid", "sick", "unpaid"]),
    ("leave_status", ["pending", "approved", "rejected"]),
]


def _create_enum(name: str, values: list[str]) -> None:
    vals = ", ".join(f"'{v}'" for v in values)
    op.execute(f"""
        DO $$ BEGIN
            CREATE TYPE {name} AS ENUM ({vals});
        EXCEPTION WHEN duplicate_object THEN NULL;
        END $$
    """)


def _drop_enum(name: str) -> None:
    op.execute(f"DROP TYPE IF EXISTS {name}")


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # ── Extensions ────────────────────────────────────────────────────────
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ── Enum types ────────────────────────────────────────────────────────
    for name, values in ENUM_TYPES:
        _create_enum(name, values)

    # ── 1. companies ──────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE IF NOT EXISTS companies (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name        VARCHAR(200) NOT NULL,
            prefix      VARCHAR(10)  NOT NULL UNIQUE,
            logo_url    TEXT,
            created_at  TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ  NOT NULL DEFAULT NOW()
        )
    """)

    # ── 2. joining_sequences ──────────────────────────────────────────────
    op.execute("""
        CREATE TABLE IF NOT EXISTS joining_sequences (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            company_id  UUID    NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
            year        INTEGER NOT NULL,
            last_serial INTEGER NOT NULL DEFAULT 0,
            CONSTRAINT uq_joining_seq_company_year UNIQUE (company_id, year)
        )
    """)

    # ── 3. users ──────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id                   UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            company_id           UUID         NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
            email                VARCHAR(255) NOT NULL UNIQUE,
            password_hash        VARCHAR(255) NOT NULL,
            role                 user_role    NOT NULL DEFAULT 'employee',
            is_active            BOOLEAN      NOT NULL DEFAULT TRUE,
            must_change_password BOOLEAN      NOT NULL DEFAULT FALSE,
            last_login_at        TIMESTAMPTZ,
            created_at           TIMESTAMPTZ  NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_users_company ON users(company_id)")

    # ── 4. user_sessions ──────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_sessions (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id     UUID         NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            token_hash  VARCHAR(512) NOT NULL,
            ip_address  INET,
            user_agent  TEXT,
            expires_at  TIMESTAMPTZ  NOT NULL,
            is_revoked  BOOLEAN      NOT NULL DEFAULT FALSE,
            created_at  TIMESTAMPTZ  NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_user_sessions_user    ON user_sessions(user_id)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_user_sessions_token   ON user_sessions(token_hash)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_user_sessions_expires ON user_sessions(expires_at)")

    # ── 5. employees ──────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE IF NOT EXISTS employees (
            id                    UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            company_id            UUID         NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
            user_id               UUID UNIQUE  REFERENCES users(id) ON DELETE SET NULL,
            login_id              VARCHAR(50)  NOT NULL UNIQUE,
            joining_year          INTEGER      NOT NULL,
            joining_serial        INTEGER,
            first_name            VARCHAR(100) NOT NULL,
            last_name             VARCHAR(100) NOT NULL,
            email                 VARCHAR(255) NOT NULL UNIQUE,
            phone                 VARCHAR(20),
            profile_picture       TEXT,
            job_position          VARCHAR(150),
            department            VARCHAR(150),
            manager_id            UUID REFERENCES employees(id) ON DELETE SET NULL,
            location              VARCHAR(150),
            date_of_joining       DATE         NOT NULL,
            date_of_birth         DATE,
            residing_address      TEXT,
            nationality           VARCHAR(50),
            personal_email        VARCHAR(255),
            gender                gender_type,
            about                 TEXT,
            what_i_love_about_job TEXT,
            interests_hobbies     TEXT,
            skills                JSONB DEFAULT '[]'::jsonb,
            certifications        JSONB DEFAULT '[]'::jsonb,
            bank_name             VARCHAR(150),
            account_number        VARCHAR(50),
            ifsc_code             VARCHAR(20),
            pan_no                VARCHAR(20),
            uan_no                VARCHAR(20),
            emp_code              VARCHAR(50),
            created_at            TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            updated_at            TIMESTAMPTZ  NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_employees_company ON employees(company_id)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_employees_manager ON employees(manager_id)")

    # ── 6. attendance_records ─────────────────────────────────────────────
    op.execute("""
        CREATE TABLE IF NOT EXISTS attendance_records (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id  UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            date         DATE NOT NULL,
            check_in     TIME,
            check_out    TIME,
            work_hours   NUMERIC(5,2) DEFAULT 0,
            extra_hours  NUMERIC(5,2) DEFAULT 0,
            status       attendance_status NOT NULL DEFAULT 'present',
            created_at   TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at   TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_attendance_employee_date UNIQUE (employee_id, date)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_attendance_records_date ON attendance_records(date)")

    # ── 7. leave_balances ─────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE IF NOT EXISTS leave_balances (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id  UUID    NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            year         INTEGER NOT NULL,
            paid_leave   INTEGER NOT NULL DEFAULT 0,
            sick_leave   INTEGER NOT NULL DEFAULT 0,
            unpaid_leave INTEGER NOT NULL DEFAULT 0,
            updated_at   TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_leave_balance UNIQUE (employee_id, year)
        )
    """)

    # ── 8. leave_requests ─────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE IF NOT EXISTS leave_requests (
            id              UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id     UUID       NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            leave_type      leave_type NOT NULL,
            start_date      DATE       NOT NULL,
            end_date        DATE       NOT NULL,
            allocation      INTEGER    NOT NULL,
            remarks         TEXT,
            attachment_url  TEXT,
            status          leave_status NOT NULL DEFAULT 'pending',
            admin_comment   TEXT,
            reviewed_by     UUID REFERENCES users(id) ON DELETE SET NULL,
            reviewed_at     TIMESTAMPTZ,
            created_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT chk_leave_dates CHECK (end_date >= start_date)
        )
    """)
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_leave_requests_employee_dates "
        "ON leave_requests(employee_id, start_date, end_date)"
    )
    op.execute("CREATE INDEX IF NOT EXISTS idx_leave_req_status ON leave_requests(status)")

    # ── 9. salary_info ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE IF NOT EXISTS salary_info (
            id                                 UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_id                        UUID NOT NULL UNIQUE REFERENCES employees(id) ON DELETE CASCADE,
            monthly_wage                       NUMERIC(12,2) NOT NULL,
            yearly_wage                        NUMERIC(14,2) NOT NULL,
            working_days_per_week              NUMERIC(4,1)  DEFAULT 5,
            break_time_hours                   NUMERIC(4,2)  DEFAULT 1,
            basic_salary_percentage            NUMERIC(7,3)  NOT NULL,
            hra_percentage                     NUMERIC(7,3)  NOT NULL,
            standard_allowance_percentage      NUMERIC(7,3)  NOT NULL,
            performance_bonus_percentage       NUMERIC(7,3)  NOT NULL,
            leave_travel_allowance_percentage  NUMERIC(7,3)  NOT NULL,
            fixed_allowance                    NUMERIC(12,2),
            pf_employee_percentage             NUMERIC(7,3)  NOT NULL,
            pf_employer_percentage             NUMERIC(7,3)  NOT NULL,
            professional_tax                   NUMERIC(10,2) NOT NULL,
            created_at                         TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at                         TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # ── 10. audit_trail ───────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE IF NOT EXISTS audit_trail (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            company_id   UUID REFERENCES companies(id) ON DELETE CASCADE,
            actor_id     UUID,
            action       VARCHAR(50) NOT NULL,
            entity_type  VARCHAR(50) NOT NULL,
            entity_id    UUID        NOT NULL,
            old_values   JSONB,
            new_values   JSONB,
            ip_address   INET,
            user_agent   TEXT,
            created_at   TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_audit_trail_company_id ON audit_trail(company_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_audit_trail_entity     ON audit_trail(entity_type, entity_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_audit_trail_created_at ON audit_trail(created_at)")


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Drop tables in reverse dependency order
    tables = [
        "audit_trail",
        "salary_info",
        "leave_requests",
        "leave_balances",
        "attendance_records",
        "employees",
        "user_sessions",
        "users",
        "joining_sequences",
        "companies",
    ]
    for t in tables:
        op.execute(f"DROP TABLE IF EXISTS {t} CASCADE")

    # Drop enum types
    for name, _ in reversed(ENUM_TYPES):
        _drop_enum(name)

    op.execute('DROP EXTENSION IF EXISTS "uuid-ossp"')
