# =======================================================================================
# campus_visitor/schema.py - Table Definitions and Seed Data
# =======================================================================================
from datetime import datetime
from typing import Dict

from passlib.context import CryptContext
from sqlalchemy import text
from sqlalchemy.engine import Connection

from .config import config

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

TABLES = [
    """
    CREATE TABLE IF NOT EXISTS departments (
        id          VARCHAR(64) PRIMARY KEY,
        name        VARCHAR(255) NOT NULL,
        code        VARCHAR(16) NOT NULL UNIQUE,
        created_at  VARCHAR(32) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS faculty (
        id                VARCHAR(64) PRIMARY KEY,
        name              VARCHAR(255) NOT NULL,
        email             VARCHAR(255) NOT NULL,
        username          VARCHAR(100) NOT NULL UNIQUE,
        password_hash     VARCHAR(255) NOT NULL,
        department_id     VARCHAR(64) NOT NULL REFERENCES departments(id),
        is_admin          INTEGER NOT NULL DEFAULT 0,
        admin_secret_key  VARCHAR(255),
        created_at        VARCHAR(32) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS security_staff (
        id             VARCHAR(64) PRIMARY KEY,
        name           VARCHAR(255) NOT NULL,
        username       VARCHAR(100) NOT NULL UNIQUE,
        password_hash  VARCHAR(255) NOT NULL,
        created_at     VARCHAR(32) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS visitor_profiles (
        id             VARCHAR(64) PRIMARY KEY,
        name           VARCHAR(255) NOT NULL,
        email          VARCHAR(255) NOT NULL UNIQUE,
        phone          VARCHAR(32) NOT NULL,
        company        VARCHAR(255),
        address        VARCHAR(512) NOT NULL,
        password_hash  VARCHAR(255) NOT NULL,
        last_login_at  VARCHAR(32),
        created_at     VARCHAR(32) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS visitors (
        id          VARCHAR(64) PRIMARY KEY,
        name        VARCHAR(255) NOT NULL,
        email       VARCHAR(255) NOT NULL,
        phone       VARCHAR(32) NOT NULL,
        purpose     VARCHAR(1024) NOT NULL,
        company     VARCHAR(255),
        address     VARCHAR(512),
        profile_id  VARCHAR(64) REFERENCES visitor_profiles(id),
        created_at  VARCHAR(32) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS token_requests (
        id                VARCHAR(64) PRIMARY KEY,
        visitor_id        VARCHAR(64) NOT NULL REFERENCES visitors(id),
        faculty_id        VARCHAR(64) NOT NULL REFERENCES faculty(id),
        department_id     VARCHAR(64) NOT NULL REFERENCES departments(id),
        purpose           VARCHAR(1024) NOT NULL,
        visit_date        VARCHAR(10) NOT NULL,
        status            VARCHAR(16) NOT NULL DEFAULT 'pending',
        response_date     VARCHAR(32),
        response_message  VARCHAR(1024),
        created_at        VARCHAR(32) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tokens (
        id                   VARCHAR(64) PRIMARY KEY,
        token_code           VARCHAR(64) NOT NULL UNIQUE,
        qr_code_data         TEXT NOT NULL,
        visitor_id           VARCHAR(64) NOT NULL REFERENCES visitors(id),
        faculty_id           VARCHAR(64) NOT NULL REFERENCES faculty(id),
        request_id           VARCHAR(64) REFERENCES token_requests(id),
        visit_date           VARCHAR(10) NOT NULL,
        is_used              INTEGER NOT NULL DEFAULT 0,
        used_at              VARCHAR(32),
        used_by_security_id  VARCHAR(64),
        expires_at           VARCHAR(32) NOT NULL,
        generated_by         VARCHAR(16) NOT NULL,
        created_at           VARCHAR(32) NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS security_logs (
        id           VARCHAR(64) PRIMARY KEY,
        token_id     VARCHAR(64),
        security_id  VARCHAR(64) NOT NULL,
        action       VARCHAR(16) NOT NULL,
        method       VARCHAR(16) NOT NULL,
        notes        VARCHAR(1024),
        created_at   VARCHAR(32) NOT NULL
    )
    """,
]

DROP_ORDER = [
    "security_logs", "tokens", "token_requests", "visitors",
    "visitor_profiles", "security_staff", "faculty", "departments",
]

DEPARTMENTS = [
    ("dept-1", "Computer Science & Engineering", "CSE"),
    ("dept-2", "Information Technology", "IT"),
    ("dept-3", "Electronics & Communication", "ECE"),
    ("dept-4", "Mechanical Engineering", "MECH"),
    ("dept-5", "Civil Engineering", "CIVIL"),
    ("dept-6", "Management Studies", "MBA"),
]

# (id, name, email, username, department_id, is_admin)
FACULTY = [
    ("fac-1", "Dr. Rajesh Kumar", "rajesh.kumar@mitadt.edu.in", "rajesh.kumar", "dept-1", False),
    ("fac-2", "Prof. Priya Sharma", "priya.sharma@mitadt.edu.in", "priya.sharma", "dept-1", False),
    ("fac-3", "Dr. Amit Patel", "amit.patel@mitadt.edu.in", "amit.patel", "dept-2", False),
    ("fac-4", "Prof. Sneha Gupta", "sneha.gupta@mitadt.edu.in", "sneha.gupta", "dept-3", False),
    ("fac-5", "Dr. Vikram Singh", "vikram.singh@mitadt.edu.in", "vikram.singh", "dept-4", False),
    ("admin-1", "Dr. Admin Director", "admin@mitadt.edu.in", "admin", "dept-1", True),
]

SECURITY = [
    ("sec-1", "Security Guard 1", "security1"),
    ("sec-2", "Security Guard 2", "security2"),
]

SEED_CREATED_AT = datetime(2024, 1, 1).isoformat()

_hash_cache: Dict[str, str] = {}


def _seed_hash(password: str) -> str:
    # Seed accounts share a handful of passwords
    if password not in _hash_cache:
        _hash_cache[password] = pwd_context.hash(password)
    return _hash_cache[password]


def create_tables(conn: Connection) -> None:
    for ddl in TABLES:
        conn.execute(text(ddl))


def drop_tables(conn: Connection) -> None:
    for table in DROP_ORDER:
        conn.execute(text(f"DROP TABLE IF EXISTS {table}"))


def seed(conn: Connection) -> None:
    """Load departments, faculty and security staff."""
    for dept_id, name, code in DEPARTMENTS:
        conn.execute(
            text("INSERT INTO departments (id, name, code, created_at) VALUES (:id, :name, :code, :ts)"),
            {"id": dept_id, "name": name, "code": code, "ts": SEED_CREATED_AT},
        )

    for fac_id, name, email, username, dept_id, is_admin in FACULTY:
        password = config.SEED_ADMIN_PASSWORD if is_admin else config.SEED_FACULTY_PASSWORD
        conn.execute(
            text("""
                INSERT INTO faculty (id, name, email, username, password_hash, department_id,
                                     is_admin, admin_secret_key, created_at)
                VALUES (:id, :name, :email, :username, :pw, :dept, :admin, :key, :ts)
            """),
            {
                "id": fac_id, "name": name, "email": email, "username": username,
                "pw": _seed_hash(password), "dept": dept_id, "admin": int(is_admin),
                "key": config.ADMIN_SECRET_KEY if is_admin else None, "ts": SEED_CREATED_AT,
            },
        )

    for sec_id, name, username in SECURITY:
        conn.execute(
            text("""
                INSERT INTO security_staff (id, name, username, password_hash, created_at)
                VALUES (:id, :name, :username, :pw, :ts)
            """),
            {"id": sec_id, "name": name, "username": username,
             "pw": _seed_hash(config.SEED_SECURITY_PASSWORD), "ts": SEED_CREATED_AT},
        )
