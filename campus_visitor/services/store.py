# =======================================================================================
# campus_visitor/services/store.py - Entity Store
# =======================================================================================
import secrets
import string
import time
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from ..utils.exceptions import StoreError

Row = Dict[str, Any]

BASE36 = string.digits + string.ascii_lowercase

DATETIME_COLUMNS = {"created_at", "response_date", "used_at", "expires_at", "last_login_at"}
DATE_COLUMNS = {"visit_date"}
BOOL_COLUMNS = {"is_used", "is_admin"}

# Columns an update_* call may touch; everything else is fixed at creation
MUTABLE_COLUMNS = {
    "token_requests": {"status", "response_date", "response_message"},
    "tokens": {"is_used", "used_at", "used_by_security_id"},
    "visitor_profiles": {"name", "phone", "company", "address", "password_hash", "last_login_at"},
}


def new_id(prefix: str) -> str:
    """Timestamp plus random suffix, e.g. ``tok-1718000000000-k3j9x0a1b``."""
    suffix = "".join(secrets.choice(BASE36) for _ in range(9))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"


def _to_db(value: Any) -> Any:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _from_db(row) -> Optional[Row]:
    if row is None:
        return None
    out = dict(row)
    for key, value in out.items():
        if value is None:
            continue
        if key in DATETIME_COLUMNS:
            out[key] = datetime.fromisoformat(value)
        elif key in DATE_COLUMNS:
            out[key] = date.fromisoformat(value)
        elif key in BOOL_COLUMNS:
            out[key] = bool(value)
    return out


class EntityStore:
    """
    Repository over the visitor-management tables.

    Writes are normalized (foreign keys only); the ``expand_*`` helpers
    resolve related entities at read time. Every method runs on the caller's
    connection so several calls can share one transaction.
    """

    # ---------- generic helpers ----------

    def _one(self, conn: Connection, query: str, params: dict) -> Optional[Row]:
        return _from_db(conn.execute(text(query), params).mappings().first())

    def _all(self, conn: Connection, query: str, params: dict = None) -> List[Row]:
        return [_from_db(r) for r in conn.execute(text(query), params or {}).mappings().all()]

    def _insert(self, conn: Connection, table: str, prefix: str, values: Row) -> Row:
        row = {"id": new_id(prefix), **values, "created_at": datetime.now()}
        columns = ", ".join(row)
        placeholders = ", ".join(f":{c}" for c in row)
        try:
            conn.execute(
                text(f"INSERT INTO {table} ({columns}) VALUES ({placeholders})"),
                {k: _to_db(v) for k, v in row.items()},
            )
        except IntegrityError as e:
            raise StoreError(f"Could not create {table} record: {e.orig}") from e
        return row

    def _update(self, conn: Connection, table: str, entity_id: str, updates: Row) -> bool:
        allowed = MUTABLE_COLUMNS[table]
        unknown = set(updates) - allowed
        if unknown:
            raise StoreError(f"Columns not updatable on {table}: {', '.join(sorted(unknown))}")
        if not updates:
            return self._one(conn, f"SELECT id FROM {table} WHERE id=:id", {"id": entity_id}) is not None
        assignments = ", ".join(f"{c}=:{c}" for c in updates)
        params = {k: _to_db(v) for k, v in updates.items()}
        params["id"] = entity_id
        result = conn.execute(text(f"UPDATE {table} SET {assignments} WHERE id=:id"), params)
        return result.rowcount > 0

    # ---------- departments ----------

    def get_departments(self, conn: Connection) -> List[Row]:
        return self._all(conn, "SELECT * FROM departments ORDER BY id")

    def get_department_by_id(self, conn: Connection, department_id: str) -> Optional[Row]:
        return self._one(conn, "SELECT * FROM departments WHERE id=:id", {"id": department_id})

    # ---------- faculty ----------

    def get_faculty(self, conn: Connection) -> List[Row]:
        return [self._with_department(conn, f) for f in self._all(conn, "SELECT * FROM faculty ORDER BY id")]

    def get_faculty_by_id(self, conn: Connection, faculty_id: str) -> Optional[Row]:
        faculty = self._one(conn, "SELECT * FROM faculty WHERE id=:id", {"id": faculty_id})
        return self._with_department(conn, faculty) if faculty else None

    def get_faculty_by_username(self, conn: Connection, username: str) -> Optional[Row]:
        faculty = self._one(conn, "SELECT * FROM faculty WHERE username=:u", {"u": username})
        return self._with_department(conn, faculty) if faculty else None

    def get_faculty_by_department(self, conn: Connection, department_id: str) -> List[Row]:
        rows = self._all(conn, "SELECT * FROM faculty WHERE department_id=:d ORDER BY id", {"d": department_id})
        return [self._with_department(conn, f) for f in rows]

    def _with_department(self, conn: Connection, faculty: Row) -> Row:
        faculty["department"] = self.get_department_by_id(conn, faculty["department_id"])
        return faculty

    # ---------- security staff ----------

    def get_security_by_id(self, conn: Connection, security_id: str) -> Optional[Row]:
        return self._one(conn, "SELECT * FROM security_staff WHERE id=:id", {"id": security_id})

    def get_security_by_username(self, conn: Connection, username: str) -> Optional[Row]:
        return self._one(conn, "SELECT * FROM security_staff WHERE username=:u", {"u": username})

    # ---------- visitor profiles ----------

    def create_visitor_profile(self, conn: Connection, name: str, email: str, phone: str,
                               address: str, password_hash: str, company: Optional[str] = None) -> Row:
        return self._insert(conn, "visitor_profiles", "prof", {
            "name": name, "email": email, "phone": phone, "company": company,
            "address": address, "password_hash": password_hash, "last_login_at": None,
        })

    def get_visitor_profile_by_id(self, conn: Connection, profile_id: str) -> Optional[Row]:
        return self._one(conn, "SELECT * FROM visitor_profiles WHERE id=:id", {"id": profile_id})

    def get_visitor_profile_by_email(self, conn: Connection, email: str) -> Optional[Row]:
        return self._one(conn, "SELECT * FROM visitor_profiles WHERE email=:e", {"e": email.strip().lower()})

    def update_visitor_profile(self, conn: Connection, profile_id: str, **updates) -> Optional[Row]:
        if not self._update(conn, "visitor_profiles", profile_id, updates):
            return None
        return self.get_visitor_profile_by_id(conn, profile_id)

    # ---------- visitors ----------

    def create_visitor(self, conn: Connection, name: str, email: str, phone: str, purpose: str,
                       company: Optional[str] = None, address: Optional[str] = None,
                       profile_id: Optional[str] = None) -> Row:
        return self._insert(conn, "visitors", "vis", {
            "name": name, "email": email, "phone": phone, "purpose": purpose,
            "company": company, "address": address, "profile_id": profile_id,
        })

    def get_visitor_by_id(self, conn: Connection, visitor_id: str) -> Optional[Row]:
        return self._one(conn, "SELECT * FROM visitors WHERE id=:id", {"id": visitor_id})

    def get_visitors_by_profile(self, conn: Connection, profile_id: str) -> List[Row]:
        return self._all(conn, "SELECT * FROM visitors WHERE profile_id=:p ORDER BY created_at", {"p": profile_id})

    # ---------- token requests ----------

    def create_token_request(self, conn: Connection, visitor_id: str, faculty_id: str,
                             department_id: str, purpose: str, visit_date: date) -> Row:
        return self._insert(conn, "token_requests", "req", {
            "visitor_id": visitor_id, "faculty_id": faculty_id, "department_id": department_id,
            "purpose": purpose, "visit_date": visit_date, "status": "pending",
            "response_date": None, "response_message": None,
        })

    def get_token_request_by_id(self, conn: Connection, request_id: str) -> Optional[Row]:
        return self._one(conn, "SELECT * FROM token_requests WHERE id=:id", {"id": request_id})

    def get_token_requests_by_faculty(self, conn: Connection, faculty_id: str) -> List[Row]:
        return self._all(
            conn, "SELECT * FROM token_requests WHERE faculty_id=:f ORDER BY created_at DESC, id DESC",
            {"f": faculty_id},
        )

    def get_token_requests_by_visitor(self, conn: Connection, visitor_id: str) -> List[Row]:
        return self._all(conn, "SELECT * FROM token_requests WHERE visitor_id=:v", {"v": visitor_id})

    def get_all_token_requests(self, conn: Connection) -> List[Row]:
        return self._all(conn, "SELECT * FROM token_requests ORDER BY created_at DESC, id DESC")

    def update_token_request(self, conn: Connection, request_id: str, **updates) -> Optional[Row]:
        if not self._update(conn, "token_requests", request_id, updates):
            return None
        return self.get_token_request_by_id(conn, request_id)

    def transition_request(self, conn: Connection, request_id: str, status: str,
                           response_date: datetime, response_message: Optional[str]) -> bool:
        """Move a pending request to a terminal status; False if it was not pending."""
        result = conn.execute(
            text("""
                UPDATE token_requests
                SET status=:status, response_date=:rd, response_message=:rm
                WHERE id=:id AND status='pending'
            """),
            {"status": status, "rd": _to_db(response_date), "rm": response_message, "id": request_id},
        )
        return result.rowcount == 1

    def expand_request(self, conn: Connection, request: Row) -> Row:
        request = dict(request)
        request["visitor"] = self.get_visitor_by_id(conn, request["visitor_id"])
        request["faculty"] = self.get_faculty_by_id(conn, request["faculty_id"])
        request["department"] = self.get_department_by_id(conn, request["department_id"])
        return request

    # ---------- tokens ----------

    def create_token(self, conn: Connection, token_code: str, qr_code_data: str, visitor_id: str,
                     faculty_id: str, visit_date: date, expires_at: datetime, generated_by: str,
                     request_id: Optional[str] = None) -> Row:
        return self._insert(conn, "tokens", "tok", {
            "token_code": token_code, "qr_code_data": qr_code_data, "visitor_id": visitor_id,
            "faculty_id": faculty_id, "request_id": request_id, "visit_date": visit_date,
            "is_used": False, "used_at": None, "used_by_security_id": None,
            "expires_at": expires_at, "generated_by": generated_by,
        })

    def token_code_exists(self, conn: Connection, token_code: str) -> bool:
        return conn.execute(
            text("SELECT 1 FROM tokens WHERE token_code=:c"), {"c": token_code}
        ).first() is not None

    def get_token_by_id(self, conn: Connection, token_id: str) -> Optional[Row]:
        return self._one(conn, "SELECT * FROM tokens WHERE id=:id", {"id": token_id})

    def get_token_by_code(self, conn: Connection, token_code: str) -> Optional[Row]:
        return self._one(conn, "SELECT * FROM tokens WHERE token_code=:c", {"c": token_code})

    def get_tokens_by_faculty(self, conn: Connection, faculty_id: str) -> List[Row]:
        return self._all(
            conn, "SELECT * FROM tokens WHERE faculty_id=:f ORDER BY created_at DESC, id DESC",
            {"f": faculty_id},
        )

    def get_tokens_by_visitors(self, conn: Connection, visitor_ids: Iterable[str]) -> List[Row]:
        tokens: List[Row] = []
        for visitor_id in visitor_ids:
            tokens.extend(self._all(conn, "SELECT * FROM tokens WHERE visitor_id=:v", {"v": visitor_id}))
        return sorted(tokens, key=lambda t: t["created_at"], reverse=True)

    def get_token_by_request(self, conn: Connection, request_id: str) -> Optional[Row]:
        return self._one(conn, "SELECT * FROM tokens WHERE request_id=:r", {"r": request_id})

    def get_all_tokens(self, conn: Connection) -> List[Row]:
        return self._all(conn, "SELECT * FROM tokens ORDER BY created_at DESC, id DESC")

    def update_token(self, conn: Connection, token_id: str, **updates) -> Optional[Row]:
        if updates.get("is_used") is False:
            raise StoreError("A used token cannot be reset")
        if not self._update(conn, "tokens", token_id, updates):
            return None
        return self.get_token_by_id(conn, token_id)

    def mark_token_used(self, conn: Connection, token_id: str, security_id: str, used_at: datetime) -> bool:
        """Flip is_used false -> true; False if someone else already did."""
        result = conn.execute(
            text("""
                UPDATE tokens
                SET is_used=1, used_at=:ts, used_by_security_id=:sid
                WHERE id=:id AND is_used=0
            """),
            {"ts": _to_db(used_at), "sid": security_id, "id": token_id},
        )
        return result.rowcount == 1

    def expand_token(self, conn: Connection, token: Row) -> Row:
        token = dict(token)
        token["visitor"] = self.get_visitor_by_id(conn, token["visitor_id"])
        token["faculty"] = self.get_faculty_by_id(conn, token["faculty_id"])
        token["request"] = (
            self.get_token_request_by_id(conn, token["request_id"]) if token["request_id"] else None
        )
        return token

    # ---------- security logs ----------

    def create_security_log(self, conn: Connection, token_id: Optional[str], security_id: str,
                            action: str, method: str, notes: str) -> Row:
        return self._insert(conn, "security_logs", "log", {
            "token_id": token_id, "security_id": security_id,
            "action": action, "method": method, "notes": notes,
        })

    def get_security_logs(self, conn: Connection, security_id: Optional[str] = None) -> List[Row]:
        if security_id:
            return self._all(
                conn, "SELECT * FROM security_logs WHERE security_id=:s ORDER BY created_at DESC, id DESC",
                {"s": security_id},
            )
        return self._all(conn, "SELECT * FROM security_logs ORDER BY created_at DESC, id DESC")

    def get_security_logs_by_token(self, conn: Connection, token_id: str) -> List[Row]:
        return self._all(conn, "SELECT * FROM security_logs WHERE token_id=:t ORDER BY created_at", {"t": token_id})
