# =======================================================================================
# campus_visitor/services/token_service.py - Token Issuance
# =======================================================================================
import logging
import secrets
import string
import time
from datetime import date, datetime, time as dtime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy.engine import Connection

from ..config import config
from ..database import after_commit
from ..models.enums import TokenSource
from ..utils.exceptions import NotFoundError, StoreError
from ..utils.validators import VisitValidator
from .notification_service import NotificationService
from .qr_service import QRCodeService, qr_service as default_qr_service
from .store import EntityStore

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

CODE_ALPHABET = string.digits + string.ascii_uppercase
RANDOM_PART_LENGTH = 6


def to_base36(number: int) -> str:
    if number < 0:
        raise ValueError("base36 encoding needs a non-negative number")
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(CODE_ALPHABET[rem])
    return "".join(reversed(digits))


def generate_token_code(prefix: Optional[str] = None, now_ms: Optional[int] = None) -> str:
    """``MIT-<base36 epoch millis>-<6 random base36 chars>``, uppercase."""
    prefix = (prefix or config.TOKEN_CODE_PREFIX).upper()
    now_ms = int(time.time() * 1000) if now_ms is None else now_ms
    suffix = "".join(secrets.choice(CODE_ALPHABET) for _ in range(RANDOM_PART_LENGTH))
    return f"{prefix}-{to_base36(now_ms)}-{suffix}"


def calculate_token_expiry(visit_date: date) -> datetime:
    """Default expiry: 23:59:59 on the day after the visit."""
    return datetime.combine(visit_date + timedelta(days=1), dtime(23, 59, 59))


class TokenIssuanceService:
    """Creates tokens from approved requests or directly for faculty."""

    def __init__(self, store: Optional[EntityStore] = None, qr: Optional[QRCodeService] = None,
                 notifier: Optional[NotificationService] = None):
        self.store = store or EntityStore()
        self.qr = qr or default_qr_service
        self.notifier = notifier or NotificationService()

    def _unique_code(self, conn: Connection) -> str:
        for _ in range(max(1, config.TOKEN_CODE_ATTEMPTS)):
            code = generate_token_code()
            if not self.store.token_code_exists(conn, code):
                return code
            logger.warning("Token code collision on %s; retrying", code)
        raise StoreError("Could not generate a unique token code")

    def issue_token(self, conn: Connection, visitor: Row, faculty: Row, visit_date: date,
                    generated_by: TokenSource, request_id: Optional[str] = None,
                    expires_at: Optional[datetime] = None) -> Row:
        """
        Create an unused token for ``visitor`` issued by ``faculty``.

        ``expires_at`` defaults to the end of the day after ``visit_date``; an
        explicit value must fall after the start of the visit day.
        Returns the expanded token row. Does not send any notification.
        """
        if expires_at is None:
            expires_at = calculate_token_expiry(visit_date)
        VisitValidator.validate_expiry(visit_date, expires_at)

        department = faculty.get("department") or {}
        code = self._unique_code(conn)
        qr_data = self.qr.encode(
            code,
            visitor_name=visitor["name"],
            faculty_name=faculty["name"],
            department_name=department.get("name", ""),
            visit_date=visit_date,
            expires_at=expires_at,
        )
        token = self.store.create_token(
            conn,
            token_code=code,
            qr_code_data=qr_data,
            visitor_id=visitor["id"],
            faculty_id=faculty["id"],
            visit_date=visit_date,
            expires_at=expires_at,
            generated_by=generated_by,
            request_id=request_id,
        )
        logger.info("Issued token %s (%s) for visitor %s by %s",
                    code, generated_by, visitor["id"], faculty["id"])
        return self.store.expand_token(conn, token)

    def generate_direct_token(self, conn: Connection, faculty_id: str, visitor_name: str,
                              visitor_email: str, visitor_phone: str, purpose: str,
                              visit_date: date, expiry_date: Optional[datetime] = None) -> Row:
        """Faculty-issued token without a prior request."""
        VisitValidator.require(visitorName=visitor_name, visitorEmail=visitor_email,
                               visitorPhone=visitor_phone, purpose=purpose, visitDate=visit_date)
        email = VisitValidator.validate_email(visitor_email)
        VisitValidator.validate_visit_date(visit_date)
        if expiry_date is not None:
            if expiry_date.tzinfo is not None:
                expiry_date = expiry_date.astimezone().replace(tzinfo=None)
            VisitValidator.validate_expiry(visit_date, expiry_date, now=datetime.now())

        faculty = self.store.get_faculty_by_id(conn, faculty_id)
        if not faculty:
            raise NotFoundError("Faculty not found")

        profile = self.store.get_visitor_profile_by_email(conn, email)
        visitor = self.store.create_visitor(
            conn,
            name=visitor_name.strip(),
            email=email,
            phone=visitor_phone.strip(),
            purpose=purpose.strip(),
            company=profile.get("company") if profile else None,
            address=profile.get("address") if profile else None,
            profile_id=profile["id"] if profile else None,
        )
        token = self.issue_token(conn, visitor, faculty, visit_date, "faculty", expires_at=expiry_date)
        after_commit(conn, lambda: self.notifier.token_issued(token, approved=False))
        return token
