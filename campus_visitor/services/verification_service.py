# =======================================================================================
# campus_visitor/services/verification_service.py - Gate Verification
# =======================================================================================
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.engine import Connection

from ..models.enums import VerificationOutcome, VerifyMethod
from ..utils.exceptions import ValidationError
from .qr_service import QRCodeService, qr_service as default_qr_service
from .store import EntityStore
from .views import token_purpose

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

GRANTED_MESSAGE = "Token verified successfully. Entry granted."
GRANTED_NOTE = "entry granted"


@dataclass
class VerificationResult:
    token_code: Optional[str]
    outcome: VerificationOutcome
    message: str
    visitor: Optional[Row] = None
    token_id: Optional[str] = None

    @property
    def valid(self) -> bool:
        return self.outcome is VerificationOutcome.VALID


class VerificationService:
    """
    Resolves a presented token, validates it and consumes it.

    Checks run in order: exists, not used, not expired. A valid token is
    consumed with a compare-and-set on ``is_used`` so two concurrent
    verifications of the same code cannot both succeed. Every attempt is
    written to the security log; ``check_status`` writes nothing.
    """

    def __init__(self, store: Optional[EntityStore] = None, qr: Optional[QRCodeService] = None):
        self.store = store or EntityStore()
        self.qr = qr or default_qr_service

    @staticmethod
    def evaluate(token: Optional[Row], now: Optional[datetime] = None) -> VerificationOutcome:
        if not token:
            return VerificationOutcome.NOT_FOUND
        if token["is_used"]:
            return VerificationOutcome.ALREADY_USED
        if (now or datetime.now()) > token["expires_at"]:
            return VerificationOutcome.EXPIRED
        return VerificationOutcome.VALID

    def visitor_context(self, conn: Connection, token: Row) -> Row:
        """Details shown to gate staff, including on rejection."""
        expanded = self.store.expand_token(conn, token)
        visitor = expanded.get("visitor") or {}
        faculty = expanded.get("faculty") or {}
        department = faculty.get("department") or {}
        return {
            "name": visitor.get("name", ""),
            "email": visitor.get("email", ""),
            "phone": visitor.get("phone", ""),
            "purpose": token_purpose(expanded),
            "facultyName": faculty.get("name", ""),
            "departmentName": department.get("name", ""),
            "visitDate": token["visit_date"].isoformat() if token.get("visit_date") else "",
        }

    def _consume(self, conn: Connection, token_code: str, security_id: str,
                 method: VerifyMethod, note_prefix: str = "") -> VerificationResult:
        token = self.store.get_token_by_code(conn, token_code)
        now = datetime.now()
        outcome = self.evaluate(token, now)

        if outcome is VerificationOutcome.VALID:
            if not self.store.mark_token_used(conn, token["id"], security_id, now):
                outcome = VerificationOutcome.ALREADY_USED

        token_id = token["id"] if token else None
        if outcome is VerificationOutcome.VALID:
            self.store.create_security_log(conn, token_id, security_id, "verified", method,
                                           f"{note_prefix}{GRANTED_NOTE}")
            message = GRANTED_MESSAGE
        else:
            note = outcome.reason if token else f"{outcome.reason}: {token_code}"
            self.store.create_security_log(conn, token_id, security_id, "rejected", method,
                                           f"{note_prefix}{note}")
            message = outcome.reason

        logger.info("Verification of %s by %s via %s: %s", token_code, security_id, method, outcome.value)
        return VerificationResult(
            token_code=token_code,
            outcome=outcome,
            message=message,
            visitor=self.visitor_context(conn, token) if token else None,
            token_id=token_id,
        )

    def verify(self, conn: Connection, security_id: str, token_code: Optional[str] = None,
               qr_data: Optional[str] = None) -> VerificationResult:
        """Verify and consume a token presented as a code or as scanned QR data."""
        token_code = (token_code or "").strip() or None
        if not token_code and not (qr_data or "").strip():
            raise ValidationError("Token code or QR data is required")

        if qr_data and qr_data.strip():
            decoded = self.qr.decode(qr_data)
            if not decoded:
                self.store.create_security_log(conn, None, security_id, "rejected", "qr",
                                               f"Unreadable QR data: {qr_data.strip()[:500]}")
                logger.info("Unreadable QR data presented to %s", security_id)
                return VerificationResult(None, VerificationOutcome.NOT_FOUND,
                                          VerificationOutcome.NOT_FOUND.reason)
            return self._consume(conn, decoded, security_id, "qr")

        return self._consume(conn, token_code, security_id, "manual")

    def check_status(self, conn: Connection, token_code: str) -> VerificationResult:
        """Same validation as ``verify`` without consuming or logging."""
        token_code = (token_code or "").strip()
        if not token_code:
            raise ValidationError("Token code is required")

        token = self.store.get_token_by_code(conn, token_code)
        outcome = self.evaluate(token)
        message = "Token is valid and has not been used" if outcome is VerificationOutcome.VALID else outcome.reason
        return VerificationResult(
            token_code=token_code,
            outcome=outcome,
            message=message,
            visitor=self.visitor_context(conn, token) if token else None,
            token_id=token["id"] if token else None,
        )

    def bulk_verify(self, conn: Connection, security_id: str, token_codes: List[str]) -> List[VerificationResult]:
        """Verify each code independently, in order."""
        if not token_codes:
            raise ValidationError("Token codes array is required")

        return [self._consume(conn, (code or "").strip(), security_id, "manual",
                              note_prefix="Bulk verification: ")
                for code in token_codes]

    @staticmethod
    def summarize(results: List[VerificationResult]) -> Dict[str, int]:
        verified = sum(1 for r in results if r.valid)
        return {"total": len(results), "verified": verified, "rejected": len(results) - verified}
