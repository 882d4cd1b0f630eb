# =======================================================================================
# campus_visitor/services/request_service.py - Token Request Workflow
# =======================================================================================
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.engine import Connection

from ..database import after_commit
from ..utils.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from ..utils.validators import VisitValidator
from .notification_service import NotificationService
from .store import EntityStore
from .token_service import TokenIssuanceService

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

DEFAULT_APPROVAL_MESSAGE = "Request approved"


class RequestWorkflowService:
    """
    pending -> approved | rejected, each request exactly once.

    Approval issues the token in the same transaction as the status change,
    so an approved request always has its token.
    """

    def __init__(self, store: Optional[EntityStore] = None,
                 tokens: Optional[TokenIssuanceService] = None,
                 notifier: Optional[NotificationService] = None):
        self.store = store or EntityStore()
        self.notifier = notifier or NotificationService()
        self.tokens = tokens or TokenIssuanceService(store=self.store, notifier=self.notifier)

    def create_request(self, conn: Connection, profile_id: str, faculty_id: str,
                       department_id: str, purpose: str, visit_date: date) -> Row:
        """Submit a visit request on behalf of a visitor profile."""
        VisitValidator.require(purpose=purpose, departmentId=department_id,
                               facultyId=faculty_id, visitDate=visit_date)

        profile = self.store.get_visitor_profile_by_id(conn, profile_id)
        if not profile:
            raise NotFoundError("Visitor profile not found")

        department = self.store.get_department_by_id(conn, department_id)
        if not department:
            raise ValidationError("Invalid department selected")

        faculty = self.store.get_faculty_by_id(conn, faculty_id)
        if not faculty:
            raise ValidationError("Invalid faculty selected")
        if faculty["department_id"] != department_id:
            raise ValidationError("Selected faculty does not belong to the selected department")

        VisitValidator.validate_visit_date(visit_date)

        visitor = self.store.create_visitor(
            conn,
            name=profile["name"],
            email=profile["email"],
            phone=profile["phone"],
            purpose=purpose.strip(),
            company=profile.get("company"),
            address=profile.get("address"),
            profile_id=profile["id"],
        )
        request = self.store.create_token_request(
            conn,
            visitor_id=visitor["id"],
            faculty_id=faculty_id,
            department_id=department_id,
            purpose=purpose.strip(),
            visit_date=visit_date,
        )
        logger.info("Token request %s submitted by %s for %s", request["id"], profile["id"], faculty_id)

        expanded = self.store.expand_request(conn, request)
        after_commit(conn, lambda: self.notifier.request_submitted(expanded))
        return expanded

    def _load_owned_pending(self, conn: Connection, request_id: str, faculty_id: str, verb: str) -> Row:
        request = self.store.get_token_request_by_id(conn, request_id)
        if not request:
            raise NotFoundError("Request not found")
        if request["faculty_id"] != faculty_id:
            raise PermissionDeniedError(f"Unauthorized to {verb} this request")
        if request["status"] != "pending":
            raise ConflictError("Request has already been processed")
        return request

    def approve(self, conn: Connection, request_id: str, faculty_id: str,
                message: Optional[str] = None) -> Row:
        """Approve a pending request and issue its token. Returns the expanded token."""
        request = self._load_owned_pending(conn, request_id, faculty_id, "approve")

        message = (message or "").strip() or DEFAULT_APPROVAL_MESSAGE
        if not self.store.transition_request(conn, request_id, "approved", datetime.now(), message):
            raise ConflictError("Request has already been processed")

        visitor = self.store.get_visitor_by_id(conn, request["visitor_id"])
        faculty = self.store.get_faculty_by_id(conn, faculty_id)
        token = self.tokens.issue_token(
            conn, visitor, faculty, request["visit_date"], "approval", request_id=request_id,
        )
        logger.info("Request %s approved by %s; token %s", request_id, faculty_id, token["token_code"])

        after_commit(conn, lambda: self.notifier.token_issued(token, approved=True))
        return token

    def reject(self, conn: Connection, request_id: str, faculty_id: str, message: Optional[str]) -> Row:
        """Reject a pending request with a reason. Returns the expanded request."""
        if not message or not message.strip():
            raise ValidationError("Rejection reason is required")

        self._load_owned_pending(conn, request_id, faculty_id, "reject")
        if not self.store.transition_request(conn, request_id, "rejected", datetime.now(), message.strip()):
            raise ConflictError("Request has already been processed")
        logger.info("Request %s rejected by %s", request_id, faculty_id)

        request = self.store.expand_request(conn, self.store.get_token_request_by_id(conn, request_id))
        reason = message.strip()
        after_commit(conn, lambda: self.notifier.request_rejected(request, reason))
        return request

    def list_for_faculty(self, conn: Connection, faculty_id: str) -> List[Row]:
        return [self.store.expand_request(conn, r)
                for r in self.store.get_token_requests_by_faculty(conn, faculty_id)]

    def find_inconsistencies(self, conn: Connection) -> List[Row]:
        """Approved requests without a token; the store should never contain any."""
        return [r for r in self.store.get_all_token_requests(conn)
                if r["status"] == "approved" and not self.store.get_token_by_request(conn, r["id"])]
