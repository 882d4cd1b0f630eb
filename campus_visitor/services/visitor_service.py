# =======================================================================================
# campus_visitor/services/visitor_service.py - Visitor Self-Service
# =======================================================================================
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.engine import Connection

from ..database import after_commit
from ..utils.exceptions import NotFoundError, ValidationError
from ..utils.validators import VisitValidator
from .auth_service import AuthService
from .notification_service import NotificationService
from .store import EntityStore
from .verification_service import VerificationService
from .views import token_view

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class VisitorService:
    """Visitor profiles and their tokens."""

    def __init__(self, store: Optional[EntityStore] = None, auth: Optional[AuthService] = None,
                 notifier: Optional[NotificationService] = None):
        self.store = store or EntityStore()
        self.auth = auth or AuthService(self.store)
        self.notifier = notifier or NotificationService()

    def register(self, conn: Connection, name: str, email: str, phone: str, address: str,
                 password: str, company: Optional[str] = None) -> Row:
        VisitValidator.require(name=name, email=email, phone=phone, address=address, password=password)
        VisitValidator.validate_password(password)
        email = VisitValidator.validate_email(email)
        phone = VisitValidator.validate_phone(phone)

        if self.store.get_visitor_profile_by_email(conn, email):
            raise ValidationError(
                "A visitor profile already exists with this email address. Please login instead."
            )

        profile = self.store.create_visitor_profile(
            conn,
            name=name.strip(),
            email=email,
            phone=phone,
            address=address.strip(),
            password_hash=self.auth.hash_password(password),
            company=company.strip() if company else None,
        )
        logger.info("Visitor profile %s registered", profile["id"])
        after_commit(conn, lambda: self.notifier.welcome(profile))
        return profile

    def list_tokens(self, conn: Connection, profile_id: str) -> List[Row]:
        """The profile's tokens with their current, non-destructive status."""
        if not self.store.get_visitor_profile_by_id(conn, profile_id):
            raise NotFoundError("Visitor profile not found")

        visitor_ids = [v["id"] for v in self.store.get_visitors_by_profile(conn, profile_id)]
        views = []
        for token in self.store.get_tokens_by_visitors(conn, visitor_ids):
            view = token_view(self.store.expand_token(conn, token))
            view["status"] = VerificationService.evaluate(token).value
            views.append(view)
        return views

    def list_requests(self, conn: Connection, profile_id: str) -> List[Row]:
        requests = []
        for visitor in self.store.get_visitors_by_profile(conn, profile_id):
            for request in self.store.get_token_requests_by_visitor(conn, visitor["id"]):
                requests.append(self.store.expand_request(conn, request))
        return sorted(requests, key=lambda r: r["created_at"], reverse=True)
