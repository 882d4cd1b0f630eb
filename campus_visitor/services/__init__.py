# =======================================================================================
# campus_visitor/services/__init__.py - Services Package
# =======================================================================================
from .store import EntityStore
from .qr_service import QRCodeService
from .token_service import TokenIssuanceService
from .request_service import RequestWorkflowService
from .verification_service import VerificationService, VerificationResult
from .notification_service import NotificationService
from .auth_service import AuthService
from .visitor_service import VisitorService
from .dashboard_service import DashboardService
from .document_service import DocumentService

__all__ = [
    "EntityStore", "QRCodeService", "TokenIssuanceService", "RequestWorkflowService",
    "VerificationService", "VerificationResult", "NotificationService", "AuthService",
    "VisitorService", "DashboardService", "DocumentService",
]
