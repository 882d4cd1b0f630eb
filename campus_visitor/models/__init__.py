# =======================================================================================
# campus_visitor/models/__init__.py - Models Package
# =======================================================================================
from .schemas import *
from .enums import *

__all__ = [
    "FacultyLoginRequest", "SecurityLoginRequest", "AuthUser", "AuthResponse",
    "VisitorRegisterRequest", "VisitorLoginRequest", "TokenRequestCreate",
    "TokenVerificationRequest", "StatusCheckRequest", "VisitorContext",
    "VerificationResponse", "BulkVerifyRequest", "BulkVerifyResponse",
    "DirectTokenRequest", "HealthResponse",
    "RequestStatus", "TokenSource", "LogAction", "VerifyMethod", "Role",
    "VerificationOutcome",
]
