# =======================================================================================
# campus_visitor/api/dependencies.py - FastAPI Dependencies
# =======================================================================================
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..database import db_manager
from ..models.enums import Role
from ..services.auth_service import AuthService
from ..services.store import EntityStore
from ..utils.exceptions import AuthenticationError, PermissionDeniedError

bearer_scheme = HTTPBearer(auto_error=False)
auth_service = AuthService()
store = EntityStore()


@dataclass
class Principal:
    id: str
    role: Role


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> Principal:
    """Resolve the Bearer session token into the calling user."""
    if credentials is None:
        raise AuthenticationError("Access token required")
    claims = auth_service.decode_access_token(credentials.credentials)
    if claims is None:
        raise AuthenticationError("Invalid or expired token")
    return Principal(id=claims["sub"], role=claims["role"])


def require_role(role: Role):
    """Dependency factory: the caller must hold exactly ``role``."""
    def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role != role:
            raise PermissionDeniedError("Insufficient permissions")
        return principal
    return dependency


def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Admin sessions, or faculty members flagged as admins."""
    if principal.role == "admin":
        return principal
    if principal.role == "faculty":
        with db_manager.get_connection() as conn:
            faculty = store.get_faculty_by_id(conn, principal.id)
        if faculty and faculty["is_admin"]:
            return principal
    raise PermissionDeniedError("Admin access required")
