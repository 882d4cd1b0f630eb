# =======================================================================================
# campus_visitor/services/auth_service.py - Authentication and Sessions
# =======================================================================================
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, Tuple

from jose import JWTError, jwt
from sqlalchemy.engine import Connection

from ..config import config
from ..models.enums import Role
from ..schema import pwd_context
from ..utils.exceptions import AuthenticationError
from .store import EntityStore

Row = Dict[str, Any]


class AuthService:
    """Handles staff and visitor login plus signed session tokens."""

    def __init__(self, store: Optional[EntityStore] = None):
        self.store = store or EntityStore()

    def hash_password(self, password: str) -> str:
        return pwd_context.hash(password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        try:
            return pwd_context.verify(plain_password, hashed_password)
        except (ValueError, TypeError):
            return False

    # ---------- sessions ----------

    def create_access_token(self, subject: str, role: Role,
                            expires_delta: Optional[timedelta] = None) -> str:
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
        )
        claims = {"sub": subject, "role": role, "exp": expire}
        return jwt.encode(claims, config.SECRET_KEY, algorithm=config.JWT_ALGORITHM)

    def decode_access_token(self, token: str) -> Optional[Dict[str, Any]]:
        """Return the claims of a valid, unexpired token, otherwise None."""
        try:
            claims = jwt.decode(token, config.SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
        except JWTError:
            return None
        if not claims.get("sub") or not claims.get("role"):
            return None
        return claims

    # ---------- staff ----------

    def authenticate_faculty(self, conn: Connection, username: str, password: str,
                             admin_secret_key: Optional[str] = None) -> Tuple[Row, Role]:
        """
        Check faculty credentials. Supplying an admin secret key asks for an
        admin session, which needs both the admin flag and the matching key.
        """
        faculty = self.store.get_faculty_by_username(conn, username)
        if not faculty or not self.verify_password(password, faculty["password_hash"]):
            raise AuthenticationError("Invalid credentials")

        if admin_secret_key:
            stored_key = faculty.get("admin_secret_key") or ""
            if not faculty["is_admin"] or not secrets.compare_digest(stored_key, admin_secret_key):
                raise AuthenticationError("Invalid admin credentials")
            return faculty, "admin"

        return faculty, "faculty"

    def authenticate_security(self, conn: Connection, username: str, password: str) -> Row:
        security = self.store.get_security_by_username(conn, username)
        if not security or not self.verify_password(password, security["password_hash"]):
            raise AuthenticationError("Invalid credentials")
        return security

    # ---------- visitors ----------

    def authenticate_visitor(self, conn: Connection, email: str, password: str) -> Row:
        profile = self.store.get_visitor_profile_by_email(conn, email)
        if not profile or not self.verify_password(password, profile["password_hash"]):
            raise AuthenticationError("Invalid email or password")
        return self.store.update_visitor_profile(conn, profile["id"], last_login_at=datetime.now())
