# =======================================================================================
# campus_visitor/utils/exceptions.py - Custom Exceptions
# =======================================================================================
class CampusVisitorError(Exception):
    """Base exception for the visitor management service."""
    error = "internal_error"
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message

class ValidationError(CampusVisitorError):
    """Raised when input is missing or malformed."""
    error = "validation_error"
    status_code = 400

class AuthenticationError(CampusVisitorError):
    """Raised when credentials or a session token are missing or invalid."""
    error = "unauthorized"
    status_code = 401

class PermissionDeniedError(CampusVisitorError):
    """Raised for the wrong role or a non-owning faculty member."""
    error = "permission_denied"
    status_code = 403

class NotFoundError(CampusVisitorError):
    """Raised when a request, token or other entity does not exist."""
    error = "not_found"
    status_code = 404

class ConflictError(CampusVisitorError):
    """Raised when a token request has already been processed."""
    error = "conflict"
    status_code = 409

class StoreError(CampusVisitorError):
    """Raised when the entity store cannot complete a write."""
    pass
