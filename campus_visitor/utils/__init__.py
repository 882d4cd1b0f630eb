# =======================================================================================
# campus_visitor/utils/__init__.py - Utils Package
# =======================================================================================
from .exceptions import *
from .validators import *

__all__ = [
    "CampusVisitorError", "ValidationError", "AuthenticationError",
    "PermissionDeniedError", "NotFoundError", "ConflictError", "StoreError",
    "VisitValidator", "period_window",
]
