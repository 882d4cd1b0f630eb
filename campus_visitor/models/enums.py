# =======================================================================================
# campus_visitor/models/enums.py - Enums and Constants
# =======================================================================================
from enum import Enum
from typing import Literal

# Type aliases for better type hints
RequestStatus = Literal["pending", "approved", "rejected"]
TokenSource = Literal["faculty", "approval"]
LogAction = Literal["scanned", "verified", "rejected"]
VerifyMethod = Literal["qr", "manual"]
Role = Literal["faculty", "admin", "security", "visitor"]
ReportPeriod = Literal["today", "week", "month"]

class VerificationOutcome(Enum):
    """Result of validating a token at the gate."""
    VALID = "valid"
    NOT_FOUND = "not_found"
    ALREADY_USED = "already_used"
    EXPIRED = "expired"

    @property
    def reason(self) -> str:
        return OUTCOME_MESSAGES[self]

OUTCOME_MESSAGES = {
    VerificationOutcome.VALID: "Token is valid",
    VerificationOutcome.NOT_FOUND: "Token not found",
    VerificationOutcome.ALREADY_USED: "Token has already been used",
    VerificationOutcome.EXPIRED: "Token has expired",
}
