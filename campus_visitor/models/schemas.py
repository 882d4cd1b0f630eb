# =======================================================================================
# campus_visitor/models/schemas.py - Pydantic Models
# =======================================================================================
from datetime import date, datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field
from .enums import Role

# ========== Auth ==========

class FacultyLoginRequest(BaseModel):
    """Faculty login; an admin secret key upgrades the session to admin."""
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    adminSecretKey: Optional[str] = Field(None, description="Admin secret key for admin login")

class SecurityLoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

class AuthUser(BaseModel):
    id: str
    name: str
    username: Optional[str] = None
    email: Optional[str] = None
    role: Role
    department: Optional[Dict[str, Any]] = None

class AuthResponse(BaseModel):
    success: bool
    message: str
    token: str = ""
    user: Optional[AuthUser] = None

# ========== Visitor ==========

class VisitorRegisterRequest(BaseModel):
    """Visitor profile registration."""
    name: str = Field(..., description="Visitor's full name")
    email: str = Field(..., description="Contact email, also the login id")
    phone: str = Field(..., description="10 digit phone number")
    company: Optional[str] = None
    address: str
    password: str

class VisitorLoginRequest(BaseModel):
    email: str
    password: str

class TokenRequestCreate(BaseModel):
    """A visitor's ask for faculty approval."""
    purpose: str
    departmentId: str
    facultyId: str
    visitDate: date

class VisitorProfileResponse(BaseModel):
    success: bool
    message: str
    profileId: Optional[str] = None
    token: Optional[str] = None
    profile: Optional[Dict[str, Any]] = None

class TokenRequestCreated(BaseModel):
    success: bool
    message: str
    requestId: str

# ========== Verification ==========

class TokenVerificationRequest(BaseModel):
    tokenCode: Optional[str] = None
    qrData: Optional[str] = None

class StatusCheckRequest(BaseModel):
    tokenCode: str

class VisitorContext(BaseModel):
    """Who presented the token; shown to gate staff."""
    name: str = ""
    email: str = ""
    phone: str = ""
    purpose: str = ""
    facultyName: str = ""
    departmentName: str = ""
    visitDate: str = ""

class VerificationResponse(BaseModel):
    success: bool
    valid: bool
    message: str
    status: Optional[str] = None
    visitor: Optional[VisitorContext] = None

class BulkVerifyRequest(BaseModel):
    tokens: List[str]

class BulkVerifyResult(BaseModel):
    tokenCode: str
    valid: bool
    message: str
    status: str
    visitor: Optional[VisitorContext] = None

class BulkVerifySummary(BaseModel):
    total: int
    verified: int
    rejected: int

class BulkVerifyResponse(BaseModel):
    success: bool
    results: List[BulkVerifyResult]
    summary: BulkVerifySummary

# ========== Faculty ==========

class ApproveRequestBody(BaseModel):
    message: Optional[str] = None

class RejectRequestBody(BaseModel):
    message: Optional[str] = Field(None, description="Rejection reason (required)")

class TokenSummary(BaseModel):
    id: str
    tokenCode: str
    expiresAt: datetime

class ApproveResponse(BaseModel):
    success: bool
    message: str
    token: TokenSummary

class MessageResponse(BaseModel):
    success: bool
    message: str

class DirectTokenRequest(BaseModel):
    visitorName: str
    visitorEmail: str
    visitorPhone: str
    purpose: str
    visitDate: date
    expiryDate: Optional[datetime] = None

class IssuedToken(BaseModel):
    id: str
    tokenCode: str
    qrCodeData: str
    visitorName: str
    facultyName: str
    departmentName: str
    purpose: str
    visitDate: date
    expiresAt: datetime

class DirectTokenResponse(BaseModel):
    success: bool
    message: str
    token: IssuedToken
    pdfUrl: str

# ========== Health ==========

class HealthResponse(BaseModel):
    status: str                 # "ok" | "error"
    dataAvailable: bool
    message: Optional[str] = None
