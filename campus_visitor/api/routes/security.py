# =======================================================================================
# campus_visitor/api/routes/security.py - Gate Verification Endpoints
# =======================================================================================
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Response

from ...database import db_manager
from ...models.enums import ReportPeriod, VerificationOutcome
from ...models.schemas import (
    BulkVerifyRequest, BulkVerifyResponse, BulkVerifyResult, BulkVerifySummary,
    StatusCheckRequest, TokenVerificationRequest, VerificationResponse, VisitorContext,
)
from ...services.dashboard_service import DashboardService
from ...services.verification_service import VerificationResult, VerificationService
from ..dependencies import Principal, require_role

router = APIRouter()
verification_service = VerificationService()
dashboard_service = DashboardService()

OUTCOME_STATUS_CODES = {
    VerificationOutcome.VALID: 200,
    VerificationOutcome.NOT_FOUND: 404,
    VerificationOutcome.ALREADY_USED: 400,
    VerificationOutcome.EXPIRED: 400,
}


def _to_response(result: VerificationResult) -> VerificationResponse:
    return VerificationResponse(
        success=result.valid,
        valid=result.valid,
        message=result.message,
        status=result.outcome.value,
        visitor=VisitorContext(**result.visitor) if result.visitor else None,
    )


@router.post("/security/verify", response_model=VerificationResponse)
def verify_token(request: TokenVerificationRequest, response: Response,
                 principal: Principal = Depends(require_role("security"))):
    with db_manager.get_connection() as conn:
        result = verification_service.verify(conn, principal.id, request.tokenCode, request.qrData)

    response.status_code = OUTCOME_STATUS_CODES[result.outcome]
    return _to_response(result)


@router.post("/security/check-status", response_model=VerificationResponse)
def check_status(request: StatusCheckRequest, response: Response):
    """Read-only lookup; anyone holding a code may check it."""
    with db_manager.get_connection() as conn:
        result = verification_service.check_status(conn, request.tokenCode)

    response.status_code = OUTCOME_STATUS_CODES[result.outcome]
    return _to_response(result)


@router.post("/security/bulk-verify", response_model=BulkVerifyResponse)
def bulk_verify(request: BulkVerifyRequest,
                principal: Principal = Depends(require_role("security"))):
    with db_manager.get_connection() as conn:
        results = verification_service.bulk_verify(conn, principal.id, request.tokens)

    return BulkVerifyResponse(
        success=True,
        results=[
            BulkVerifyResult(
                tokenCode=r.token_code,
                valid=r.valid,
                message=r.message,
                status=r.outcome.value,
                visitor=VisitorContext(**r.visitor) if r.visitor else None,
            )
            for r in results
        ],
        summary=BulkVerifySummary(**verification_service.summarize(results)),
    )


@router.get("/security/dashboard")
def dashboard(principal: Principal = Depends(require_role("security"))):
    with db_manager.get_connection() as conn:
        data = dashboard_service.security_dashboard(conn, principal.id)
    return {"success": True, **data}


@router.get("/security/logs")
def logs(period: Optional[ReportPeriod] = None, startDate: Optional[date] = None,
         endDate: Optional[date] = None,
         principal: Principal = Depends(require_role("security"))):
    with db_manager.get_connection() as conn:
        entries = dashboard_service.security_logs(conn, principal.id, period, startDate, endDate)
    return {"success": True, "logs": entries}
