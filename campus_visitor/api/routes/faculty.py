# =======================================================================================
# campus_visitor/api/routes/faculty.py - Faculty Endpoints
# =======================================================================================
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Response

from ...database import db_manager
from ...models.enums import ReportPeriod
from ...models.schemas import (
    ApproveRequestBody, ApproveResponse, DirectTokenRequest, DirectTokenResponse,
    IssuedToken, MessageResponse, RejectRequestBody, TokenSummary,
)
from ...services.dashboard_service import DashboardService
from ...services.document_service import DocumentService
from ...services.request_service import RequestWorkflowService
from ...services.store import EntityStore
from ...services.views import request_view, token_purpose
from ...utils.exceptions import NotFoundError, PermissionDeniedError
from ..dependencies import Principal, require_role

router = APIRouter()
store = EntityStore()
workflow = RequestWorkflowService(store)
dashboard_service = DashboardService(store, workflow)
document_service = DocumentService()

faculty_only = require_role("faculty")


@router.get("/faculty/dashboard")
def dashboard(principal: Principal = Depends(faculty_only)):
    with db_manager.get_connection() as conn:
        data = dashboard_service.faculty_dashboard(conn, principal.id)
    return {"success": True, **data}


@router.get("/faculty/requests")
def list_requests(principal: Principal = Depends(faculty_only)):
    with db_manager.get_connection() as conn:
        requests = workflow.list_for_faculty(conn, principal.id)
    return {"success": True, "requests": [request_view(r) for r in requests]}


@router.get("/faculty/reports")
def reports(period: Optional[ReportPeriod] = None, startDate: Optional[date] = None,
            endDate: Optional[date] = None, principal: Principal = Depends(faculty_only)):
    with db_manager.get_connection() as conn:
        data = dashboard_service.faculty_reports(conn, principal.id, period, startDate, endDate)
    return {"success": True, **data}


@router.post("/faculty/requests/{request_id}/approve", response_model=ApproveResponse)
def approve_request(request_id: str, body: Optional[ApproveRequestBody] = None,
                    principal: Principal = Depends(faculty_only)):
    with db_manager.get_connection() as conn:
        token = workflow.approve(conn, request_id, principal.id, body.message if body else None)

    return ApproveResponse(
        success=True,
        message="Request approved and token generated",
        token=TokenSummary(id=token["id"], tokenCode=token["token_code"], expiresAt=token["expires_at"]),
    )


@router.post("/faculty/requests/{request_id}/reject", response_model=MessageResponse)
def reject_request(request_id: str, body: Optional[RejectRequestBody] = None,
                   principal: Principal = Depends(faculty_only)):
    with db_manager.get_connection() as conn:
        workflow.reject(conn, request_id, principal.id, body.message if body else None)
    return MessageResponse(success=True, message="Request rejected")


@router.post("/faculty/token/generate", response_model=DirectTokenResponse)
def generate_token(request: DirectTokenRequest, principal: Principal = Depends(faculty_only)):
    with db_manager.get_connection() as conn:
        token = workflow.tokens.generate_direct_token(
            conn,
            faculty_id=principal.id,
            visitor_name=request.visitorName,
            visitor_email=request.visitorEmail,
            visitor_phone=request.visitorPhone,
            purpose=request.purpose,
            visit_date=request.visitDate,
            expiry_date=request.expiryDate,
        )

    faculty = token["faculty"]
    return DirectTokenResponse(
        success=True,
        message="Token generated successfully",
        token=IssuedToken(
            id=token["id"],
            tokenCode=token["token_code"],
            qrCodeData=token["qr_code_data"],
            visitorName=token["visitor"]["name"],
            facultyName=faculty["name"],
            departmentName=(faculty.get("department") or {}).get("name", ""),
            purpose=token_purpose(token),
            visitDate=token["visit_date"],
            expiresAt=token["expires_at"],
        ),
        pdfUrl=f"/api/faculty/token/{token['id']}/pdf",
    )


@router.get("/faculty/token/{token_id}/pdf")
def token_document(token_id: str, principal: Principal = Depends(faculty_only)):
    """Printable pass for one of the caller's tokens."""
    with db_manager.get_connection() as conn:
        token = store.get_token_by_id(conn, token_id)
        if not token:
            raise NotFoundError("Token not found")
        if token["faculty_id"] != principal.id:
            raise PermissionDeniedError("Unauthorized to access this token")
        expanded = store.expand_token(conn, token)

    return Response(
        content=document_service.render_token_document(expanded),
        media_type="text/html",
        headers={"Content-Disposition": f'inline; filename="visitor-token-{token["token_code"]}.html"'},
    )
