# =======================================================================================
# campus_visitor/api/routes/admin.py - Admin Endpoints
# =======================================================================================
from datetime import date, datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Response

from ...database import db_manager
from ...models.enums import ReportPeriod, RequestStatus
from ...services.dashboard_service import DashboardService
from ...services.document_service import DocumentService
from ...services.views import request_view, token_view
from ..dependencies import Principal, require_admin

router = APIRouter()
dashboard_service = DashboardService()
document_service = DocumentService()


@router.get("/admin/dashboard")
def dashboard(principal: Principal = Depends(require_admin)):
    with db_manager.get_connection() as conn:
        data = dashboard_service.admin_dashboard(conn)
    return {"success": True, **data}


@router.get("/admin/requests")
def all_requests(period: Optional[ReportPeriod] = None, startDate: Optional[date] = None,
                 endDate: Optional[date] = None, status: Optional[RequestStatus] = None,
                 facultyId: Optional[str] = None, departmentId: Optional[str] = None,
                 principal: Principal = Depends(require_admin)):
    with db_manager.get_connection() as conn:
        requests = dashboard_service.admin_requests(
            conn, period, startDate, endDate, status, facultyId, departmentId
        )
    return {"success": True, "requests": requests}


@router.get("/admin/tokens")
def all_tokens(used: Optional[bool] = None, principal: Principal = Depends(require_admin)):
    with db_manager.get_connection() as conn:
        tokens = dashboard_service.admin_tokens(conn, used)
    return {"success": True, "tokens": tokens}


@router.get("/admin/report")
def report(period: Optional[ReportPeriod] = None, startDate: Optional[date] = None,
           endDate: Optional[date] = None, facultyId: Optional[str] = None,
           departmentId: Optional[str] = None,
           report_format: Optional[Literal["json", "pdf"]] = Query(None, alias="format"),
           principal: Principal = Depends(require_admin)):
    """Filtered requests, tokens and counts; ``format=pdf`` returns a printable page."""
    with db_manager.get_connection() as conn:
        data = dashboard_service.admin_report(conn, period, startDate, endDate, facultyId, departmentId)

    if report_format == "pdf":
        if period:
            label = period
        elif startDate and endDate:
            label = f"{startDate.isoformat()} to {endDate.isoformat()}"
        else:
            label = "All time"
        stamp = int(datetime.now().timestamp() * 1000)
        return Response(
            content=document_service.render_admin_report(data, label),
            media_type="text/html",
            headers={"Content-Disposition": f'inline; filename="admin_report_{stamp}.html"'},
        )

    return {
        "success": True,
        "requests": [request_view(r) for r in data["requests"]],
        "tokens": [token_view(t) for t in data["tokens"]],
        "stats": data["stats"],
        "period": data["period"],
    }


@router.get("/admin/faculty-departments")
def faculty_departments(principal: Principal = Depends(require_admin)):
    with db_manager.get_connection() as conn:
        options = dashboard_service.filter_options(conn)
    return {"success": True, **options}
