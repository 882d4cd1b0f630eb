# =======================================================================================
# campus_visitor/api/routes/visitor.py - Visitor Self-Service Endpoints
# =======================================================================================
from fastapi import APIRouter, Depends, status

from ...database import db_manager
from ...models.schemas import (
    TokenRequestCreate, TokenRequestCreated, VisitorLoginRequest,
    VisitorProfileResponse, VisitorRegisterRequest,
)
from ...services.auth_service import AuthService
from ...services.request_service import RequestWorkflowService
from ...services.store import EntityStore
from ...services.views import profile_view, request_view
from ...services.visitor_service import VisitorService
from ..dependencies import Principal, require_role

router = APIRouter()
store = EntityStore()
auth_service = AuthService(store)
visitor_service = VisitorService(store, auth=auth_service)
workflow = RequestWorkflowService(store)


@router.post("/visitor/register", response_model=VisitorProfileResponse,
             status_code=status.HTTP_201_CREATED)
def register(request: VisitorRegisterRequest):
    with db_manager.get_connection() as conn:
        profile = visitor_service.register(
            conn,
            name=request.name,
            email=request.email,
            phone=request.phone,
            address=request.address,
            password=request.password,
            company=request.company,
        )

    return VisitorProfileResponse(
        success=True,
        message="Visitor profile created successfully",
        profileId=profile["id"],
        token=auth_service.create_access_token(profile["id"], "visitor"),
        profile=profile_view(profile),
    )


@router.post("/visitor/login", response_model=VisitorProfileResponse)
def login(request: VisitorLoginRequest):
    with db_manager.get_connection() as conn:
        profile = auth_service.authenticate_visitor(conn, request.email, request.password)

    return VisitorProfileResponse(
        success=True,
        message="Login successful",
        profileId=profile["id"],
        token=auth_service.create_access_token(profile["id"], "visitor"),
        profile=profile_view(profile),
    )


@router.post("/visitor/request-token", response_model=TokenRequestCreated,
             status_code=status.HTTP_201_CREATED)
def request_token(request: TokenRequestCreate,
                  principal: Principal = Depends(require_role("visitor"))):
    with db_manager.get_connection() as conn:
        created = workflow.create_request(
            conn,
            profile_id=principal.id,
            faculty_id=request.facultyId,
            department_id=request.departmentId,
            purpose=request.purpose,
            visit_date=request.visitDate,
        )

    return TokenRequestCreated(
        success=True,
        message="Token request submitted successfully. You will receive an email once it is reviewed.",
        requestId=created["id"],
    )


@router.get("/visitor/tokens")
def my_tokens(principal: Principal = Depends(require_role("visitor"))):
    with db_manager.get_connection() as conn:
        tokens = visitor_service.list_tokens(conn, principal.id)
    return {"success": True, "tokens": tokens}


@router.get("/visitor/requests")
def my_requests(principal: Principal = Depends(require_role("visitor"))):
    with db_manager.get_connection() as conn:
        requests = visitor_service.list_requests(conn, principal.id)
    return {"success": True, "requests": [request_view(r) for r in requests]}
