# =======================================================================================
# campus_visitor/api/routes/auth.py - Staff Authentication Endpoints
# =======================================================================================
from fastapi import APIRouter

from ...database import db_manager
from ...models.schemas import AuthResponse, AuthUser, FacultyLoginRequest, SecurityLoginRequest
from ...services.auth_service import AuthService
from ...services.store import EntityStore
from ...services.views import department_view

router = APIRouter()
auth_service = AuthService()
store = EntityStore()


@router.post("/auth/faculty/login", response_model=AuthResponse)
def faculty_login(request: FacultyLoginRequest):
    with db_manager.get_connection() as conn:
        faculty, role = auth_service.authenticate_faculty(
            conn, request.username, request.password, request.adminSecretKey
        )

    token = auth_service.create_access_token(faculty["id"], role)
    return AuthResponse(
        success=True,
        message="Admin login successful" if role == "admin" else "Faculty login successful",
        token=token,
        user=AuthUser(
            id=faculty["id"],
            name=faculty["name"],
            email=faculty["email"],
            username=faculty["username"],
            role=role,
            department=department_view(faculty["department"]),
        ),
    )


@router.post("/auth/security/login", response_model=AuthResponse)
def security_login(request: SecurityLoginRequest):
    with db_manager.get_connection() as conn:
        security = auth_service.authenticate_security(conn, request.username, request.password)

    token = auth_service.create_access_token(security["id"], "security")
    return AuthResponse(
        success=True,
        message="Security login successful",
        token=token,
        user=AuthUser(id=security["id"], name=security["name"],
                      username=security["username"], role="security"),
    )


@router.get("/auth/departments-faculty")
def departments_and_faculty():
    """Departments with their (non-admin) faculty, for the request form."""
    with db_manager.get_connection() as conn:
        departments = store.get_departments(conn)
        faculty = store.get_faculty(conn)

    return {
        "success": True,
        "departments": [
            {
                **department_view(dept),
                "faculty": [
                    {"id": f["id"], "name": f["name"], "email": f["email"]}
                    for f in faculty if f["department_id"] == dept["id"] and not f["is_admin"]
                ],
            }
            for dept in departments
        ],
    }
