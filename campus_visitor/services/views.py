# =======================================================================================
# campus_visitor/services/views.py - API Views of Store Rows
# =======================================================================================
"""
Store rows use snake_case columns; the frontend expects camelCase JSON.
Credentials (password hashes, admin secret keys) never leave this module.
"""
from typing import Any, Dict, Optional

Row = Dict[str, Any]


def department_view(dept: Optional[Row]) -> Optional[Row]:
    if not dept:
        return None
    return {"id": dept["id"], "name": dept["name"], "code": dept["code"]}


def faculty_view(faculty: Optional[Row]) -> Optional[Row]:
    if not faculty:
        return None
    return {
        "id": faculty["id"],
        "name": faculty["name"],
        "email": faculty["email"],
        "username": faculty["username"],
        "departmentId": faculty["department_id"],
        "isAdmin": faculty["is_admin"],
        "department": department_view(faculty.get("department")),
    }


def visitor_view(visitor: Optional[Row]) -> Optional[Row]:
    if not visitor:
        return None
    return {
        "id": visitor["id"],
        "name": visitor["name"],
        "email": visitor["email"],
        "phone": visitor["phone"],
        "purpose": visitor["purpose"],
        "company": visitor.get("company"),
        "address": visitor.get("address"),
        "createdAt": visitor["created_at"],
    }


def profile_view(profile: Row) -> Row:
    return {
        "id": profile["id"],
        "name": profile["name"],
        "email": profile["email"],
        "phone": profile["phone"],
        "company": profile.get("company"),
        "address": profile["address"],
        "lastLoginAt": profile.get("last_login_at"),
    }


def request_view(request: Row) -> Row:
    """Expects a row from ``EntityStore.expand_request``."""
    return {
        "id": request["id"],
        "visitorId": request["visitor_id"],
        "facultyId": request["faculty_id"],
        "departmentId": request["department_id"],
        "purpose": request["purpose"],
        "visitDate": request["visit_date"],
        "status": request["status"],
        "responseDate": request.get("response_date"),
        "responseMessage": request.get("response_message"),
        "createdAt": request["created_at"],
        "visitor": visitor_view(request.get("visitor")),
        "faculty": faculty_view(request.get("faculty")),
        "department": department_view(request.get("department")),
    }


def token_view(token: Row) -> Row:
    """Expects a row from ``EntityStore.expand_token``."""
    request = token.get("request")
    return {
        "id": token["id"],
        "tokenCode": token["token_code"],
        "qrCodeData": token["qr_code_data"],
        "visitorId": token["visitor_id"],
        "facultyId": token["faculty_id"],
        "requestId": token.get("request_id"),
        "visitDate": token["visit_date"],
        "isUsed": token["is_used"],
        "usedAt": token.get("used_at"),
        "usedBySecurityId": token.get("used_by_security_id"),
        "expiresAt": token["expires_at"],
        "generatedBy": token["generated_by"],
        "createdAt": token["created_at"],
        "visitor": visitor_view(token.get("visitor")),
        "faculty": faculty_view(token.get("faculty")),
        "purpose": token_purpose(token),
        "requestStatus": request["status"] if request else None,
    }


def log_view(log: Row, token_code: Optional[str] = None) -> Row:
    return {
        "id": log["id"],
        "tokenId": log.get("token_id"),
        "tokenCode": token_code,
        "securityId": log["security_id"],
        "action": log["action"],
        "method": log["method"],
        "notes": log.get("notes"),
        "createdAt": log["created_at"],
    }


def token_purpose(token: Row) -> str:
    request = token.get("request")
    if request and request.get("purpose"):
        return request["purpose"]
    visitor = token.get("visitor")
    return (visitor or {}).get("purpose") or ""
