# =======================================================================================
# campus_visitor/services/dashboard_service.py
# =======================================================================================

from datetime import date, datetime, time
from typing import List, Dict, Any, Optional, Tuple

from sqlalchemy import text
from sqlalchemy.engine import Connection

from ..utils.exceptions import NotFoundError
from ..utils.validators import period_window
from .request_service import RequestWorkflowService
from .store import EntityStore
from .views import faculty_view, log_view, request_view, token_view, department_view


class DashboardService:
    """Aggregated statistics and filtered listings for the dashboards."""

    def __init__(self, store: Optional[EntityStore] = None,
                 workflow: Optional[RequestWorkflowService] = None):
        self.store = store or EntityStore()
        self.workflow = workflow or RequestWorkflowService(store=self.store)

    # ---------- helpers ----------

    @staticmethod
    def _where(clauses: List[Tuple[str, str, Any]]) -> Tuple[str, Dict[str, Any]]:
        parts, params = [], {}
        for sql, name, value in clauses:
            if value is None:
                continue
            parts.append(sql)
            params[name] = value.isoformat() if isinstance(value, (date, datetime)) else value
        return (" WHERE " + " AND ".join(parts)) if parts else "", params

    @staticmethod
    def _in_window(value: datetime, start: Optional[datetime], end: Optional[datetime]) -> bool:
        return (start is None or value >= start) and (end is None or value <= end)

    # ---------- summary ----------

    def get_stats(self, conn: Connection, faculty_id: Optional[str] = None,
                  department_id: Optional[str] = None, start: Optional[datetime] = None,
                  end: Optional[datetime] = None) -> Dict[str, int]:
        where, params = self._where([
            ("faculty_id = :fac", "fac", faculty_id),
            ("department_id = :dept", "dept", department_id),
            ("created_at >= :start", "start", start),
            ("created_at <= :end", "end", end),
        ])
        req = conn.execute(
            text(
                f"""
                SELECT
                  COUNT(*) AS total,
                  SUM(CASE WHEN status = 'pending'  THEN 1 ELSE 0 END) AS pending,
                  SUM(CASE WHEN status = 'approved' THEN 1 ELSE 0 END) AS approved,
                  SUM(CASE WHEN status = 'rejected' THEN 1 ELSE 0 END) AS rejected
                FROM token_requests{where}
                """
            ),
            params,
        ).mappings().first()

        today_start = datetime.combine(date.today(), time.min).isoformat()
        where, params = self._where([
            ("t.faculty_id = :fac", "fac", faculty_id),
            ("f.department_id = :dept", "dept", department_id),
            ("t.created_at >= :start", "start", start),
            ("t.created_at <= :end", "end", end),
        ])
        params["today"] = today_start
        tok = conn.execute(
            text(
                f"""
                SELECT
                  COUNT(*) AS generated,
                  SUM(CASE WHEN t.is_used = 1 THEN 1 ELSE 0 END) AS used,
                  SUM(CASE WHEN t.is_used = 1 AND t.used_at >= :today THEN 1 ELSE 0 END) AS today
                FROM tokens t
                JOIN faculty f ON f.id = t.faculty_id{where}
                """
            ),
            params,
        ).mappings().first()

        return {
            "totalRequests": int(req["total"] or 0),
            "pendingRequests": int(req["pending"] or 0),
            "approvedTokens": int(req["approved"] or 0),
            "rejectedRequests": int(req["rejected"] or 0),
            "tokensGenerated": int(tok["generated"] or 0),
            "tokensUsed": int(tok["used"] or 0),
            "todayEntries": int(tok["today"] or 0),
        }

    # ---------- faculty ----------

    def faculty_dashboard(self, conn: Connection, faculty_id: str) -> Dict[str, Any]:
        faculty = self.store.get_faculty_by_id(conn, faculty_id)
        if not faculty:
            raise NotFoundError("Faculty not found")

        pending = [r for r in self.store.get_token_requests_by_faculty(conn, faculty_id)
                   if r["status"] == "pending"][:5]
        return {
            "faculty": faculty_view(faculty),
            "stats": self.get_stats(conn, faculty_id=faculty_id),
            "recentRequests": [request_view(self.store.expand_request(conn, r)) for r in pending],
        }

    def faculty_reports(self, conn: Connection, faculty_id: str, period: Optional[str] = None,
                        start_date: Optional[date] = None, end_date: Optional[date] = None) -> Dict[str, Any]:
        start, end = period_window(period, start_date, end_date)
        requests = [r for r in self.store.get_token_requests_by_faculty(conn, faculty_id)
                    if self._in_window(r["created_at"], start, end)]
        tokens = [t for t in self.store.get_tokens_by_faculty(conn, faculty_id)
                  if self._in_window(t["created_at"], start, end)]
        return {
            "requests": [request_view(self.store.expand_request(conn, r)) for r in requests],
            "tokens": [token_view(self.store.expand_token(conn, t)) for t in tokens],
            "stats": self.get_stats(conn, faculty_id=faculty_id, start=start, end=end),
            "period": period or "custom",
        }

    # ---------- security ----------

    def security_dashboard(self, conn: Connection, security_id: str) -> Dict[str, Any]:
        security = self.store.get_security_by_id(conn, security_id)
        if not security:
            raise NotFoundError("Security personnel not found")

        logs = self.store.get_security_logs(conn, security_id)
        today_start = datetime.combine(date.today(), time.min)
        today = [log for log in logs if log["created_at"] >= today_start]

        return {
            "security": {"id": security["id"], "name": security["name"], "username": security["username"]},
            "stats": {
                "todayVerified": sum(1 for log in today if log["action"] == "verified"),
                "todayRejected": sum(1 for log in today if log["action"] == "rejected"),
                "todayScanned": sum(1 for log in today if log["method"] == "qr"),
                "todayManual": sum(1 for log in today if log["method"] == "manual"),
                "totalVerifications": sum(1 for log in logs if log["action"] == "verified"),
                "totalRejections": sum(1 for log in logs if log["action"] == "rejected"),
            },
            "recentActivity": [self._log_with_code(conn, log) for log in logs[:10]],
        }

    def security_logs(self, conn: Connection, security_id: str, period: Optional[str] = None,
                      start_date: Optional[date] = None, end_date: Optional[date] = None) -> List[Dict[str, Any]]:
        start, end = period_window(period, start_date, end_date)
        return [self._log_with_code(conn, log)
                for log in self.store.get_security_logs(conn, security_id)
                if self._in_window(log["created_at"], start, end)]

    def _log_with_code(self, conn: Connection, log: Dict[str, Any]) -> Dict[str, Any]:
        token = self.store.get_token_by_id(conn, log["token_id"]) if log.get("token_id") else None
        return log_view(log, token["token_code"] if token else None)

    # ---------- admin ----------

    def admin_dashboard(self, conn: Connection) -> Dict[str, Any]:
        department_stats = []
        for dept in self.store.get_departments(conn):
            stats = self.get_stats(conn, department_id=dept["id"])
            department_stats.append({"department": department_view(dept), **stats})

        faculty_stats = []
        for faculty in self.store.get_faculty(conn):
            if faculty["is_admin"]:
                continue
            stats = self.get_stats(conn, faculty_id=faculty["id"])
            faculty_stats.append({"faculty": faculty_view(faculty), **stats})

        return {
            "stats": self.get_stats(conn),
            "departmentStats": department_stats,
            "facultyStats": faculty_stats,
            "recentActivity": self._recent_activity(conn),
            "inconsistentRequests": [r["id"] for r in self.workflow.find_inconsistencies(conn)],
        }

    def _recent_activity(self, conn: Connection, limit: int = 10) -> List[Dict[str, Any]]:
        activity = [
            {"type": "request", "action": r["status"],
             "timestamp": r.get("response_date") or r["created_at"], "id": r["id"]}
            for r in self.store.get_all_token_requests(conn)
        ]
        activity += [
            {"type": "token_used", "action": "used", "timestamp": t["used_at"], "id": t["id"]}
            for t in self.store.get_all_tokens(conn) if t["is_used"]
        ]
        activity.sort(key=lambda a: a["timestamp"], reverse=True)
        return activity[:limit]

    def _filter_requests(self, conn: Connection, start: Optional[datetime], end: Optional[datetime],
                         status: Optional[str] = None, faculty_id: Optional[str] = None,
                         department_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Expanded requests matching every given filter, newest first."""
        out = []
        for r in self.store.get_all_token_requests(conn):
            if status and r["status"] != status:
                continue
            if faculty_id and r["faculty_id"] != faculty_id:
                continue
            if department_id and r["department_id"] != department_id:
                continue
            if not self._in_window(r["created_at"], start, end):
                continue
            out.append(self.store.expand_request(conn, r))
        return out

    def _filter_tokens(self, conn: Connection, start: Optional[datetime], end: Optional[datetime],
                       faculty_id: Optional[str] = None,
                       department_id: Optional[str] = None) -> List[Dict[str, Any]]:
        out = []
        for t in self.store.get_all_tokens(conn):
            if faculty_id and t["faculty_id"] != faculty_id:
                continue
            if not self._in_window(t["created_at"], start, end):
                continue
            expanded = self.store.expand_token(conn, t)
            # Tokens belong to a department through their issuing faculty
            if department_id and (expanded["faculty"] or {}).get("department_id") != department_id:
                continue
            out.append(expanded)
        return out

    def admin_requests(self, conn: Connection, period: Optional[str] = None,
                       start_date: Optional[date] = None, end_date: Optional[date] = None,
                       status: Optional[str] = None, faculty_id: Optional[str] = None,
                       department_id: Optional[str] = None) -> List[Dict[str, Any]]:
        start, end = period_window(period, start_date, end_date)
        return [request_view(r)
                for r in self._filter_requests(conn, start, end, status, faculty_id, department_id)]

    def admin_report(self, conn: Connection, period: Optional[str] = None,
                     start_date: Optional[date] = None, end_date: Optional[date] = None,
                     faculty_id: Optional[str] = None,
                     department_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Requests and tokens created in the window, narrowed by faculty or
        department, with counts computed over exactly those rows.

        Rows are returned expanded; callers pick the JSON views or the
        printable document.
        """
        start, end = period_window(period, start_date, end_date)
        requests = self._filter_requests(conn, start, end, faculty_id=faculty_id,
                                         department_id=department_id)
        tokens = self._filter_tokens(conn, start, end, faculty_id, department_id)

        today_start = datetime.combine(date.today(), time.min)
        stats = {
            "totalRequests": len(requests),
            "pendingRequests": sum(1 for r in requests if r["status"] == "pending"),
            "approvedTokens": sum(1 for r in requests if r["status"] == "approved"),
            "rejectedRequests": sum(1 for r in requests if r["status"] == "rejected"),
            "tokensGenerated": len(tokens),
            "tokensUsed": sum(1 for t in tokens if t["is_used"]),
            "todayEntries": sum(1 for t in tokens
                                if t["is_used"] and t["used_at"] and t["used_at"] >= today_start),
        }
        return {"requests": requests, "tokens": tokens, "stats": stats, "period": period or "custom"}

    def filter_options(self, conn: Connection) -> Dict[str, Any]:
        """Departments and non-admin faculty for the admin report filters."""
        return {
            "departments": [department_view(d) for d in self.store.get_departments(conn)],
            "faculty": [
                {"id": f["id"], "name": f["name"], "email": f["email"],
                 "department": department_view(f["department"])}
                for f in self.store.get_faculty(conn) if not f["is_admin"]
            ],
        }

    def admin_tokens(self, conn: Connection, used: Optional[bool] = None) -> List[Dict[str, Any]]:
        return [token_view(self.store.expand_token(conn, t))
                for t in self.store.get_all_tokens(conn)
                if used is None or t["is_used"] == used]
