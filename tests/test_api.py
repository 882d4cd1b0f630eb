import unittest
from datetime import date, timedelta

from fastapi.testclient import TestClient

from campus_visitor.database import db_manager
from campus_visitor.main import app


class TestAPI(unittest.TestCase):
    """End-to-end flows over HTTP"""

    def setUp(self):
        db_manager.reset()
        self.client = TestClient(app)

    # ---------- helpers ----------

    def auth(self, token):
        return {"Authorization": f"Bearer {token}"}

    def register_visitor(self, email="asha.rao@example.com"):
        response = self.client.post("/api/visitor/register", json={
            "name": "Asha Rao", "email": email, "phone": "9876543210",
            "company": "Acme Labs", "address": "12 MG Road, Pune", "password": "secret12",
        })
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()["token"]

    def login_faculty(self, username="rajesh.kumar", password="password123", **extra):
        response = self.client.post("/api/auth/faculty/login",
                                    json={"username": username, "password": password, **extra})
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()["token"]

    def login_security(self, username="security1"):
        response = self.client.post("/api/auth/security/login",
                                    json={"username": username, "password": "security123"})
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()["token"]

    def request_token(self, visitor_token, faculty_id="fac-1", department_id="dept-1"):
        response = self.client.post("/api/visitor/request-token", headers=self.auth(visitor_token), json={
            "purpose": "Project review", "departmentId": department_id,
            "facultyId": faculty_id, "visitDate": date.today().isoformat(),
        })
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()["requestId"]

    def approved_code(self):
        request_id = self.request_token(self.register_visitor())
        response = self.client.post(f"/api/faculty/requests/{request_id}/approve",
                                    headers=self.auth(self.login_faculty()), json={})
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()["token"]["tokenCode"]

    # ---------- public ----------

    def test_health(self):
        response = self.client.get("/api/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")

    def test_departments_and_faculty(self):
        response = self.client.get("/api/auth/departments-faculty")
        self.assertEqual(response.status_code, 200)
        departments = {d["id"]: d for d in response.json()["departments"]}
        self.assertEqual(len(departments), 6)
        self.assertEqual([f["id"] for f in departments["dept-1"]["faculty"]], ["fac-1", "fac-2"])

    def test_login_failures(self):
        response = self.client.post("/api/auth/faculty/login",
                                    json={"username": "rajesh.kumar", "password": "wrong"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {
            "success": False, "error": "unauthorized", "message": "Invalid credentials",
        })

    def test_malformed_body_is_a_validation_error(self):
        response = self.client.post("/api/auth/security/login", json={"username": "security1"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "validation_error")

    # ---------- access control ----------

    def test_protected_routes_need_a_session(self):
        self.assertEqual(self.client.get("/api/faculty/requests").status_code, 401)
        self.assertEqual(
            self.client.get("/api/faculty/requests", headers=self.auth("not-a-jwt")).status_code, 401
        )

    def test_roles_are_enforced(self):
        security = self.login_security()
        response = self.client.get("/api/faculty/requests", headers=self.auth(security))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["error"], "permission_denied")

        faculty = self.login_faculty()
        self.assertEqual(
            self.client.post("/api/security/verify", headers=self.auth(faculty),
                             json={"tokenCode": "MIT-X-Y"}).status_code,
            403,
        )
        self.assertEqual(self.client.get("/api/admin/dashboard", headers=self.auth(faculty)).status_code, 403)

    # ---------- request workflow ----------

    def test_request_approve_verify_flow(self):
        visitor = self.register_visitor()
        request_id = self.request_token(visitor)
        faculty = self.login_faculty()

        listed = self.client.get("/api/faculty/requests", headers=self.auth(faculty)).json()["requests"]
        self.assertEqual([r["id"] for r in listed], [request_id])
        self.assertEqual(listed[0]["status"], "pending")
        self.assertEqual(listed[0]["visitor"]["name"], "Asha Rao")

        approved = self.client.post(f"/api/faculty/requests/{request_id}/approve",
                                    headers=self.auth(faculty), json={"message": "See you at 10"})
        self.assertEqual(approved.status_code, 200)
        code = approved.json()["token"]["tokenCode"]
        tomorrow = date.today() + timedelta(days=1)
        self.assertEqual(approved.json()["token"]["expiresAt"], f"{tomorrow.isoformat()}T23:59:59")

        again = self.client.post(f"/api/faculty/requests/{request_id}/approve",
                                 headers=self.auth(faculty), json={})
        self.assertEqual(again.status_code, 409)
        self.assertEqual(again.json()["error"], "conflict")

        mine = self.client.get("/api/visitor/tokens", headers=self.auth(visitor)).json()["tokens"]
        self.assertEqual([(t["tokenCode"], t["status"]) for t in mine], [(code, "valid")])

        security = self.login_security()
        verified = self.client.post("/api/security/verify", headers=self.auth(security),
                                    json={"tokenCode": code})
        self.assertEqual(verified.status_code, 200)
        body = verified.json()
        self.assertTrue(body["valid"])
        self.assertEqual(body["visitor"]["facultyName"], "Dr. Rajesh Kumar")

        reused = self.client.post("/api/security/verify", headers=self.auth(security),
                                  json={"tokenCode": code})
        self.assertEqual(reused.status_code, 400)
        self.assertEqual(reused.json()["message"], "Token has already been used")
        self.assertEqual(reused.json()["visitor"]["name"], "Asha Rao")

        mine = self.client.get("/api/visitor/tokens", headers=self.auth(visitor)).json()["tokens"]
        self.assertEqual(mine[0]["status"], "already_used")

    def test_request_for_wrong_department(self):
        visitor = self.register_visitor()
        response = self.client.post("/api/visitor/request-token", headers=self.auth(visitor), json={
            "purpose": "Review", "departmentId": "dept-1", "facultyId": "fac-3",
            "visitDate": date.today().isoformat(),
        })
        self.assertEqual(response.status_code, 400)

    def test_request_in_the_past(self):
        visitor = self.register_visitor()
        response = self.client.post("/api/visitor/request-token", headers=self.auth(visitor), json={
            "purpose": "Review", "departmentId": "dept-1", "facultyId": "fac-1",
            "visitDate": (date.today() - timedelta(days=1)).isoformat(),
        })
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Visit date cannot be in the past")

    def test_reject_flow(self):
        request_id = self.request_token(self.register_visitor())
        faculty = self.login_faculty()

        missing = self.client.post(f"/api/faculty/requests/{request_id}/reject",
                                   headers=self.auth(faculty), json={})
        self.assertEqual(missing.status_code, 400)
        self.assertEqual(missing.json()["message"], "Rejection reason is required")

        other = self.login_faculty("priya.sharma")
        self.assertEqual(
            self.client.post(f"/api/faculty/requests/{request_id}/reject",
                             headers=self.auth(other), json={"message": "No"}).status_code,
            403,
        )

        rejected = self.client.post(f"/api/faculty/requests/{request_id}/reject",
                                    headers=self.auth(faculty), json={"message": "Away that week"})
        self.assertEqual(rejected.status_code, 200)
        self.assertEqual(
            self.client.post(f"/api/faculty/requests/{request_id}/approve",
                             headers=self.auth(faculty), json={}).status_code,
            409,
        )

    def test_unknown_request(self):
        response = self.client.post("/api/faculty/requests/req-missing/approve",
                                    headers=self.auth(self.login_faculty()), json={})
        self.assertEqual(response.status_code, 404)

    # ---------- direct tokens ----------

    def test_direct_token_and_document(self):
        faculty = self.login_faculty()
        response = self.client.post("/api/faculty/token/generate", headers=self.auth(faculty), json={
            "visitorName": "Ravi Mehta", "visitorEmail": "ravi@example.com",
            "visitorPhone": "9123456780", "purpose": "Guest lecture",
            "visitDate": date.today().isoformat(),
        })
        self.assertEqual(response.status_code, 200, response.text)
        token = response.json()["token"]
        self.assertEqual(token["purpose"], "Guest lecture")
        self.assertEqual(token["departmentName"], "Computer Science & Engineering")

        document = self.client.get(response.json()["pdfUrl"], headers=self.auth(faculty))
        self.assertEqual(document.status_code, 200)
        self.assertIn(token["tokenCode"], document.text)
        self.assertIn("Ravi Mehta", document.text)

        other = self.login_faculty("priya.sharma")
        self.assertEqual(self.client.get(response.json()["pdfUrl"], headers=self.auth(other)).status_code, 403)

    def test_direct_token_bad_expiry(self):
        faculty = self.login_faculty()
        response = self.client.post("/api/faculty/token/generate", headers=self.auth(faculty), json={
            "visitorName": "Ravi Mehta", "visitorEmail": "ravi@example.com",
            "visitorPhone": "9123456780", "purpose": "Guest lecture",
            "visitDate": (date.today() + timedelta(days=2)).isoformat(),
            "expiryDate": f"{date.today().isoformat()}T12:00:00",
        })
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Expiry date must be after visit date")

    def test_direct_token_expiry_already_past(self):
        faculty = self.login_faculty()
        response = self.client.post("/api/faculty/token/generate", headers=self.auth(faculty), json={
            "visitorName": "Ravi Mehta", "visitorEmail": "ravi@example.com",
            "visitorPhone": "9123456780", "purpose": "Guest lecture",
            "visitDate": date.today().isoformat(),
            "expiryDate": f"{date.today().isoformat()}T00:00:01",
        })
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Expiry date must be in the future")

    # ---------- gate ----------

    def test_verify_status_codes(self):
        security = self.login_security()
        missing = self.client.post("/api/security/verify", headers=self.auth(security), json={})
        self.assertEqual(missing.status_code, 400)
        self.assertEqual(missing.json()["error"], "validation_error")

        unknown = self.client.post("/api/security/verify", headers=self.auth(security),
                                   json={"tokenCode": "MIT-NOPE-000000"})
        self.assertEqual(unknown.status_code, 404)
        self.assertFalse(unknown.json()["valid"])

    def test_verify_deeply_nested_qr_data(self):
        security = self.login_security()
        response = self.client.post("/api/security/verify", headers=self.auth(security),
                                    json={"qrData": "[" * 100000})
        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.json()["valid"])

        logs = self.client.get("/api/security/logs", headers=self.auth(security)).json()["logs"]
        self.assertEqual([(log["action"], log["method"]) for log in logs], [("rejected", "qr")])

    def test_verify_by_qr_payload(self):
        code = self.approved_code()
        security = self.login_security()
        qr = f"https://visitor.mitadt.edu.in/verify/{code}"
        response = self.client.post("/api/security/verify", headers=self.auth(security), json={"qrData": qr})
        self.assertEqual(response.status_code, 200)

        logs = self.client.get("/api/security/logs", headers=self.auth(security)).json()["logs"]
        self.assertEqual([(log["tokenCode"], log["method"]) for log in logs], [(code, "qr")])

    def test_check_status_is_public_and_read_only(self):
        code = self.approved_code()
        for _ in range(2):
            response = self.client.post("/api/security/check-status", json={"tokenCode": code})
            self.assertEqual(response.status_code, 200)
            self.assertTrue(response.json()["valid"])

        missing = self.client.post("/api/security/check-status", json={"tokenCode": "MIT-NOPE-000000"})
        self.assertEqual(missing.status_code, 404)

        security = self.login_security()
        dashboard = self.client.get("/api/security/dashboard", headers=self.auth(security)).json()
        self.assertEqual(dashboard["stats"]["totalVerifications"], 0)

    def test_bulk_verify(self):
        code = self.approved_code()
        security = self.login_security()
        response = self.client.post("/api/security/bulk-verify", headers=self.auth(security),
                                    json={"tokens": [code, code, "MIT-NOPE-000000"]})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["summary"], {"total": 3, "verified": 1, "rejected": 2})
        self.assertEqual([r["status"] for r in body["results"]], ["valid", "already_used", "not_found"])

        empty = self.client.post("/api/security/bulk-verify", headers=self.auth(security), json={"tokens": []})
        self.assertEqual(empty.status_code, 400)

    # ---------- dashboards ----------

    def test_faculty_dashboard_and_reports(self):
        self.request_token(self.register_visitor())
        faculty = self.login_faculty()

        dashboard = self.client.get("/api/faculty/dashboard", headers=self.auth(faculty)).json()
        self.assertEqual(dashboard["stats"]["pendingRequests"], 1)
        self.assertEqual(len(dashboard["recentRequests"]), 1)

        report = self.client.get("/api/faculty/reports?period=today", headers=self.auth(faculty))
        self.assertEqual(report.status_code, 200)
        self.assertEqual(report.json()["stats"]["totalRequests"], 1)

        bad = self.client.get("/api/faculty/reports?period=decade", headers=self.auth(faculty))
        self.assertEqual(bad.status_code, 400)

    def test_admin_views(self):
        code = self.approved_code()
        admin = self.login_faculty("admin", "admin123", adminSecretKey="MIT_ADT_ADMIN_2024")

        dashboard = self.client.get("/api/admin/dashboard", headers=self.auth(admin))
        self.assertEqual(dashboard.status_code, 200)
        body = dashboard.json()
        self.assertEqual(body["stats"]["approvedTokens"], 1)
        self.assertEqual(body["inconsistentRequests"], [])
        self.assertNotIn("admin-1", [f["faculty"]["id"] for f in body["facultyStats"]])

        requests = self.client.get("/api/admin/requests?status=approved&facultyId=fac-1",
                                   headers=self.auth(admin)).json()["requests"]
        self.assertEqual(len(requests), 1)

        unused = self.client.get("/api/admin/tokens?used=false", headers=self.auth(admin)).json()["tokens"]
        self.assertEqual([t["tokenCode"] for t in unused], [code])

    def test_admin_report(self):
        code = self.approved_code()
        other_visitor = self.register_visitor(email="meera@example.com")
        self.request_token(other_visitor, faculty_id="fac-3", department_id="dept-2")
        admin = self.login_faculty("admin", "admin123", adminSecretKey="MIT_ADT_ADMIN_2024")

        everything = self.client.get("/api/admin/report?period=today", headers=self.auth(admin))
        self.assertEqual(everything.status_code, 200)
        body = everything.json()
        self.assertEqual(body["period"], "today")
        self.assertEqual(body["stats"]["totalRequests"], 2)
        self.assertEqual(body["stats"]["pendingRequests"], 1)
        self.assertEqual(body["stats"]["tokensGenerated"], 1)

        cse = self.client.get("/api/admin/report?departmentId=dept-1", headers=self.auth(admin)).json()
        self.assertEqual(cse["period"], "custom")
        self.assertEqual(len(cse["requests"]), 1)
        self.assertEqual([t["tokenCode"] for t in cse["tokens"]], [code])
        self.assertEqual(cse["stats"]["approvedTokens"], 1)

        it = self.client.get("/api/admin/report?facultyId=fac-3", headers=self.auth(admin)).json()
        self.assertEqual(it["tokens"], [])
        self.assertEqual(it["stats"]["pendingRequests"], 1)

    def test_admin_report_document(self):
        self.approved_code()
        admin = self.login_faculty("admin", "admin123", adminSecretKey="MIT_ADT_ADMIN_2024")
        response = self.client.get("/api/admin/report?period=week&format=pdf", headers=self.auth(admin))
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.headers["content-type"].startswith("text/html"))
        self.assertIn("Visitor Management System Report", response.text)
        self.assertIn("Asha Rao", response.text)
        self.assertIn("APPROVED", response.text)

        faculty = self.login_faculty()
        self.assertEqual(self.client.get("/api/admin/report", headers=self.auth(faculty)).status_code, 403)

    def test_admin_filter_options(self):
        admin = self.login_faculty("admin", "admin123", adminSecretKey="MIT_ADT_ADMIN_2024")
        response = self.client.get("/api/admin/faculty-departments", headers=self.auth(admin))
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(len(body["departments"]), 6)
        self.assertEqual([f["id"] for f in body["faculty"]], ["fac-1", "fac-2", "fac-3", "fac-4", "fac-5"])
        self.assertEqual(body["faculty"][2]["department"]["code"], "IT")

    def test_admin_flagged_faculty_session(self):
        admin_as_faculty = self.login_faculty("admin", "admin123")
        self.assertEqual(
            self.client.get("/api/admin/tokens", headers=self.auth(admin_as_faculty)).status_code, 200
        )


if __name__ == "__main__":
    unittest.main()
