import threading
from datetime import date, datetime, timedelta

from campus_visitor.database import db_manager
from campus_visitor.models.enums import VerificationOutcome
from campus_visitor.utils.exceptions import ValidationError
from tests.fixtures import ServiceTestCase


class TestVerification(ServiceTestCase):

    def expired_token(self):
        visit = date.today() - timedelta(days=3)
        with db_manager.get_connection() as conn:
            visitor = self.store.create_visitor(conn, "Late Visitor", "late@example.com",
                                                "9000000000", "Old meeting")
            faculty = self.store.get_faculty_by_id(conn, "fac-4")
            return self.tokens.issue_token(conn, visitor, faculty, visit, "faculty",
                                           expires_at=datetime.now() - timedelta(days=1))

    def logs_for(self, token_id):
        with db_manager.get_connection() as conn:
            return self.store.get_security_logs_by_token(conn, token_id)

    def test_valid_token_is_consumed(self):
        token = self.approved_token()
        with db_manager.get_connection() as conn:
            result = self.verifier.verify(conn, "sec-1", token_code=token["token_code"])
            stored = self.store.get_token_by_id(conn, token["id"])

        self.assertTrue(result.valid)
        self.assertEqual(result.message, "Token verified successfully. Entry granted.")
        self.assertEqual(result.visitor["name"], "Asha Rao")
        self.assertEqual(result.visitor["purpose"], "Project review")
        self.assertEqual(result.visitor["facultyName"], "Dr. Rajesh Kumar")
        self.assertEqual(result.visitor["departmentName"], "Computer Science & Engineering")
        self.assertEqual(result.visitor["visitDate"], date.today().isoformat())
        self.assertTrue(stored["is_used"])
        self.assertEqual(stored["used_by_security_id"], "sec-1")

        logs = self.logs_for(token["id"])
        self.assertEqual([(log["action"], log["method"]) for log in logs], [("verified", "manual")])

    def test_second_use_is_rejected(self):
        token = self.approved_token()
        with db_manager.get_connection() as conn:
            self.verifier.verify(conn, "sec-1", token_code=token["token_code"])
        with db_manager.get_connection() as conn:
            again = self.verifier.verify(conn, "sec-2", token_code=token["token_code"])

        self.assertFalse(again.valid)
        self.assertIs(again.outcome, VerificationOutcome.ALREADY_USED)
        self.assertEqual(again.message, "Token has already been used")
        self.assertEqual(again.visitor["name"], "Asha Rao")
        self.assertEqual([log["action"] for log in self.logs_for(token["id"])], ["verified", "rejected"])

    def test_expired_token(self):
        token = self.expired_token()
        with db_manager.get_connection() as conn:
            result = self.verifier.verify(conn, "sec-1", token_code=token["token_code"])
            stored = self.store.get_token_by_id(conn, token["id"])
        self.assertIs(result.outcome, VerificationOutcome.EXPIRED)
        self.assertEqual(result.message, "Token has expired")
        self.assertFalse(stored["is_used"])

    def test_unknown_code_is_logged(self):
        with db_manager.get_connection() as conn:
            result = self.verifier.verify(conn, "sec-1", token_code="MIT-NOPE-000000")
            logs = self.store.get_security_logs(conn, "sec-1")
        self.assertIs(result.outcome, VerificationOutcome.NOT_FOUND)
        self.assertIsNone(result.visitor)
        self.assertEqual(len(logs), 1)
        self.assertIsNone(logs[0]["token_id"])
        self.assertIn("MIT-NOPE-000000", logs[0]["notes"])

    def test_qr_data_forms(self):
        for form in ("payload", "url", "bare"):
            with self.subTest(form=form):
                token = self.approved_token(self.make_profile(email=f"{form}@example.com"))
                qr_data = {
                    "payload": token["qr_code_data"],
                    "url": f"https://visitor.mitadt.edu.in/verify/{token['token_code']}",
                    "bare": token["token_code"],
                }[form]
                with db_manager.get_connection() as conn:
                    result = self.verifier.verify(conn, "sec-1", qr_data=qr_data)
                self.assertTrue(result.valid)
                self.assertEqual(self.logs_for(token["id"])[0]["method"], "qr")

    def test_qr_data_wins_over_token_code(self):
        first = self.approved_token()
        second = self.approved_token(self.make_profile(email="second@example.com"))
        with db_manager.get_connection() as conn:
            result = self.verifier.verify(conn, "sec-1", token_code=first["token_code"],
                                          qr_data=second["qr_code_data"])
        self.assertEqual(result.token_code, second["token_code"])

    def test_unreadable_qr_data(self):
        with db_manager.get_connection() as conn:
            result = self.verifier.verify(conn, "sec-1", qr_data="definitely not a token")
            logs = self.store.get_security_logs(conn, "sec-1")
        self.assertFalse(result.valid)
        self.assertIs(result.outcome, VerificationOutcome.NOT_FOUND)
        self.assertEqual(len(logs), 1)
        self.assertEqual(logs[0]["method"], "qr")
        self.assertTrue(logs[0]["notes"].startswith("Unreadable QR data"))

    def test_deeply_nested_qr_data_is_logged(self):
        with db_manager.get_connection() as conn:
            result = self.verifier.verify(conn, "sec-1", qr_data="[" * 100000)
        with db_manager.get_connection() as conn:
            logs = self.store.get_security_logs(conn, "sec-1")
        self.assertIs(result.outcome, VerificationOutcome.NOT_FOUND)
        self.assertEqual(len(logs), 1)
        self.assertEqual(logs[0]["action"], "rejected")
        self.assertTrue(logs[0]["notes"].startswith("Unreadable QR data"))

    def test_missing_input(self):
        with db_manager.get_connection() as conn:
            with self.assertRaises(ValidationError):
                self.verifier.verify(conn, "sec-1", token_code="  ", qr_data="")

    def test_check_status_has_no_side_effects(self):
        token = self.approved_token()
        with db_manager.get_connection() as conn:
            first = self.verifier.check_status(conn, token["token_code"])
            second = self.verifier.check_status(conn, token["token_code"])
            stored = self.store.get_token_by_id(conn, token["id"])
            logs = self.store.get_security_logs(conn)
        self.assertTrue(first.valid)
        self.assertEqual(first.message, "Token is valid and has not been used")
        self.assertEqual(first.outcome, second.outcome)
        self.assertFalse(stored["is_used"])
        self.assertEqual(logs, [])

    def test_bulk_verify(self):
        token = self.approved_token()
        codes = [token["token_code"], token["token_code"], "MIT-NOPE-000000"]
        with db_manager.get_connection() as conn:
            results = self.verifier.bulk_verify(conn, "sec-1", codes)
            logs = self.store.get_security_logs(conn, "sec-1")

        self.assertEqual([r.outcome for r in results], [
            VerificationOutcome.VALID, VerificationOutcome.ALREADY_USED, VerificationOutcome.NOT_FOUND,
        ])
        self.assertEqual(self.verifier.summarize(results), {"total": 3, "verified": 1, "rejected": 2})
        self.assertEqual(len(logs), 3)
        self.assertTrue(all(log["notes"].startswith("Bulk verification: ") for log in logs))
        self.assertTrue(all(log["method"] == "manual" for log in logs))

    def test_bulk_verify_needs_codes(self):
        with db_manager.get_connection() as conn:
            with self.assertRaises(ValidationError):
                self.verifier.bulk_verify(conn, "sec-1", [])

    def test_concurrent_verifications_admit_once(self):
        token = self.approved_token()
        barrier = threading.Barrier(4)
        results = []

        def attempt(security_id):
            barrier.wait()
            with db_manager.get_connection() as conn:
                results.append(self.verifier.verify(conn, security_id, token_code=token["token_code"]))

        threads = [threading.Thread(target=attempt, args=(f"sec-{i % 2 + 1}",)) for i in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(sum(1 for r in results if r.valid), 1)
        self.assertEqual(sum(1 for r in results if r.outcome is VerificationOutcome.ALREADY_USED), 3)
        self.assertEqual(len(self.logs_for(token["id"])), 4)
