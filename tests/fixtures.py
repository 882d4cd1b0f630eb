"""Shared setup for the service-level tests."""
import unittest
from datetime import date

from campus_visitor.database import db_manager
from campus_visitor.services import (
    AuthService, EntityStore, NotificationService, RequestWorkflowService,
    TokenIssuanceService, VerificationService, VisitorService,
)


class RecordingDispatcher:
    """Stands in for the mail worker; keeps every queued email."""

    def __init__(self):
        self.jobs = []

    def submit(self, job):
        self.jobs.append(job)

    def kinds(self):
        return [job.kind for job in self.jobs]

    def recipients(self, kind):
        return [job.to for job in self.jobs if job.kind == kind]


class ServiceTestCase(unittest.TestCase):
    """Fresh seeded store and a full service graph per test."""

    def setUp(self):
        db_manager.reset()
        self.dispatcher = RecordingDispatcher()
        self.notifier = NotificationService(dispatcher=self.dispatcher)
        self.store = EntityStore()
        self.auth = AuthService(self.store)
        self.tokens = TokenIssuanceService(self.store, notifier=self.notifier)
        self.workflow = RequestWorkflowService(self.store, tokens=self.tokens, notifier=self.notifier)
        self.verifier = VerificationService(self.store)
        self.visitors = VisitorService(self.store, auth=self.auth, notifier=self.notifier)

    def make_profile(self, email="asha.rao@example.com", name="Asha Rao"):
        with db_manager.get_connection() as conn:
            return self.visitors.register(
                conn, name, email, "9876543210", "12 MG Road, Pune", "secret12", company="Acme Labs"
            )

    def submit_request(self, profile, faculty_id="fac-1", department_id="dept-1",
                       visit_date=None, purpose="Project review"):
        with db_manager.get_connection() as conn:
            return self.workflow.create_request(
                conn, profile["id"], faculty_id, department_id, purpose, visit_date or date.today()
            )

    def approved_token(self, profile=None):
        profile = profile or self.make_profile()
        request = self.submit_request(profile)
        with db_manager.get_connection() as conn:
            return self.workflow.approve(conn, request["id"], "fac-1")
