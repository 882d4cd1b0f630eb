# =======================================================================================
# campus_visitor/services/notification_service.py - Visitor and Faculty Emails
# =======================================================================================
import logging
from datetime import date, datetime
from html import escape
from typing import Any, Dict, Optional

from ..config import config
from .mailer import EmailJob

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

UNIVERSITY = "MIT ADT University"


def _fmt_date(value: Optional[Any]) -> str:
    if isinstance(value, datetime):
        return value.strftime("%A, %d %B %Y %H:%M")
    if isinstance(value, date):
        return value.strftime("%A, %d %B %Y")
    return ""


def _page(title: str, greeting: str, body: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head><meta charset="utf-8"><title>{escape(UNIVERSITY)} - {escape(title)}</title></head>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
      <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
        <h2 style="color: #2563eb;">{escape(UNIVERSITY)}</h2>
        <h3>{escape(title)}</h3>
        <p>Dear {escape(greeting)},</p>
        {body}
        <p style="color: #666; font-size: 12px;">This is an automated message. Please do not reply to this email.</p>
      </div>
    </body>
    </html>
    """


class NotificationService:
    """
    Renders notification emails and hands them to the mail worker.

    Sending is fire-and-forget: nothing here raises into the caller, so a
    mail failure never undoes the request or token change that triggered it.
    """

    def __init__(self, dispatcher=None):
        if dispatcher is None:
            from ..workers.mail_worker import mail_worker
            dispatcher = mail_worker
        self.dispatcher = dispatcher

    def _send(self, to: Optional[str], subject: str, html: str, kind: str) -> None:
        if not to:
            logger.warning("No recipient for %s email; skipped", kind)
            return
        try:
            self.dispatcher.submit(EmailJob(to=to, subject=subject, html=html, kind=kind))
        except Exception:
            logger.exception("Could not queue %s email to %s", kind, to)

    # ---------- visitor profile ----------

    def welcome(self, profile: Row) -> None:
        body = """
        <p>Your visitor account has been created. Log in to request campus access
        tokens and to follow the status of your requests.</p>
        """
        self._send(profile["email"], f"{UNIVERSITY} - Welcome to Visitor Portal",
                   _page("Welcome to the Visitor Portal", profile["name"], body), "welcome")

    # ---------- request workflow ----------

    def request_submitted(self, request: Row) -> None:
        """``request`` is an expanded request row."""
        visitor = request["visitor"]
        faculty = request["faculty"]
        department = request["department"] or {}

        faculty_body = f"""
        <p>{escape(visitor['name'])} ({escape(visitor['email'])}, {escape(visitor['phone'])})
        has requested to visit you.</p>
        <p><strong>Purpose:</strong> {escape(request['purpose'])}<br/>
        <strong>Visit date:</strong> {_fmt_date(request['visit_date'])}</p>
        <p>Please approve or reject the request from your faculty dashboard.</p>
        """
        self._send(faculty["email"], f"New Visitor Request - {visitor['name']}",
                   _page("New Visitor Request", faculty["name"], faculty_body), "faculty_notification")

        visitor_body = f"""
        <p>Your request to meet {escape(faculty['name'])} ({escape(department.get('name', ''))})
        on {_fmt_date(request['visit_date'])} has been submitted.</p>
        <p>You will receive another email once it has been reviewed.</p>
        """
        self._send(visitor["email"], f"{UNIVERSITY} - Token Request Submitted",
                   _page("Token Request Submitted", visitor["name"], visitor_body), "visitor_confirmation")

    def token_issued(self, token: Row, approved: bool) -> None:
        """``token`` is an expanded token row."""
        visitor = token["visitor"]
        faculty = token["faculty"]
        department = faculty.get("department") or {}
        if approved:
            intro = (f"Your request to visit {UNIVERSITY} has been <strong>approved</strong> by "
                     f"{escape(faculty['name'])} from {escape(department.get('name', ''))}.")
            subject = f"{UNIVERSITY} - Visitor Access Approved"
        else:
            intro = (f"{escape(faculty['name'])} from {escape(department.get('name', ''))} "
                     f"has issued you a visitor token.")
            subject = f"{UNIVERSITY} - Visitor Token Generated"

        body = f"""
        <p>{intro}</p>
        <div style="background: #f8fafc; border: 2px solid #e2e8f0; border-radius: 8px; padding: 20px; text-align: center;">
          <div style="font-size: 24px; font-weight: bold; color: #2563eb; letter-spacing: 2px;">{escape(token['token_code'])}</div>
          <p><strong>Valid until:</strong> {_fmt_date(token['expires_at'])}</p>
          <p><a href="{escape(config.BASE_URL)}/verify/{escape(token['token_code'])}">Verification link</a></p>
        </div>
        <ul>
          <li>Present this token at the security gate.</li>
          <li>Keep the token code ready in case the QR code cannot be scanned.</li>
          <li>The token can be used <strong>once</strong> and expires on the date above.</li>
        </ul>
        <p><strong>Faculty contact:</strong> {escape(faculty['name'])} ({escape(faculty['email'])})</p>
        """
        self._send(visitor["email"], subject,
                   _page("Visitor Access", visitor["name"], body),
                   "approval" if approved else "token_issued")

    def request_rejected(self, request: Row, reason: str) -> None:
        visitor = request["visitor"]
        faculty = request["faculty"]
        body = f"""
        <p>We regret to inform you that your request to visit {escape(UNIVERSITY)} has been
        declined by {escape(faculty['name'])}.</p>
        <p><strong>Reason:</strong> {escape(reason)}</p>
        <p>You may contact the faculty member at {escape(faculty['email'])} or submit a new request.</p>
        """
        self._send(visitor["email"], f"{UNIVERSITY} - Visitor Request Update",
                   _page("Visitor Request Update", visitor["name"], body), "rejection")
