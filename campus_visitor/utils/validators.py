# =======================================================================================
# campus_visitor/utils/validators.py - Validation Helpers
# =======================================================================================
import re
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple

from .exceptions import ValidationError

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_DIGITS = 10
MIN_PASSWORD_LENGTH = 6


class VisitValidator:
    """Validates visitor details and visit windows."""

    @staticmethod
    def require(**fields) -> None:
        """Raise if any of the given fields is missing or blank."""
        missing = [name for name, value in fields.items()
                   if value is None or (isinstance(value, str) and not value.strip())]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    @staticmethod
    def validate_email(email: str) -> str:
        email = email.strip().lower()
        if not EMAIL_RE.match(email):
            raise ValidationError("Invalid email format")
        return email

    @staticmethod
    def validate_phone(phone: str) -> str:
        digits = re.sub(r"\D", "", phone)
        if len(digits) != PHONE_DIGITS:
            raise ValidationError(f"Phone number must be {PHONE_DIGITS} digits")
        return phone.strip()

    @staticmethod
    def validate_password(password: str) -> str:
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
        return password

    @staticmethod
    def validate_visit_date(visit_date: date, today: Optional[date] = None) -> date:
        """Visit dates may be today or later."""
        today = today or date.today()
        if visit_date < today:
            raise ValidationError("Visit date cannot be in the past")
        return visit_date

    @staticmethod
    def validate_expiry(visit_date: date, expires_at: datetime, now: Optional[datetime] = None) -> datetime:
        """
        An expiry must fall strictly after the start of the visit day and,
        when ``now`` is given, strictly after ``now``.
        """
        if expires_at <= datetime.combine(visit_date, time.min):
            raise ValidationError("Expiry date must be after visit date")
        if now is not None and expires_at <= now:
            raise ValidationError("Expiry date must be in the future")
        return expires_at


def period_window(
    period: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    now: Optional[datetime] = None,
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """
    Resolve report filters into a [start, end] datetime window.

    ``period`` is one of today | week | month; an explicit start/end pair
    narrows the window further (end is inclusive to the end of that day).
    """
    now = now or datetime.now()
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    if period == "today":
        start = datetime.combine(now.date(), time.min)
    elif period == "week":
        start = now - timedelta(days=7)
    elif period == "month":
        start = now - timedelta(days=30)
    elif period not in (None, "", "all", "custom"):
        raise ValidationError(f"Unknown period: {period}")

    if start_date and end_date:
        if end_date < start_date:
            raise ValidationError("endDate must not be before startDate")
        range_start = datetime.combine(start_date, time.min)
        start = max(start, range_start) if start else range_start
        end = datetime.combine(end_date, time.max)

    return start, end
