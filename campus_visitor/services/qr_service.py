# =======================================================================================
# campus_visitor/services/qr_service.py - QR Payload Encoding and Decoding
# =======================================================================================
import json
import re
import time
from datetime import date, datetime
from typing import Any, Optional

from ..config import config

VERIFY_PATH_RE = re.compile(r"/verify/([^/?#\s]+)/?(?:[?#]\S*)?$")


def token_code_pattern(prefix: Optional[str] = None) -> re.Pattern:
    prefix = re.escape(prefix or config.TOKEN_CODE_PREFIX)
    return re.compile(rf"^{prefix}-[A-Z0-9]+-[A-Z0-9]+$")


class QRCodeService:
    """Builds the payload printed into a token's QR code and reads it back."""

    def __init__(self, base_url: Optional[str] = None, code_prefix: Optional[str] = None):
        self.base_url = (base_url or config.BASE_URL).rstrip("/")
        self.code_re = token_code_pattern(code_prefix)

    def verification_url(self, token_code: str) -> str:
        return f"{self.base_url}/verify/{token_code}"

    def encode(self, token_code: str, visitor_name: str = "", faculty_name: str = "",
               department_name: str = "", visit_date: Optional[date] = None,
               expires_at: Optional[datetime] = None) -> str:
        """Structured payload: verification URL plus the token details."""
        payload = {
            "url": self.verification_url(token_code),
            "data": {
                "tokenCode": token_code,
                "visitorName": visitor_name or "",
                "facultyName": faculty_name or "",
                "departmentName": department_name or "",
                "visitDate": visit_date.isoformat() if visit_date else "",
                "expiresAt": expires_at.isoformat() if expires_at else "",
                "timestamp": int(time.time() * 1000),
            },
        }
        return json.dumps(payload, separators=(",", ":"))

    def decode(self, qr_data: Optional[str]) -> Optional[str]:
        """
        Resolve scanned QR content to a token code.

        Accepted forms, tried in order:
          1. JSON payload with ``data.tokenCode`` (falls back to its ``url``)
          2. a verification URL ending in ``/verify/<tokenCode>``
          3. a bare token code
        Returns None when nothing matches.
        """
        if not qr_data:
            return None
        raw = qr_data.strip()

        parsed: Any = None
        try:
            parsed = json.loads(raw)
        except (ValueError, RecursionError):
            pass

        if isinstance(parsed, dict):
            data = parsed.get("data")
            if isinstance(data, dict) and isinstance(data.get("tokenCode"), str) and data["tokenCode"].strip():
                return data["tokenCode"].strip()
            url = parsed.get("url")
            if isinstance(url, str):
                return self._from_url(url)
            return None

        code = self._from_url(raw)
        if code:
            return code

        if self.code_re.match(raw):
            return raw
        return None

    def _from_url(self, value: str) -> Optional[str]:
        match = VERIFY_PATH_RE.search(value.strip())
        return match.group(1) if match else None


qr_service = QRCodeService()
