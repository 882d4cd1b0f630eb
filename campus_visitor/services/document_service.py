# =======================================================================================
# campus_visitor/services/document_service.py - Printable Passes and Reports
# =======================================================================================
from datetime import date
from html import escape
from typing import Any, Dict
from urllib.parse import quote

Row = Dict[str, Any]

QR_IMAGE_API = "https://api.qrserver.com/v1/create-qr-code/?size=200x200&data="


class DocumentService:
    """Renders printable HTML documents; the browser prints them to PDF."""

    def render_token_document(self, token: Row) -> bytes:
        """``token`` is an expanded token row."""
        visitor = token.get("visitor") or {}
        faculty = token.get("faculty") or {}
        department = faculty.get("department") or {}
        request = token.get("request") or {}
        purpose = request.get("purpose") or visitor.get("purpose") or ""
        status = "USED" if token["is_used"] else "ACTIVE"

        rows = [
            ("Visitor", visitor.get("name", "")),
            ("Email", visitor.get("email", "")),
            ("Phone", visitor.get("phone", "")),
            ("Purpose", purpose),
            ("Host", faculty.get("name", "")),
            ("Department", department.get("name", "")),
            ("Visit date", token["visit_date"].strftime("%d %B %Y")),
            ("Valid until", token["expires_at"].strftime("%d %B %Y %H:%M")),
            ("Status", status),
        ]
        table = "\n".join(
            f"<tr><th>{escape(label)}</th><td>{escape(str(value))}</td></tr>" for label, value in rows
        )

        html = f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>MIT ADT University - Official Visitor Token</title>
  <style>
    body {{ font-family: Arial, sans-serif; color: #1f2937; padding: 20px; }}
    .pass {{ max-width: 600px; margin: 0 auto; border: 1px solid #e5e7eb; border-radius: 12px; padding: 24px; }}
    .code {{ font-size: 24px; font-weight: bold; letter-spacing: 2px; color: #1e40af; text-align: center; }}
    th {{ text-align: left; padding-right: 16px; }}
    @media print {{ body {{ padding: 0; }} }}
  </style>
</head>
<body>
  <div class="pass">
    <h2>MIT ADT University - Visitor Pass</h2>
    <div class="code">{escape(token['token_code'])}</div>
    <p style="text-align: center;"><img alt="QR code" src="{QR_IMAGE_API}{quote(token['qr_code_data'], safe='')}"/></p>
    <table>
{table}
    </table>
    <p>This is a one-time use token. Present it at the security gate.</p>
  </div>
</body>
</html>
"""
        return html.encode("utf-8")

    def render_admin_report(self, report: Row, period_label: str, limit: int = 50) -> bytes:
        """``report`` comes from ``DashboardService.admin_report``; lists the first ``limit`` requests."""
        stats = report["stats"]
        cards = "\n".join(
            f'<div class="card"><div class="number">{stats[key]}</div><div>{escape(label)}</div></div>'
            for key, label in (
                ("totalRequests", "Total Requests"),
                ("approvedTokens", "Approved Tokens"),
                ("tokensUsed", "Tokens Used"),
            )
        )
        rows = "\n".join(
            "<tr>"
            f"<td>{r['created_at'].strftime('%d/%m/%Y')}</td>"
            f"<td>{escape((r.get('visitor') or {}).get('name', ''))}</td>"
            f"<td>{escape((r.get('faculty') or {}).get('name', ''))}</td>"
            f"<td>{escape((r.get('department') or {}).get('name', ''))}</td>"
            f"<td>{escape(r['status'].upper())}</td>"
            f"<td>{escape(r['purpose'])}</td>"
            "</tr>"
            for r in report["requests"][:limit]
        )

        html = f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>MIT ADT University - Admin Report</title>
  <style>
    body {{ font-family: Arial, sans-serif; padding: 20px; line-height: 1.6; }}
    .header {{ text-align: center; border-bottom: 3px solid #2563eb; padding-bottom: 20px; }}
    .cards {{ display: grid; grid-template-columns: repeat(3, 1fr); gap: 20px; margin: 30px 0; }}
    .card {{ border: 1px solid #e2e8f0; border-radius: 8px; padding: 20px; text-align: center; }}
    .number {{ font-size: 32px; font-weight: bold; color: #2563eb; }}
    table {{ width: 100%; border-collapse: collapse; }}
    th, td {{ border: 1px solid #e2e8f0; padding: 12px; text-align: left; font-size: 12px; }}
    th {{ background: #f8fafc; }}
    @media print {{ body {{ padding: 10px; }} }}
  </style>
</head>
<body>
  <div class="header">
    <h2>MIT ADT University</h2>
    <h1>Visitor Management System Report</h1>
    <p><strong>Period:</strong> {escape(period_label)}</p>
    <p><strong>Generated on:</strong> {date.today().strftime('%d/%m/%Y')}</p>
  </div>
  <div class="cards">
{cards}
  </div>
  <h2>Recent Requests Summary</h2>
  <table>
    <thead>
      <tr><th>Date</th><th>Visitor</th><th>Faculty</th><th>Department</th><th>Status</th><th>Purpose</th></tr>
    </thead>
    <tbody>
{rows}
    </tbody>
  </table>
  <p style="text-align: center; color: #64748b;">This report contains confidential information. Handle with care.</p>
</body>
</html>
"""
        return html.encode("utf-8")
