"""
Report Module

Downloadable expense report for a trip, rendered as HTML and converted to
PDF with xhtml2pdf.

The report includes: trip name, members, budget summary, expense history
and the balance table with settled markers.

Functions:
    build_report_html: Render the report as an HTML string.
    export_report_pdf: Render the report as PDF bytes.
"""

import io
import logging
from datetime import date
from html import escape

from xhtml2pdf import pisa

from balances import round_amount

logger = logging.getLogger(__name__)


class ReportRenderError(Exception):
    """xhtml2pdf could not render the report."""


REPORT_STYLE = """
    body { font-family: Arial, sans-serif; padding: 20px; color: #333; }
    h1 { color: #667eea; border-bottom: 2px solid #667eea; padding-bottom: 10px; }
    h2 { color: #444; margin-top: 25px; }
    table { width: 100%; border-collapse: collapse; margin: 15px 0; }
    th, td { border: 1px solid #ddd; padding: 10px; text-align: left; }
    th { background: #667eea; color: white; }
    .highlight { background: #e8f5e9; padding: 15px; }
    .warning { background: #ffebee; padding: 10px; color: #c62828; }
    .footer { margin-top: 30px; text-align: center; color: #888; font-size: 12px; }
"""


def _money(amount) -> str:
    return f"{round_amount(amount):,.2f}"


def _budget_section(summary: dict) -> str:
    budget = summary.get("budget")
    total = summary.get("total_group_expense", 0.0)
    if budget is None:
        return f"<p><strong>Total Spent:</strong> {_money(total)}</p><p>No budget set</p>"

    section = (
        f"<p><strong>Total Spent:</strong> {_money(total)}</p>"
        f"<p><strong>Budget:</strong> {_money(budget)} "
        f"({summary.get('budget_progress', 0.0):.0f}% used)</p>"
    )
    if summary.get("budget_alert"):
        section += f'<p class="warning">{escape(summary["budget_alert"])}</p>'
    return section


def build_report_html(trip_name: str, members: list, expenses: list, summary: dict) -> str:
    """
    Render the expense report.

    Args:
        trip_name: Trip display name.
        members: Member objects.
        expenses: Expense objects.
        summary: Output of analytics.expense_summary().

    Returns:
        str: Complete HTML document.
    """
    names = {m.id: m.name for m in members}

    expense_rows = "".join(
        f"<tr><td>{escape(e.date or '')}</td><td>{escape(e.description or '')}</td>"
        f"<td>{escape(e.category or '')}</td><td>{escape(e.currency or '')} {_money(e.amount)}</td>"
        f"<td>{escape(names.get(e.paid_by_user_id) or e.paid_by_user_id or 'Unknown')}</td></tr>"
        for e in sorted(expenses, key=lambda e: (e.date or "", e.id or ""))
    ) or '<tr><td colspan="5">No expenses recorded</td></tr>'

    balance_rows = "".join(
        f"<tr><td>{escape(b['user_name'] or '')}</td><td>{_money(b['total_paid'])}</td>"
        f"<td>{_money(b['total_share'])}</td><td>{_money(b['net_balance'])}</td>"
        f"<td>{'Settled' if b['is_settled'] else ''}</td></tr>"
        for b in summary.get("balances", [])
    ) or '<tr><td colspan="5">No balances yet</td></tr>'

    member_names = ", ".join(escape(m.name or m.id or "") for m in members) or "No members"

    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <style>{REPORT_STYLE}</style>
</head>
<body>
    <h1>{escape(trip_name)}</h1>
    <p><strong>Generated:</strong> {date.today().strftime('%B %d, %Y')}</p>

    <h2>Members</h2>
    <p>{member_names}</p>

    <h2>Budget Summary</h2>
    <div class="highlight">{_budget_section(summary)}</div>

    <h2>Expense History</h2>
    <table>
        <tr><th>Date</th><th>Description</th><th>Category</th><th>Amount</th><th>Paid By</th></tr>
        {expense_rows}
    </table>

    <h2>Balances</h2>
    <table>
        <tr><th>Member</th><th>Paid</th><th>Share</th><th>Net</th><th>Status</th></tr>
        {balance_rows}
    </table>

    <div class="footer">
        <p>Generated by JourneySync</p>
    </div>
</body>
</html>
"""


def export_report_pdf(trip_name: str, members: list, expenses: list, summary: dict) -> bytes:
    """
    Render the expense report as a PDF document.

    Raises:
        ReportRenderError: If xhtml2pdf fails to render the document.
    """
    html_content = build_report_html(trip_name, members, expenses, summary)

    pdf_buffer = io.BytesIO()
    status = pisa.CreatePDF(io.StringIO(html_content), dest=pdf_buffer)
    if status.err:
        raise ReportRenderError(f"PDF generation failed with {status.err} error(s)")

    logger.info("Rendered expense report for %s (%d bytes)", trip_name, pdf_buffer.tell())
    return pdf_buffer.getvalue()
