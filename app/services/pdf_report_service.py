"""PDF report rendering: builds an HTML layout and converts it with WeasyPrint"""
from datetime import datetime
from html import escape
from typing import Any, Dict, List, Optional, Tuple
import logging

from app.config import settings

logger = logging.getLogger(__name__)

# Try to import WeasyPrint for PDF generation
try:
    from weasyprint import HTML
    WEASYPRINT_AVAILABLE = True
except (ImportError, OSError):
    WEASYPRINT_AVAILABLE = False
    logger.warning("WeasyPrint not available. PDF endpoints will answer 503.")

# Vertical layout on an A4 page, in millimetres
PAGE_TOP = 20
PAGE_BREAK_AT = 250
ROW_HEIGHT = 8

PAYMENT_TYPE_NAMES = {
    "membership_fee": "Membership fee",
    "donation": "Donation",
    "event_fee": "Event fee",
    "other": "Other",
}

EXPENSE_CATEGORY_NAMES = {
    "utilities": "Utilities",
    "rent": "Rent",
    "salaries": "Salaries",
    "transportation": "Transportation",
    "maintenance": "Maintenance",
    "supplies": "Supplies",
    "events": "Events",
    "other": "Other",
}

STYLES = """
    @page {
        size: A4;
        margin: 20mm;
        @bottom-center {
            content: "Page " counter(page) " of " counter(pages);
            font-size: 8pt;
            color: #7f8c8d;
        }
    }
    body { font-family: 'DejaVu Sans', 'Arial', sans-serif; color: #2c3e50; font-size: 10pt; }
    .header { text-align: center; margin-bottom: 15mm; }
    .header h1 { font-size: 20pt; margin: 0; }
    .header h2 { font-size: 14pt; font-weight: normal; color: #34495e; margin: 4mm 0; }
    .header p { font-size: 10pt; color: #7f8c8d; margin: 0; }
    h3 { font-size: 14pt; border-bottom: 0.5mm solid #3498db; padding-bottom: 1mm; }
    h4 { font-size: 11pt; }
    .cards { width: 100%; }
    .card { display: inline-block; width: 46%; height: 25mm; margin: 0 2% 5mm 0; padding: 3mm; color: #fff; }
    .card .label { font-size: 8pt; }
    .card .value { font-size: 12pt; font-weight: bold; }
    table { width: 100%; border-collapse: collapse; margin-bottom: 5mm; }
    th, td { border: 1px solid #ddd; padding: 2mm; text-align: left; font-size: 9pt; }
    th { color: #fff; font-weight: bold; }
    tr:nth-child(even) td { background-color: #f8f9fa; }
    .insights li { margin-bottom: 2mm; }
    .warning { color: #c0392b; }
    .good { color: #27ae60; }
    .page-break { page-break-after: always; }
    .footer { text-align: center; font-size: 8pt; color: #7f8c8d; margin-top: 10mm; }
"""


class PDFRenderError(Exception):
    """Raised when the PDF renderer is unavailable or fails"""


def write_pdf(html: str) -> bytes:
    """Convert an HTML document to PDF bytes"""
    if not WEASYPRINT_AVAILABLE:
        raise PDFRenderError("PDF renderer is not available")
    try:
        return HTML(string=html).write_pdf()
    except Exception as e:
        logger.error(f"Error generating PDF with WeasyPrint: {e}")
        raise PDFRenderError(str(e)) from e


def _number(value: Any) -> str:
    try:
        return f"{float(value or 0):,.0f}"
    except (TypeError, ValueError):
        return "0"


def _share(part: Any, whole: Any) -> str:
    whole = float(whole or 0)
    if whole <= 0:
        return "0%"
    return f"{float(part or 0) / whole * 100:.1f}%"


def _date(value: Any) -> str:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d")
    return escape(str(value or ""))


def build_insights(data: Dict[str, Any]) -> List[Tuple[str, str]]:
    """
    Threshold-based observations as (level, text) pairs, level is "good" or "warning"
    """
    insights: List[Tuple[str, str]] = []

    total_income = float(data.get("total_income") or 0)
    if total_income > 0:
        expense_ratio = float(data.get("total_expenses") or 0) / total_income * 100
        if expense_ratio > 80:
            insights.append(("warning", "Expense ratio is high - a budget review is recommended"))
        elif expense_ratio < 50:
            insights.append(("good", "Expense ratio is healthy - good financial performance"))

        if float(data.get("net_income") or 0) < 0:
            insights.append(("warning", "Net income is negative - increase income or reduce expenses"))
        else:
            insights.append(("good", "Net income is positive - stable financial performance"))

    total_members = data.get("total_members") or 0
    if total_members > 0:
        active_ratio = (data.get("active_members") or 0) / total_members * 100
        if active_ratio > 80:
            insights.append(("good", "Active member ratio is excellent"))
        elif active_ratio < 60:
            insights.append(("warning", "Active member ratio is low - engagement programs are recommended"))

    total_vehicles = data.get("total_vehicles") or 0
    if total_vehicles > 0:
        utilization = (data.get("in_use_vehicles") or 0) / total_vehicles * 100
        if utilization > 70:
            insights.append(("good", "Vehicle utilization is good"))
        else:
            insights.append(("warning", "Vehicle utilization is low - improve trip scheduling"))

    return insights


class PDFReportService:
    """
    Lays out report sections top to bottom, tracking the vertical position
    so a page break is inserted before any section that would cross the
    threshold.
    """

    def __init__(self, organization_name: Optional[str] = None, currency: Optional[str] = None):
        self.organization_name = organization_name or settings.ORGANIZATION_NAME
        self.currency = currency or settings.CURRENCY_LABEL
        self.parts: List[str] = []
        self.current_y = PAGE_TOP
        self.page_breaks = 0

    def init_document(self, title: str) -> None:
        self.parts = []
        self.current_y = PAGE_TOP
        self.page_breaks = 0
        self.add_header(title)

    def check_page_break(self, required_space: float) -> bool:
        if self.current_y + required_space > PAGE_BREAK_AT:
            self.parts.append('<div class="page-break"></div>')
            self.current_y = PAGE_TOP
            self.page_breaks += 1
            return True
        return False

    def add_header(self, title: str) -> None:
        self.parts.append(
            '<div class="header">'
            f'<h1>{escape(self.organization_name)}</h1>'
            f'<h2>{escape(title)}</h2>'
            f'<p>Report date: {datetime.now().strftime("%Y-%m-%d")}</p>'
            '</div>'
        )
        self.current_y += 31 + 15

    def add_section_title(self, title: str) -> None:
        self.check_page_break(15)
        self.parts.append(f"<h3>{escape(title)}</h3>")
        self.current_y += 10

    def add_table(self, headers: List[str], rows: List[List[Any]], color: str) -> None:
        head = "".join(f'<th style="background-color: {color};">{escape(str(h))}</th>' for h in headers)
        body = "".join(
            "<tr>" + "".join(f"<td>{escape(str(cell))}</td>" for cell in row) + "</tr>"
            for row in rows
        )
        self.parts.append(f"<table><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>")
        self.current_y += (len(rows) + 1) * ROW_HEIGHT + 10

    def add_summary_cards(self, data: Dict[str, Any]) -> None:
        self.check_page_break(40)
        cards = [
            ("Total members", _number(data.get("total_members")), "members", "#3498db"),
            ("Total income", _number(data.get("total_income")), self.currency, "#2ecc71"),
            ("Total expenses", _number(data.get("total_expenses")), self.currency, "#e74c3c"),
            ("Net income", _number(data.get("net_income")), self.currency, "#9b59b6"),
        ]
        html = "".join(
            f'<div class="card" style="background-color: {color};">'
            f'<div class="label">{label}</div><div class="value">{value} {escape(unit)}</div></div>'
            for label, value, unit, color in cards
        )
        self.parts.append(f'<div class="cards">{html}</div>')
        self.current_y += 2 * (25 + 10) + 5

    def add_financial_summary(self, data: Dict[str, Any]) -> None:
        self.check_page_break(60)
        self.add_section_title("Financial summary")
        income = data.get("total_income") or 0
        self.add_table(
            ["Item", f"Amount ({self.currency})", "Share"],
            [
                ["Total income", _number(income), "100%"],
                ["Total expenses", _number(data.get("total_expenses")), _share(data.get("total_expenses"), income)],
                ["Net income", _number(data.get("net_income")), _share(data.get("net_income"), income)],
            ],
            "#2c3e50"
        )

    def add_member_statistics(self, data: Dict[str, Any]) -> None:
        self.check_page_break(80)
        self.add_section_title("Member statistics")
        total = data.get("total_members") or 0
        rows = [
            [label, data.get(key) or 0, _share(data.get(key), total)]
            for label, key in (
                ("Active", "active_members"),
                ("Inactive", "inactive_members"),
                ("Deceased", "deceased_members"),
                ("Withdrawn", "withdrawn_members"),
            )
        ]
        self.add_table(["Status", "Count", "Share"], rows, "#3498db")

    def add_income_breakdown(self, data: Dict[str, Any]) -> None:
        income_by_type = data.get("income_by_type") or {}
        if not income_by_type:
            return
        self.check_page_break(60)
        self.add_section_title("Income by type")
        rows = [
            [PAYMENT_TYPE_NAMES.get(kind, kind), _number(amount), _share(amount, data.get("total_income"))]
            for kind, amount in income_by_type.items()
        ]
        self.add_table(["Income type", f"Amount ({self.currency})", "Share"], rows, "#2ecc71")

    def add_expense_breakdown(self, data: Dict[str, Any]) -> None:
        by_category = data.get("expenses_by_category") or {}
        if not by_category:
            return
        self.check_page_break(60)
        self.add_section_title("Expenses by category")
        rows = [
            [EXPENSE_CATEGORY_NAMES.get(category, category), _number(amount), _share(amount, data.get("total_expenses"))]
            for category, amount in by_category.items()
        ]
        self.add_table(["Category", f"Amount ({self.currency})", "Share"], rows, "#e74c3c")

    def add_vehicle_statistics(self, data: Dict[str, Any]) -> None:
        if "total_vehicles" not in data:
            return
        self.check_page_break(80)
        self.add_section_title("Vehicle statistics")
        self.add_table(
            ["Item", "Count"],
            [
                ["Total vehicles", data.get("total_vehicles") or 0],
                ["Available", data.get("available_vehicles") or 0],
                ["In use", data.get("in_use_vehicles") or 0],
                ["In maintenance", data.get("maintenance_vehicles") or 0],
            ],
            "#9b59b6"
        )

    def add_recent_activities(self, data: Dict[str, Any]) -> None:
        self.check_page_break(100)
        self.add_section_title("Recent activity")

        payments = (data.get("recent_payments") or [])[:5]
        if payments:
            self.parts.append("<h4>Latest payments</h4>")
            self.current_y += 8
            self.add_table(
                ["Member", "Type", "Amount", "Date"],
                [
                    [
                        p.get("member_name") or "Unknown",
                        PAYMENT_TYPE_NAMES.get(p.get("payment_type"), p.get("payment_type") or ""),
                        _number(p.get("amount")),
                        _date(p.get("date")),
                    ]
                    for p in payments
                ],
                "#2ecc71"
            )

        expenses = (data.get("recent_expenses") or [])[:5]
        if expenses:
            self.check_page_break(60)
            self.parts.append("<h4>Latest expenses</h4>")
            self.current_y += 8
            self.add_table(
                ["Category", "Purpose", "Amount", "Date"],
                [
                    [
                        EXPENSE_CATEGORY_NAMES.get(e.get("category"), e.get("category") or ""),
                        e.get("purpose") or "",
                        _number(e.get("amount")),
                        _date(e.get("date")),
                    ]
                    for e in expenses
                ],
                "#e74c3c"
            )

    def add_business_insights(self, data: Dict[str, Any]) -> None:
        self.check_page_break(100)
        self.add_section_title("Insights")
        insights = build_insights(data)
        items = "".join(f'<li class="{level}">{escape(text)}</li>' for level, text in insights)
        self.parts.append(f'<ul class="insights">{items}</ul>')
        self.current_y += len(insights) * 6 + 10

    def add_footer(self) -> None:
        self.parts.append(
            f'<div class="footer">Generated by the {escape(self.organization_name)} management system</div>'
        )

    def to_html(self) -> str:
        return (
            '<!DOCTYPE html><html><head><meta charset="UTF-8">'
            f"<style>{STYLES}</style></head><body>"
            + "".join(self.parts)
            + "</body></html>"
        )

    # ------------------------------------------------------------------
    # Report layouts
    # ------------------------------------------------------------------

    def comprehensive_report(self, data: Dict[str, Any]) -> str:
        self.init_document(f"Comprehensive report - {self.organization_name}")
        self.add_summary_cards(data)
        self.add_financial_summary(data)
        self.add_member_statistics(data)
        self.add_income_breakdown(data)
        self.add_expense_breakdown(data)
        self.add_vehicle_statistics(data)
        self.add_recent_activities(data)
        self.add_business_insights(data)
        self.add_footer()
        return self.to_html()

    def financial_report(self, data: Dict[str, Any]) -> str:
        self.init_document("Financial report")
        self.add_financial_summary(data)
        self.add_income_breakdown(data)
        self.add_expense_breakdown(data)
        self.add_business_insights(data)
        self.add_footer()
        return self.to_html()

    def member_report(self, data: Dict[str, Any]) -> str:
        self.init_document("Member report")
        self.add_member_statistics(data)
        self.add_recent_activities(data)
        self.add_business_insights(data)
        self.add_footer()
        return self.to_html()

    def vehicle_report(self, data: Dict[str, Any]) -> str:
        self.init_document("Vehicle report")
        self.add_vehicle_statistics(data)
        self.add_footer()
        return self.to_html()
