import pytest

from app.services import pdf_report_service
from app.services.pdf_report_service import PAGE_TOP, PDFRenderError, PDFReportService, build_insights

from factories import expense_payload, payment_payload


@pytest.fixture
def rendered(monkeypatch):
    pages = []

    def fake_write_pdf(html: str) -> bytes:
        pages.append(html)
        return b"%PDF-1.7 test"

    monkeypatch.setattr(pdf_report_service, "write_pdf", fake_write_pdf)
    return pages


@pytest.mark.parametrize("kind, filename", [
    ("comprehensive", "comprehensive-report.pdf"),
    ("financial", "financial-report.pdf"),
    ("members", "member-report.pdf"),
    ("vehicles", "vehicle-report.pdf"),
])
def test_pdf_downloads(client, member_user, rendered, kind, filename):
    response = client.get(f"/api/pdf/{kind}", headers=member_user["headers"])

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert filename in response.headers["content-disposition"]
    assert response.content == b"%PDF-1.7 test"
    assert rendered[0].startswith("<!DOCTYPE html>")


def test_comprehensive_pdf_contains_figures(client, staff, create_member, create_vehicle, rendered):
    member = create_member()
    create_vehicle()
    client.post("/api/payments", json=payment_payload(member["id"], amount=1000, paymentType="donation"), headers=staff["headers"])
    client.post("/api/expenses", json=expense_payload(amount=900), headers=staff["headers"])

    client.get("/api/pdf/comprehensive", headers=staff["headers"])

    html = rendered[0]
    assert "Al-Khair Charity Association" in html
    assert "Donation" in html
    assert "Utilities" in html
    assert "Expense ratio is high" in html


def test_pdf_requires_login(client):
    assert client.get("/api/pdf/financial").status_code == 401


def test_pdf_renderer_failure_is_503(client, staff, monkeypatch):
    def broken(html: str) -> bytes:
        raise PDFRenderError("renderer missing")

    monkeypatch.setattr(pdf_report_service, "write_pdf", broken)

    response = client.get("/api/pdf/financial", headers=staff["headers"])

    assert response.status_code == 503
    assert response.json()["message"] == "PDF rendering is currently unavailable"


def test_insights_thresholds():
    insights = build_insights({
        "total_income": 1000,
        "total_expenses": 900,
        "net_income": 100,
        "total_members": 10,
        "active_members": 9,
        "total_vehicles": 4,
        "in_use_vehicles": 1,
    })

    assert [level for level, _ in insights] == ["warning", "good", "good", "warning"]


def test_insights_for_healthy_finances_and_low_engagement():
    insights = build_insights({
        "total_income": 1000,
        "total_expenses": 1200,
        "net_income": -200,
        "total_members": 10,
        "active_members": 5,
    })

    texts = [text for _, text in insights]
    assert any("Net income is negative" in text for text in texts)
    assert any("Active member ratio is low" in text for text in texts)
    assert build_insights({}) == []


def test_page_break_resets_position():
    service = PDFReportService("Test Org", "SAR")
    service.init_document("Report")

    assert service.check_page_break(10) is False
    assert service.check_page_break(500) is True
    assert service.current_y == PAGE_TOP
    assert service.page_breaks == 1


def test_comprehensive_layout_breaks_pages():
    service = PDFReportService("Test Org", "SAR")

    html = service.comprehensive_report({"total_members": 0, "total_vehicles": 0})

    assert service.page_breaks >= 1
    assert 'class="page-break"' in html
    assert "Test Org" in html


def test_vehicle_section_needs_vehicle_data():
    service = PDFReportService("Test Org", "SAR")

    html = service.comprehensive_report({"total_income": 0})

    assert "Vehicle statistics" not in html
