"""PDF report download endpoints"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session
from datetime import date
from typing import Optional
import logging

from app.db.session import get_db
from app.models.user import User
from app.dependencies.policy import authorize
from app.services import pdf_report_service
from app.services.pdf_report_service import PDFRenderError, PDFReportService
from app.services.report_service import ReportService
from app.utils.responses import internal_error

logger = logging.getLogger(__name__)

router = APIRouter()

REPORTS = {
    "comprehensive": (ReportService.gather_comprehensive, PDFReportService.comprehensive_report),
    "financial": (ReportService.gather_financial, PDFReportService.financial_report),
    "members": (ReportService.gather_members, PDFReportService.member_report),
    "vehicles": (ReportService.gather_vehicles, PDFReportService.vehicle_report),
}

FILENAMES = {
    "comprehensive": "comprehensive-report.pdf",
    "financial": "financial-report.pdf",
    "members": "member-report.pdf",
    "vehicles": "vehicle-report.pdf",
}


def render_report(kind: str, db: Session, start_date: Optional[date], end_date: Optional[date]) -> Response:
    gather, layout = REPORTS[kind]
    try:
        data = gather(db, start_date, end_date)
        html = layout(PDFReportService(), data)
        pdf_bytes = pdf_report_service.write_pdf(html)
    except PDFRenderError as e:
        logger.error(f"PDF rendering failed for {kind} report: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="PDF rendering is currently unavailable"
        )
    except Exception as e:
        raise internal_error(f"Error generating {kind} report", e)

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{FILENAMES[kind]}"'}
    )


@router.get("/comprehensive")
async def comprehensive_report(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    current_user: User = Depends(authorize("pdf", "read")),
    db: Session = Depends(get_db)
):
    return render_report("comprehensive", db, start_date, end_date)


@router.get("/financial")
async def financial_report(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    current_user: User = Depends(authorize("pdf", "read")),
    db: Session = Depends(get_db)
):
    return render_report("financial", db, start_date, end_date)


@router.get("/members")
async def member_report(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    current_user: User = Depends(authorize("pdf", "read")),
    db: Session = Depends(get_db)
):
    return render_report("members", db, start_date, end_date)


@router.get("/vehicles")
async def vehicle_report(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    current_user: User = Depends(authorize("pdf", "read")),
    db: Session = Depends(get_db)
):
    return render_report("vehicles", db, start_date, end_date)
