"""Aggregate report and export endpoints"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session
from datetime import date
from typing import Literal, Optional
import logging

from app.db.session import get_db
from app.models.user import User
from app.dependencies.policy import authorize
from app.services.report_service import ReportService, end_of_day, resolve_window, start_of_day
from app.utils.responses import internal_error

logger = logging.getLogger(__name__)

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def workbook_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.get("/dashboard")
async def get_dashboard_stats(
    current_user: User = Depends(authorize("reports", "dashboard")),
    db: Session = Depends(get_db)
):
    """
    Dashboard counts, this month against last month, and the latest activity
    """
    try:
        return {"success": True, "data": ReportService.dashboard_stats(db)}
    except Exception as e:
        raise internal_error("Error retrieving dashboard statistics", e)


@router.get("/financial")
async def get_financial_report(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    current_user: User = Depends(authorize("reports", "read")),
    db: Session = Depends(get_db)
):
    start, end = resolve_window(start_date, end_date)
    try:
        return {"success": True, "data": ReportService.financial_report(db, start, end)}
    except Exception as e:
        raise internal_error("Error retrieving financial report", e)


@router.get("/members")
async def get_member_report(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    current_user: User = Depends(authorize("reports", "read")),
    db: Session = Depends(get_db)
):
    start, end = resolve_window(start_date, end_date)
    try:
        return {"success": True, "data": ReportService.member_report(db, start, end)}
    except Exception as e:
        raise internal_error("Error retrieving member report", e)


@router.get("/vehicles")
async def get_vehicle_report(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    current_user: User = Depends(authorize("reports", "read")),
    db: Session = Depends(get_db)
):
    try:
        return {"success": True, "data": ReportService.vehicle_report(db, start_date, end_date)}
    except Exception as e:
        raise internal_error("Error retrieving vehicle report", e)


@router.get("/export/members")
async def export_members(
    format: Literal["json", "excel"] = "json",
    current_user: User = Depends(authorize("reports", "export")),
    db: Session = Depends(get_db)
):
    try:
        members = ReportService.export_members(db)
        if format == "excel":
            return workbook_response(ReportService.members_workbook(members), "members.xlsx")
    except Exception as e:
        raise internal_error("Error exporting member data", e)

    return {"success": True, "count": len(members), "data": members}


@router.get("/export/financial")
async def export_financial(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    format: Literal["json", "excel"] = "json",
    current_user: User = Depends(authorize("reports", "export")),
    db: Session = Depends(get_db)
):
    if not start_date or not end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please provide startDate and endDate"
        )

    try:
        data = ReportService.export_financial(db, start_of_day(start_date), end_of_day(end_date))
        if format == "excel":
            filename = f"financial-{start_date.isoformat()}-{end_date.isoformat()}.xlsx"
            return workbook_response(ReportService.financial_workbook(data), filename)
    except Exception as e:
        raise internal_error("Error exporting financial data", e)

    return {"success": True, "data": data}
