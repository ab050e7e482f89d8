"""Aggregate reporting over members, finances and the vehicle fleet"""
from collections import Counter
from datetime import date, datetime, time, timedelta
from io import BytesIO
from typing import Any, Dict, List, Optional, Tuple
import logging

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from sqlalchemy import extract, func
from sqlalchemy.orm import Session, joinedload, selectinload

from app.models.expense import Expense
from app.models.maintenance import Maintenance
from app.models.member import Member, MembershipStatus
from app.models.payment import Payment
from app.models.trip import Trip
from app.models.vehicle import Vehicle, VehicleStatus
from app.schemas.expense import ExpenseResponse
from app.schemas.member import MemberResponse
from app.schemas.payment import PaymentResponse
from app.schemas.trip import TripResponse
from app.utils.responses import dump_many

logger = logging.getLogger(__name__)

RECENT_LIMIT = 3


def start_of_day(value: date) -> datetime:
    return datetime.combine(value, time.min)


def end_of_day(value: date) -> datetime:
    return datetime.combine(value, time.max)


def month_start(value: datetime) -> datetime:
    return datetime(value.year, value.month, 1)


def shift_month(value: datetime, months: int) -> datetime:
    """Move to the first day of the month ``months`` away"""
    index = value.year * 12 + (value.month - 1) + months
    return datetime(index // 12, index % 12 + 1, 1)


def one_month_before(value: datetime) -> datetime:
    """Same day and time one calendar month earlier, clamped to the month's length"""
    previous = shift_month(value, -1)
    last_day = (month_start(value) - timedelta(days=1)).day
    return value.replace(year=previous.year, month=previous.month, day=min(value.day, last_day))


def resolve_window(start_date: Optional[date], end_date: Optional[date]) -> Tuple[datetime, datetime]:
    """Default window: January 1 of this year through the end of today"""
    today = date.today()
    start = start_of_day(start_date) if start_date else datetime(today.year, 1, 1)
    end = end_of_day(end_date or today)
    return start, end


def optional_window(column, start_date: Optional[date], end_date: Optional[date]) -> list:
    criteria = []
    if start_date:
        criteria.append(column >= start_of_day(start_date))
    if end_date:
        criteria.append(column <= end_of_day(end_date))
    return criteria


def percentage(part: float, whole: float) -> float:
    return round(part / whole * 100, 1) if whole else 0


class ReportService:
    """Per-call aggregate queries; nothing is cached"""

    @staticmethod
    def _sum(db: Session, column, *criteria) -> float:
        value = db.query(func.coalesce(func.sum(column), 0)).filter(*criteria).scalar()
        return float(value or 0)

    @staticmethod
    def _grouped_sum(db: Session, key, column, *criteria) -> Dict[str, int]:
        rows = db.query(key, func.sum(column)).filter(*criteria).group_by(key).all()
        return {name: round(float(total or 0)) for name, total in rows}

    @staticmethod
    def _monthly(db: Session, date_column, amount_column, *criteria) -> Dict[str, float]:
        year = extract('year', date_column)
        month = extract('month', date_column)
        rows = db.query(year, month, func.sum(amount_column))\
            .filter(*criteria)\
            .group_by(year, month)\
            .all()
        return {f"{int(y):04d}-{int(m):02d}": float(total or 0) for y, m, total in rows}

    @staticmethod
    def member_status_counts(db: Session, *criteria) -> Dict[str, int]:
        counts = {status.value: 0 for status in MembershipStatus}
        rows = db.query(Member.membership_status, func.count(Member.id))\
            .filter(*criteria)\
            .group_by(Member.membership_status)\
            .all()
        for status, count in rows:
            counts[MembershipStatus(status).value] = count
        return counts

    @staticmethod
    def vehicle_status_counts(db: Session) -> Dict[str, int]:
        counts = {status.value: 0 for status in VehicleStatus}
        rows = db.query(Vehicle.status, func.count(Vehicle.id)).group_by(Vehicle.status).all()
        for status, count in rows:
            counts[VehicleStatus(status).value] = count
        return counts

    @staticmethod
    def month_finances(db: Session, start: datetime, end: datetime) -> Dict[str, float]:
        income = ReportService._sum(db, Payment.amount, Payment.payment_date >= start, Payment.payment_date < end)
        expenses = ReportService._sum(db, Expense.amount, Expense.date >= start, Expense.date < end)
        return {"income": income, "expenses": expenses, "balance": income - expenses}

    @staticmethod
    def dashboard_stats(db: Session, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Counts, this month against last month, and the latest activity"""
        now = now or datetime.utcnow()
        current_start = month_start(now)
        next_start = shift_month(current_start, 1)
        previous_start = shift_month(current_start, -1)

        members = ReportService.member_status_counts(db)
        vehicles = ReportService.vehicle_status_counts(db)

        recent_payments = db.query(Payment)\
            .options(joinedload(Payment.member), joinedload(Payment.collected_by))\
            .order_by(Payment.payment_date.desc())\
            .limit(RECENT_LIMIT).all()
        recent_expenses = db.query(Expense)\
            .options(joinedload(Expense.spent_by), joinedload(Expense.approved_by))\
            .order_by(Expense.date.desc())\
            .limit(RECENT_LIMIT).all()
        recent_members = db.query(Member)\
            .options(selectinload(Member.payments))\
            .order_by(Member.join_date.desc())\
            .limit(RECENT_LIMIT).all()
        recent_trips = db.query(Trip)\
            .options(joinedload(Trip.vehicle), joinedload(Trip.driver), selectinload(Trip.passengers))\
            .order_by(Trip.start_date.desc())\
            .limit(RECENT_LIMIT).all()

        return {
            "members": {"total": sum(members.values()), **members},
            "vehicles": {
                "total": sum(vehicles.values()),
                "available": vehicles[VehicleStatus.AVAILABLE.value],
                "inUse": vehicles[VehicleStatus.IN_USE.value],
                "maintenance": vehicles[VehicleStatus.MAINTENANCE.value],
                "outOfService": vehicles[VehicleStatus.OUT_OF_SERVICE.value],
            },
            "finances": {
                "currentMonth": ReportService.month_finances(db, current_start, next_start),
                "lastMonth": ReportService.month_finances(db, previous_start, current_start),
            },
            "recent": {
                "payments": dump_many(PaymentResponse, recent_payments),
                "expenses": dump_many(ExpenseResponse, recent_expenses),
                "members": dump_many(MemberResponse, recent_members),
                "trips": dump_many(TripResponse, recent_trips),
            },
        }

    @staticmethod
    def financial_report(db: Session, start: datetime, end: datetime) -> Dict[str, Any]:
        paid_in = (Payment.payment_date >= start, Payment.payment_date <= end)
        spent_in = (Expense.date >= start, Expense.date <= end)

        total_income = round(ReportService._sum(db, Payment.amount, *paid_in))
        total_expenses = round(ReportService._sum(db, Expense.amount, *spent_in))

        monthly_breakdown: Dict[str, Dict[str, int]] = {}
        for month, amount in ReportService._monthly(db, Payment.payment_date, Payment.amount, *paid_in).items():
            monthly_breakdown.setdefault(month, {"income": 0, "expenses": 0})["income"] = round(amount)
        for month, amount in ReportService._monthly(db, Expense.date, Expense.amount, *spent_in).items():
            monthly_breakdown.setdefault(month, {"income": 0, "expenses": 0})["expenses"] = round(amount)

        return {
            "totalIncome": total_income,
            "totalExpenses": total_expenses,
            "netIncome": round(total_income - total_expenses),
            "expenseRatio": percentage(total_expenses, total_income),
            "incomeByType": ReportService._grouped_sum(db, Payment.payment_type, Payment.amount, *paid_in),
            "expensesByCategory": ReportService._grouped_sum(db, Expense.category, Expense.amount, *spent_in),
            "monthlyBreakdown": dict(sorted(monthly_breakdown.items())),
        }

    @staticmethod
    def member_report(db: Session, start: datetime, end: datetime) -> Dict[str, Any]:
        total_members = db.query(func.count(Member.id)).scalar()
        new_members = db.query(func.count(Member.id))\
            .filter(Member.join_date >= start, Member.join_date <= end)\
            .scalar()

        previous_start = one_month_before(start)
        previous_new = db.query(func.count(Member.id))\
            .filter(Member.join_date >= previous_start, Member.join_date < start)\
            .scalar()

        if previous_new:
            growth_rate = round((new_members - previous_new) / previous_new * 100, 1)
        else:
            growth_rate = 100 if new_members else 0

        cities = Counter(
            (address or {}).get("city") or "Unknown"
            for (address,) in db.query(Member.primary_address).all()
        )

        return {
            "totalMembers": total_members,
            "newMembers": new_members,
            "growthRate": growth_rate,
            "statusDistribution": ReportService.member_status_counts(db),
            "cityDistribution": dict(cities),
        }

    @staticmethod
    def vehicle_report(db: Session, start_date: Optional[date] = None, end_date: Optional[date] = None) -> Dict[str, Any]:
        trip_window = optional_window(Trip.start_date, start_date, end_date)
        maintenance_window = optional_window(Maintenance.date, start_date, end_date)

        trip_rows = db.query(
            Trip.vehicle_id,
            func.count(Trip.id),
            func.sum(Trip.end_odometer - Trip.start_odometer)
        ).filter(*trip_window).group_by(Trip.vehicle_id).all()
        trips = {vehicle_id: (count, int(distance or 0)) for vehicle_id, count, distance in trip_rows}

        cost_rows = db.query(Maintenance.vehicle_id, func.sum(Maintenance.cost))\
            .filter(*maintenance_window)\
            .group_by(Maintenance.vehicle_id)\
            .all()
        costs = {vehicle_id: float(cost or 0) for vehicle_id, cost in cost_rows}

        vehicles = []
        for vehicle in db.query(Vehicle).order_by(Vehicle.id).all():
            trip_count, distance = trips.get(vehicle.id, (0, 0))
            vehicles.append({
                "id": vehicle.id,
                "make": vehicle.make,
                "model": vehicle.model,
                "licensePlate": vehicle.license_plate,
                "status": vehicle.status.value,
                "tripCount": trip_count,
                "totalDistance": distance,
                "maintenanceCost": costs.get(vehicle.id, 0.0),
            })

        total_trips = sum(v["tripCount"] for v in vehicles)
        total_distance = sum(v["totalDistance"] for v in vehicles)
        return {
            "totalVehicles": len(vehicles),
            "totalTrips": total_trips,
            "totalMaintenanceCost": sum(v["maintenanceCost"] for v in vehicles),
            "averageTripDistance": round(total_distance / total_trips) if total_trips else 0,
            "vehicles": vehicles,
        }

    # ------------------------------------------------------------------
    # Exports
    # ------------------------------------------------------------------

    @staticmethod
    def export_members(db: Session) -> List[Dict[str, Any]]:
        members = db.query(Member)\
            .options(selectinload(Member.payments))\
            .order_by(Member.id)\
            .all()
        return dump_many(MemberResponse, members)

    @staticmethod
    def export_financial(db: Session, start: datetime, end: datetime) -> Dict[str, Any]:
        payments = db.query(Payment)\
            .options(joinedload(Payment.member), joinedload(Payment.collected_by))\
            .filter(Payment.payment_date >= start, Payment.payment_date <= end)\
            .order_by(Payment.payment_date)\
            .all()
        expenses = db.query(Expense)\
            .options(joinedload(Expense.spent_by), joinedload(Expense.approved_by))\
            .filter(Expense.date >= start, Expense.date <= end)\
            .order_by(Expense.date)\
            .all()
        return {
            "payments": {"count": len(payments), "records": dump_many(PaymentResponse, payments)},
            "expenses": {"count": len(expenses), "records": dump_many(ExpenseResponse, expenses)},
            "period": {"start": start.isoformat(), "end": end.isoformat()},
        }

    @staticmethod
    def _write_sheet(sheet, headers: List[str], rows: List[List[Any]]) -> None:
        sheet.append(headers)
        for cell in sheet[1]:
            cell.font = Font(bold=True, color="FFFFFF")
            cell.fill = PatternFill("solid", fgColor="2C3E50")
        for row in rows:
            sheet.append(row)
        for column in sheet.columns:
            width = max(len(str(cell.value or "")) for cell in column)
            sheet.column_dimensions[column[0].column_letter].width = min(width + 2, 50)

    @staticmethod
    def _workbook_bytes(workbook: Workbook) -> bytes:
        buffer = BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()

    @staticmethod
    def members_workbook(members: List[Dict[str, Any]]) -> bytes:
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = "Members"
        rows = []
        for m in members:
            name = m["fullName"]
            address = m["primaryAddress"] or {}
            rows.append([
                m["id"],
                " ".join(part for part in (name["first"], name.get("middle"), name["last"]) if part),
                m["nationalId"],
                m["dateOfBirth"],
                m["contact"]["phone"],
                m["contact"].get("email") or "",
                address.get("city") or "",
                m["membershipStatus"],
                m["joinDate"],
                len(m["paymentRecords"]),
            ])
        ReportService._write_sheet(
            sheet,
            ["ID", "Name", "National ID", "Date of Birth", "Phone", "Email", "City", "Status", "Join Date", "Payments"],
            rows
        )
        return ReportService._workbook_bytes(workbook)

    @staticmethod
    def financial_workbook(data: Dict[str, Any]) -> bytes:
        workbook = Workbook()
        payments_sheet = workbook.active
        payments_sheet.title = "Payments"
        payment_rows = []
        for p in data["payments"]["records"]:
            member = p.get("member") or {}
            name = member.get("fullName") or {}
            payment_rows.append([
                p["receiptNumber"],
                " ".join(part for part in (name.get("first"), name.get("last")) if part),
                member.get("nationalId") or "",
                p["paymentType"],
                p["paymentMethod"],
                p["amount"],
                p["paymentDate"],
                "yes" if p["isPaid"] else "no",
                (p.get("collectedBy") or {}).get("fullName") or "",
            ])
        ReportService._write_sheet(
            payments_sheet,
            ["Receipt", "Member", "National ID", "Type", "Method", "Amount", "Date", "Paid", "Collected By"],
            payment_rows
        )

        expenses_sheet = workbook.create_sheet("Expenses")
        expense_rows = [
            [
                e["id"],
                e["category"],
                e["purpose"],
                e["amount"],
                e["date"],
                e["approvalStatus"],
                (e.get("spentBy") or {}).get("fullName") or "",
                (e.get("approvedBy") or {}).get("fullName") or "",
            ]
            for e in data["expenses"]["records"]
        ]
        ReportService._write_sheet(
            expenses_sheet,
            ["ID", "Category", "Purpose", "Amount", "Date", "Status", "Spent By", "Approved By"],
            expense_rows
        )
        return ReportService._workbook_bytes(workbook)

    # ------------------------------------------------------------------
    # PDF report data
    # ------------------------------------------------------------------

    @staticmethod
    def _finance_totals(db: Session, start_date: Optional[date], end_date: Optional[date]) -> Dict[str, Any]:
        paid_in = optional_window(Payment.payment_date, start_date, end_date)
        spent_in = optional_window(Expense.date, start_date, end_date)
        total_income = ReportService._sum(db, Payment.amount, *paid_in)
        total_expenses = ReportService._sum(db, Expense.amount, *spent_in)
        return {
            "total_income": total_income,
            "total_expenses": total_expenses,
            "net_income": total_income - total_expenses,
            "income_by_type": ReportService._grouped_sum(db, Payment.payment_type, Payment.amount, *paid_in),
            "expenses_by_category": ReportService._grouped_sum(db, Expense.category, Expense.amount, *spent_in),
        }

    @staticmethod
    def _member_totals(db: Session, start_date: Optional[date], end_date: Optional[date]) -> Dict[str, Any]:
        counts = ReportService.member_status_counts(
            db, *optional_window(Member.created_at, start_date, end_date)
        )
        return {
            "total_members": sum(counts.values()),
            "active_members": counts[MembershipStatus.ACTIVE.value],
            "inactive_members": counts[MembershipStatus.INACTIVE.value],
            "deceased_members": counts[MembershipStatus.DECEASED.value],
            "withdrawn_members": counts[MembershipStatus.WITHDRAWN.value],
        }

    @staticmethod
    def _vehicle_totals(db: Session) -> Dict[str, Any]:
        counts = ReportService.vehicle_status_counts(db)
        return {
            "total_vehicles": sum(counts.values()),
            "available_vehicles": counts[VehicleStatus.AVAILABLE.value],
            "in_use_vehicles": counts[VehicleStatus.IN_USE.value],
            "maintenance_vehicles": counts[VehicleStatus.MAINTENANCE.value],
        }

    @staticmethod
    def _recent_payments(db: Session, limit: int = 5) -> List[Dict[str, Any]]:
        payments = db.query(Payment)\
            .options(joinedload(Payment.member))\
            .order_by(Payment.payment_date.desc())\
            .limit(limit).all()
        return [
            {
                "member_name": p.member.display_name if p.member else "",
                "payment_type": p.payment_type,
                "amount": float(p.amount),
                "date": p.payment_date,
            }
            for p in payments
        ]

    @staticmethod
    def _recent_expenses(db: Session, limit: int = 5) -> List[Dict[str, Any]]:
        expenses = db.query(Expense).order_by(Expense.date.desc()).limit(limit).all()
        return [
            {
                "category": e.category,
                "purpose": e.purpose,
                "amount": float(e.amount),
                "date": e.date,
            }
            for e in expenses
        ]

    @staticmethod
    def gather_comprehensive(db: Session, start_date: Optional[date] = None, end_date: Optional[date] = None) -> Dict[str, Any]:
        return {
            **ReportService._member_totals(db, start_date, end_date),
            **ReportService._finance_totals(db, start_date, end_date),
            **ReportService._vehicle_totals(db),
            "recent_payments": ReportService._recent_payments(db),
            "recent_expenses": ReportService._recent_expenses(db),
        }

    @staticmethod
    def gather_financial(db: Session, start_date: Optional[date] = None, end_date: Optional[date] = None) -> Dict[str, Any]:
        return ReportService._finance_totals(db, start_date, end_date)

    @staticmethod
    def gather_members(db: Session, start_date: Optional[date] = None, end_date: Optional[date] = None) -> Dict[str, Any]:
        return {
            **ReportService._member_totals(db, start_date, end_date),
            "recent_payments": ReportService._recent_payments(db),
        }

    @staticmethod
    def gather_vehicles(db: Session, start_date: Optional[date] = None, end_date: Optional[date] = None) -> Dict[str, Any]:
        return ReportService._vehicle_totals(db)
