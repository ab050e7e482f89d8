"""Vehicle maintenance endpoints"""
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session, joinedload
from datetime import date, datetime
from typing import Optional
import logging

from app.db.session import get_db
from app.models.maintenance import Maintenance
from app.models.user import User
from app.models.vehicle import Vehicle, VehicleStatus
from app.dependencies.policy import authorize
from app.schemas.maintenance import MaintenanceCreate, MaintenanceResponse, MaintenanceUpdate
from app.services.file_storage import file_storage
from app.services.report_service import end_of_day, start_of_day
from app.utils.responses import dump, internal_error, listing, paginate

logger = logging.getLogger(__name__)

router = APIRouter()

REQUIRED_FIELDS = {"maintenance_type", "date", "description", "cost", "service_provider"}


def get_record_or_404(db: Session, record_id: int) -> Maintenance:
    record = db.query(Maintenance)\
        .options(joinedload(Maintenance.vehicle))\
        .filter(Maintenance.id == record_id)\
        .first()
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Maintenance record not found")
    return record


@router.get("")
async def list_maintenance(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    vehicle: Optional[int] = None,
    maintenance_type: Optional[str] = Query(None, alias="maintenanceType"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    current_user: User = Depends(authorize("maintenance", "read")),
    db: Session = Depends(get_db)
):
    """
    List maintenance records, most recent first
    """
    query = db.query(Maintenance).options(joinedload(Maintenance.vehicle))

    if vehicle is not None:
        query = query.filter(Maintenance.vehicle_id == vehicle)
    if maintenance_type:
        query = query.filter(Maintenance.maintenance_type == maintenance_type)
    if start_date and end_date:
        query = query.filter(
            Maintenance.date >= start_of_day(start_date),
            Maintenance.date <= end_of_day(end_date)
        )

    query = query.order_by(Maintenance.date.desc(), Maintenance.id.desc())
    return listing(MaintenanceResponse, paginate(query, page, limit))


@router.get("/{record_id}")
async def get_maintenance(
    record_id: int,
    current_user: User = Depends(authorize("maintenance", "read")),
    db: Session = Depends(get_db)
):
    record = get_record_or_404(db, record_id)
    return {"success": True, "data": dump(MaintenanceResponse, record)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_maintenance(
    payload: MaintenanceCreate,
    current_user: User = Depends(authorize("maintenance", "create")),
    db: Session = Depends(get_db)
):
    """
    Record maintenance; anything but an inspection puts the vehicle into maintenance
    """
    vehicle = db.query(Vehicle).filter(Vehicle.id == payload.vehicle).first()
    if not vehicle:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vehicle not found")

    try:
        record = Maintenance(
            vehicle=vehicle,
            documents=[],
            **payload.model_dump(exclude={"vehicle"})
        )
        if record.takes_vehicle_out_of_service:
            vehicle.status = VehicleStatus.MAINTENANCE
        db.add(record)
        db.commit()
        return {"success": True, "data": dump(MaintenanceResponse, get_record_or_404(db, record.id))}
    except Exception as e:
        db.rollback()
        raise internal_error("Error creating maintenance record", e)


@router.put("/{record_id}")
async def update_maintenance(
    record_id: int,
    payload: MaintenanceUpdate,
    current_user: User = Depends(authorize("maintenance", "update")),
    db: Session = Depends(get_db)
):
    record = get_record_or_404(db, record_id)

    try:
        for field in payload.model_fields_set:
            value = getattr(payload, field)
            if value is None and field in REQUIRED_FIELDS:
                continue
            setattr(record, field, value)
        db.commit()
        return {"success": True, "data": dump(MaintenanceResponse, get_record_or_404(db, record.id))}
    except Exception as e:
        db.rollback()
        raise internal_error("Error updating maintenance record", e)


@router.delete("/{record_id}")
async def delete_maintenance(
    record_id: int,
    current_user: User = Depends(authorize("maintenance", "delete")),
    db: Session = Depends(get_db)
):
    record = get_record_or_404(db, record_id)
    documents = list(record.documents or [])

    try:
        db.delete(record)
        db.commit()
    except Exception as e:
        db.rollback()
        raise internal_error("Error deleting maintenance record", e)

    for url in documents:
        file_storage.delete(url)
    return {"success": True, "data": {}}


def has_open_repairs(db: Session, record: Maintenance) -> bool:
    """Whether another unfinished record still keeps the vehicle out of service"""
    open_records = db.query(Maintenance).filter(
        Maintenance.vehicle_id == record.vehicle_id,
        Maintenance.id != record.id,
        Maintenance.completed_at.is_(None)
    ).all()
    return any(r.takes_vehicle_out_of_service for r in open_records)


async def _complete(record_id: int, db: Session):
    record = get_record_or_404(db, record_id)

    if record.completed_at is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Maintenance has already been completed")

    try:
        record.completed_at = datetime.utcnow()
        vehicle = record.vehicle
        if vehicle is not None and vehicle.status == VehicleStatus.MAINTENANCE and not has_open_repairs(db, record):
            vehicle.status = VehicleStatus.AVAILABLE
        db.commit()
    except Exception as e:
        db.rollback()
        raise internal_error("Error completing maintenance", e)

    logger.info(f"Maintenance {record_id} completed")
    return {"success": True, "data": dump(MaintenanceResponse, get_record_or_404(db, record_id))}


@router.put("/{record_id}/complete")
async def complete_maintenance(
    record_id: int,
    current_user: User = Depends(authorize("maintenance", "complete")),
    db: Session = Depends(get_db)
):
    """
    Mark maintenance done and return the vehicle to service
    """
    return await _complete(record_id, db)


@router.put("/{record_id}/status")
async def update_maintenance_status(
    record_id: int,
    current_user: User = Depends(authorize("maintenance", "complete")),
    db: Session = Depends(get_db)
):
    return await _complete(record_id, db)


@router.put("/{record_id}/document")
async def upload_maintenance_document(
    record_id: int,
    document: UploadFile = File(...),
    current_user: User = Depends(authorize("maintenance", "upload")),
    db: Session = Depends(get_db)
):
    record = get_record_or_404(db, record_id)

    try:
        url = await file_storage.save_upload(document, "document", prefix=f"maintenance-{record.id}")
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    record.documents.append(url)
    db.commit()
    return {"success": True, "data": dump(MaintenanceResponse, get_record_or_404(db, record.id))}
