"""Vehicle fleet endpoints"""
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy import or_
from sqlalchemy.orm import Session
from typing import Optional
import logging

from app.db.session import get_db
from app.models.user import User
from app.models.vehicle import Vehicle, VehicleStatus
from app.dependencies.policy import authorize
from app.schemas.vehicle import VehicleCreate, VehicleResponse, VehicleStatusUpdate, VehicleUpdate
from app.services.file_storage import file_storage
from app.utils.responses import commit_or_conflict, dump, internal_error, listing, paginate

logger = logging.getLogger(__name__)

router = APIRouter()

DUPLICATE_PLATE = "A vehicle with this license plate already exists"
REQUIRED_FIELDS = {"make", "model", "year", "license_plate", "status", "current_odometer", "fuel_type"}


def get_vehicle_or_404(db: Session, vehicle_id: int) -> Vehicle:
    vehicle = db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()
    if not vehicle:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vehicle not found")
    return vehicle


def plate_taken(db: Session, license_plate: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Vehicle.id).filter(Vehicle.license_plate == license_plate)
    if exclude_id is not None:
        query = query.filter(Vehicle.id != exclude_id)
    return query.first() is not None


@router.get("")
async def list_vehicles(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status_filter: Optional[VehicleStatus] = Query(None, alias="status"),
    search: Optional[str] = None,
    current_user: User = Depends(authorize("vehicles", "read")),
    db: Session = Depends(get_db)
):
    """
    List vehicles, most recently added first

    ``search`` matches make, model or license plate.
    """
    query = db.query(Vehicle)

    if status_filter:
        query = query.filter(Vehicle.status == status_filter)

    if search:
        term = f"%{search.strip()}%"
        query = query.filter(or_(
            Vehicle.make.ilike(term),
            Vehicle.model.ilike(term),
            Vehicle.license_plate.ilike(term),
        ))

    query = query.order_by(Vehicle.created_at.desc(), Vehicle.id.desc())
    return listing(VehicleResponse, paginate(query, page, limit))


@router.get("/{vehicle_id}")
async def get_vehicle(
    vehicle_id: int,
    current_user: User = Depends(authorize("vehicles", "read")),
    db: Session = Depends(get_db)
):
    vehicle = get_vehicle_or_404(db, vehicle_id)
    return {"success": True, "data": dump(VehicleResponse, vehicle)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    payload: VehicleCreate,
    current_user: User = Depends(authorize("vehicles", "create")),
    db: Session = Depends(get_db)
):
    if plate_taken(db, payload.license_plate):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=DUPLICATE_PLATE)

    try:
        vehicle = Vehicle(**payload.model_dump(), documents=[])
        db.add(vehicle)
        commit_or_conflict(db, DUPLICATE_PLATE)
        db.refresh(vehicle)
        return {"success": True, "data": dump(VehicleResponse, vehicle)}
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        raise internal_error("Error creating vehicle", e)


@router.put("/{vehicle_id}")
async def update_vehicle(
    vehicle_id: int,
    payload: VehicleUpdate,
    current_user: User = Depends(authorize("vehicles", "update")),
    db: Session = Depends(get_db)
):
    vehicle = get_vehicle_or_404(db, vehicle_id)

    if payload.license_plate and payload.license_plate != vehicle.license_plate:
        if plate_taken(db, payload.license_plate, exclude_id=vehicle.id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=DUPLICATE_PLATE)

    try:
        for field in payload.model_fields_set:
            value = getattr(payload, field)
            if value is None and field in REQUIRED_FIELDS:
                continue
            setattr(vehicle, field, value)
        commit_or_conflict(db, DUPLICATE_PLATE)
        db.refresh(vehicle)
        return {"success": True, "data": dump(VehicleResponse, vehicle)}
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        raise internal_error("Error updating vehicle", e)


@router.delete("/{vehicle_id}")
async def delete_vehicle(
    vehicle_id: int,
    current_user: User = Depends(authorize("vehicles", "delete")),
    db: Session = Depends(get_db)
):
    """
    Delete a vehicle together with its trips and maintenance records
    """
    vehicle = get_vehicle_or_404(db, vehicle_id)
    documents = list(vehicle.documents or [])

    try:
        db.delete(vehicle)
        db.commit()
    except Exception as e:
        db.rollback()
        raise internal_error("Error deleting vehicle", e)

    for url in documents:
        file_storage.delete(url)
    return {"success": True, "data": {}}


@router.put("/{vehicle_id}/status")
async def update_vehicle_status(
    vehicle_id: int,
    payload: VehicleStatusUpdate,
    current_user: User = Depends(authorize("vehicles", "status")),
    db: Session = Depends(get_db)
):
    vehicle = get_vehicle_or_404(db, vehicle_id)

    try:
        new_status = VehicleStatus(payload.status)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid status. Allowed values: {', '.join(s.value for s in VehicleStatus)}"
        )

    vehicle.status = new_status
    db.commit()
    db.refresh(vehicle)
    logger.info(f"Vehicle {vehicle.id} status set to {new_status.value}")
    return {"success": True, "data": dump(VehicleResponse, vehicle)}


@router.put("/{vehicle_id}/document")
async def upload_vehicle_document(
    vehicle_id: int,
    document: UploadFile = File(...),
    current_user: User = Depends(authorize("vehicles", "upload")),
    db: Session = Depends(get_db)
):
    vehicle = get_vehicle_or_404(db, vehicle_id)

    try:
        url = await file_storage.save_upload(document, "document", prefix=f"vehicle-{vehicle.id}")
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    vehicle.documents.append(url)
    db.commit()
    db.refresh(vehicle)
    return {"success": True, "data": dump(VehicleResponse, vehicle)}
