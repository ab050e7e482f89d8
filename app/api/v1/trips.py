"""Trip logging endpoints

A trip holds its vehicle ``in_use`` from creation until it is completed or
cancelled; completion also advances the vehicle odometer.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session, joinedload, selectinload
from datetime import date, datetime
from typing import List, Optional
import logging

from app.db.session import get_db
from app.models.member import Member
from app.models.trip import Trip, TripStatus
from app.models.user import User
from app.models.vehicle import Vehicle, VehicleStatus
from app.dependencies.policy import authorize
from app.schemas.trip import TripComplete, TripCreate, TripResponse, TripUpdate
from app.services.report_service import end_of_day, start_of_day
from app.utils.responses import dump, internal_error, listing, paginate

logger = logging.getLogger(__name__)

router = APIRouter()

VEHICLE_UNAVAILABLE = "Vehicle is not currently available"
SETTABLE_STATUSES = (TripStatus.SCHEDULED, TripStatus.IN_PROGRESS)


def trip_query(db: Session):
    return db.query(Trip).options(
        joinedload(Trip.vehicle),
        joinedload(Trip.driver),
        selectinload(Trip.passengers)
    )


def get_trip_or_404(db: Session, trip_id: int) -> Trip:
    trip = trip_query(db).filter(Trip.id == trip_id).first()
    if not trip:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Trip not found")
    return trip


def get_available_vehicle(db: Session, vehicle_id: int) -> Vehicle:
    vehicle = db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()
    if not vehicle:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Vehicle not found")
    if vehicle.status != VehicleStatus.AVAILABLE:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=VEHICLE_UNAVAILABLE)
    return vehicle


def get_driver(db: Session, driver_id: int) -> User:
    driver = db.query(User).filter(User.id == driver_id).first()
    if not driver:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Driver not found")
    return driver


def get_passengers(db: Session, member_ids: List[int]) -> List[Member]:
    ids = list(dict.fromkeys(member_ids))
    if not ids:
        return []
    members = db.query(Member).filter(Member.id.in_(ids)).all()
    missing = set(ids) - {m.id for m in members}
    if missing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Passenger not found: {', '.join(str(i) for i in sorted(missing))}"
        )
    return members


def release_vehicle(trip: Trip) -> None:
    if trip.vehicle is not None and trip.vehicle.status == VehicleStatus.IN_USE:
        trip.vehicle.status = VehicleStatus.AVAILABLE


@router.get("")
async def list_trips(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    vehicle: Optional[int] = None,
    driver: Optional[int] = None,
    status_filter: Optional[TripStatus] = Query(None, alias="status"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    current_user: User = Depends(authorize("trips", "read")),
    db: Session = Depends(get_db)
):
    """
    List trips, most recent start first
    """
    query = trip_query(db)

    if vehicle is not None:
        query = query.filter(Trip.vehicle_id == vehicle)
    if driver is not None:
        query = query.filter(Trip.driver_id == driver)
    if status_filter:
        query = query.filter(Trip.status == status_filter)
    if start_date and end_date:
        query = query.filter(
            Trip.start_date >= start_of_day(start_date),
            Trip.start_date <= end_of_day(end_date)
        )

    query = query.order_by(Trip.start_date.desc(), Trip.id.desc())
    return listing(TripResponse, paginate(query, page, limit))


@router.get("/{trip_id}")
async def get_trip(
    trip_id: int,
    current_user: User = Depends(authorize("trips", "read")),
    db: Session = Depends(get_db)
):
    trip = get_trip_or_404(db, trip_id)
    return {"success": True, "data": dump(TripResponse, trip)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_trip(
    payload: TripCreate,
    current_user: User = Depends(authorize("trips", "create")),
    db: Session = Depends(get_db)
):
    """
    Start a trip; the vehicle must be available and becomes in use
    """
    vehicle = get_available_vehicle(db, payload.vehicle)
    driver = get_driver(db, payload.driver)
    passengers = get_passengers(db, payload.passengers)

    try:
        trip = Trip(
            vehicle=vehicle,
            driver=driver,
            passengers=passengers,
            start_date=payload.start_date,
            end_date=payload.end_date,
            purpose=payload.purpose,
            start_odometer=payload.start_odometer if payload.start_odometer is not None else vehicle.current_odometer,
            status=TripStatus.SCHEDULED,
            notes=payload.notes
        )
        vehicle.status = VehicleStatus.IN_USE
        db.add(trip)
        db.commit()
        return {"success": True, "data": dump(TripResponse, get_trip_or_404(db, trip.id))}
    except Exception as e:
        db.rollback()
        raise internal_error("Error creating trip", e)


@router.put("/{trip_id}")
async def update_trip(
    trip_id: int,
    payload: TripUpdate,
    current_user: User = Depends(authorize("trips", "update")),
    db: Session = Depends(get_db)
):
    """
    Update a trip; moving it to another vehicle frees the previous one
    """
    trip = get_trip_or_404(db, trip_id)
    sent = payload.model_fields_set

    if "status" in sent and payload.status is not None and payload.status != trip.status:
        if payload.status not in SETTABLE_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Use the complete or cancel endpoints to end a trip"
            )
        if not trip.is_active:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Trip has already been {trip.status.value}")

    new_vehicle = None
    if "vehicle" in sent and payload.vehicle is not None and payload.vehicle != trip.vehicle_id:
        new_vehicle = get_available_vehicle(db, payload.vehicle)
    new_driver = get_driver(db, payload.driver) if "driver" in sent and payload.driver is not None else None
    new_passengers = get_passengers(db, payload.passengers) \
        if "passengers" in sent and payload.passengers is not None else None

    try:
        if new_vehicle is not None:
            # an ended trip no longer holds its vehicle
            if trip.is_active:
                release_vehicle(trip)
                new_vehicle.status = VehicleStatus.IN_USE
            trip.vehicle = new_vehicle
        if "status" in sent and payload.status is not None:
            trip.status = payload.status
        if new_driver is not None:
            trip.driver = new_driver
        if new_passengers is not None:
            trip.passengers = new_passengers

        for field in ("start_date", "end_date", "purpose", "start_odometer", "notes"):
            if field in sent:
                value = getattr(payload, field)
                if value is None and field in ("start_date", "purpose", "start_odometer"):
                    continue
                setattr(trip, field, value)

        db.commit()
        return {"success": True, "data": dump(TripResponse, get_trip_or_404(db, trip.id))}
    except Exception as e:
        db.rollback()
        raise internal_error("Error updating trip", e)


@router.delete("/{trip_id}")
async def delete_trip(
    trip_id: int,
    current_user: User = Depends(authorize("trips", "delete")),
    db: Session = Depends(get_db)
):
    """
    Delete a trip, freeing its vehicle unless the trip had already ended
    """
    trip = get_trip_or_404(db, trip_id)

    try:
        if trip.is_active:
            release_vehicle(trip)
        db.delete(trip)
        db.commit()
    except Exception as e:
        db.rollback()
        raise internal_error("Error deleting trip", e)

    return {"success": True, "data": {}}


@router.put("/{trip_id}/complete")
async def complete_trip(
    trip_id: int,
    payload: TripComplete,
    current_user: User = Depends(authorize("trips", "transition")),
    db: Session = Depends(get_db)
):
    if payload.end_odometer is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please provide the ending odometer reading"
        )

    trip = get_trip_or_404(db, trip_id)

    if trip.status == TripStatus.COMPLETED:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Trip has already been completed")
    if trip.status == TripStatus.CANCELLED:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Trip was cancelled and cannot be completed")
    if payload.end_odometer < trip.start_odometer:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Ending odometer cannot be lower than the starting odometer"
        )

    try:
        trip.status = TripStatus.COMPLETED
        trip.end_date = datetime.utcnow()
        trip.end_odometer = payload.end_odometer
        if trip.vehicle is not None:
            trip.vehicle.status = VehicleStatus.AVAILABLE
            trip.vehicle.current_odometer = payload.end_odometer
        db.commit()
    except Exception as e:
        db.rollback()
        raise internal_error("Error completing trip", e)

    logger.info(f"Trip {trip_id} completed at odometer {payload.end_odometer}")
    return {"success": True, "data": dump(TripResponse, get_trip_or_404(db, trip_id))}


@router.put("/{trip_id}/cancel")
async def cancel_trip(
    trip_id: int,
    current_user: User = Depends(authorize("trips", "transition")),
    db: Session = Depends(get_db)
):
    trip = get_trip_or_404(db, trip_id)

    if trip.status == TripStatus.COMPLETED:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Trip has already been completed and cannot be cancelled")
    if trip.status == TripStatus.CANCELLED:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Trip has already been cancelled")

    try:
        trip.status = TripStatus.CANCELLED
        release_vehicle(trip)
        db.commit()
    except Exception as e:
        db.rollback()
        raise internal_error("Error cancelling trip", e)

    logger.info(f"Trip {trip_id} cancelled")
    return {"success": True, "data": dump(TripResponse, get_trip_or_404(db, trip_id))}
