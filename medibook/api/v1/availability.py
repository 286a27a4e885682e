from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...api.deps import get_current_doctor
from ...models.doctor import Doctor
from ...schemas.availability import (
    AvailabilityRequest, AvailabilityUpdate, AvailabilityResponse, AvailableSlotResponse
)
from ...services.availability_service import AvailabilityService

router = APIRouter(prefix="/availability", tags=["Availability"])

@router.get("/doctor/{doctor_id}", response_model=List[AvailabilityResponse])
async def get_doctor_availability(
    doctor_id: int,
    db: Session = Depends(get_db)
):
    """Active weekly availability of a doctor."""
    return AvailabilityService(db).list_doctor_availability(doctor_id)

@router.get("/doctor/{doctor_id}/slots", response_model=List[AvailableSlotResponse])
async def get_available_slots(
    doctor_id: int,
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
    db: Session = Depends(get_db)
):
    """Bookable slots of a verified doctor between two dates, inclusive."""
    return AvailabilityService(db).list_slots(doctor_id, start_date, end_date)

@router.get("/my-availability", response_model=List[AvailabilityResponse])
async def get_my_availability(
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    """All weekly templates of the current doctor, including inactive ones."""
    return AvailabilityService(db).list_doctor_availability(doctor.id, active_only=False)

@router.post(
    "/my-availability",
    response_model=AvailabilityResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_availability(
    availability_data: AvailabilityRequest,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    return AvailabilityService(db).create_availability(doctor, availability_data)

@router.post(
    "/my-availability/defaults",
    response_model=List[AvailabilityResponse],
    status_code=status.HTTP_201_CREATED
)
async def create_default_availability(
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    """Set up the default Monday-Saturday hourly schedule."""
    return AvailabilityService(db).create_default_availability(doctor)

@router.put("/{availability_id}", response_model=AvailabilityResponse)
async def update_availability(
    availability_id: int,
    availability_data: AvailabilityUpdate,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    return AvailabilityService(db).update_availability(doctor, availability_id, availability_data)

@router.delete("/{availability_id}")
async def delete_availability(
    availability_id: int,
    doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db)
):
    AvailabilityService(db).delete_availability(doctor, availability_id)
    return {"message": "Availability deleted successfully"}
