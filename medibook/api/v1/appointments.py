from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...api.deps import get_current_user, get_current_patient
from ...models.patient import Patient
from ...models.user import User
from ...schemas.appointment import (
    AppointmentResponse, CancelAppointmentRequest, CreateAppointmentRequest,
    UpdateAppointmentRequest, UpdateAppointmentStatusRequest
)
from ...services.appointment_service import AppointmentService

router = APIRouter(prefix="/appointments", tags=["Appointments"])

@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    appointment_data: CreateAppointmentRequest,
    patient: Patient = Depends(get_current_patient),
    db: Session = Depends(get_db)
):
    """Book a slot. New appointments start as Scheduled."""
    appointment = AppointmentService(db).create_appointment(patient, appointment_data)
    return AppointmentResponse.from_appointment(appointment)

@router.get("/my", response_model=List[AppointmentResponse])
async def list_my_appointments(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Appointments of the current patient or doctor; admins see all."""
    appointments = AppointmentService(db).list_appointments_for_user(current_user)
    return [AppointmentResponse.from_appointment(a) for a in appointments]

@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    appointment = AppointmentService(db).get_appointment_for_user(appointment_id, current_user)
    return AppointmentResponse.from_appointment(appointment)

@router.put("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: int,
    appointment_data: UpdateAppointmentRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    appointment = AppointmentService(db).update_appointment(
        appointment_id, current_user, appointment_data
    )
    return AppointmentResponse.from_appointment(appointment)

@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(
    appointment_id: int,
    status_data: UpdateAppointmentStatusRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Change the status. Admins may make any change."""
    appointment = AppointmentService(db).update_status(
        appointment_id,
        current_user,
        status_data.status,
        status_data.cancellation_reason
    )
    return AppointmentResponse.from_appointment(appointment)

@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: int,
    cancel_data: CancelAppointmentRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    appointment = AppointmentService(db).cancel_appointment(
        appointment_id, current_user, cancel_data.cancellation_reason
    )
    return AppointmentResponse.from_appointment(appointment)
