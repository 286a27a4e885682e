from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional
from pydantic import Field, field_serializer, field_validator

from ..models.appointment import Appointment, AppointmentStatus
from .base import CamelModel, naive_time

MAX_REASON_LENGTH = 1000
MAX_CANCELLATION_REASON_LENGTH = 255


def _strip_time_of_day(value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        return value.split("T", 1)[0]
    return value


def _parse_status(value):
    if value is None:
        return value
    return AppointmentStatus.parse(value)


def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class CreateAppointmentRequest(CamelModel):
    doctor_id: int
    appointment_date: date
    start_time: time
    end_time: time
    reason: Optional[str] = Field(None, max_length=MAX_REASON_LENGTH)

    @field_validator("appointment_date", mode="before")
    @classmethod
    def strip_time_of_day(cls, value):
        return _strip_time_of_day(value)

    @field_validator("start_time", "end_time")
    @classmethod
    def reject_offset_times(cls, value):
        return naive_time(value)

    @field_validator("reason")
    @classmethod
    def clean_reason(cls, value):
        return _clean_text(value)


class UpdateAppointmentStatusRequest(CamelModel):
    status: AppointmentStatus
    cancellation_reason: Optional[str] = Field(None, max_length=MAX_CANCELLATION_REASON_LENGTH)

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, value):
        return _parse_status(value)

    @field_validator("cancellation_reason")
    @classmethod
    def clean_cancellation_reason(cls, value):
        return _clean_text(value)


class CancelAppointmentRequest(CamelModel):
    cancellation_reason: str = Field(..., min_length=1, max_length=MAX_CANCELLATION_REASON_LENGTH)

    @field_validator("cancellation_reason")
    @classmethod
    def require_cancellation_reason(cls, value):
        value = _clean_text(value)
        if value is None:
            raise ValueError("Cancellation reason must not be blank")
        return value


class UpdateAppointmentRequest(CamelModel):
    appointment_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    reason: Optional[str] = Field(None, max_length=MAX_REASON_LENGTH)
    notes: Optional[str] = None
    status: Optional[AppointmentStatus] = None
    cancellation_reason: Optional[str] = Field(None, max_length=MAX_CANCELLATION_REASON_LENGTH)

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, value):
        return _parse_status(value)

    @field_validator("appointment_date", mode="before")
    @classmethod
    def strip_time_of_day(cls, value):
        return _strip_time_of_day(value)

    @field_validator("start_time", "end_time")
    @classmethod
    def reject_offset_times(cls, value):
        return naive_time(value)

    @field_validator("cancellation_reason")
    @classmethod
    def clean_cancellation_reason(cls, value):
        return _clean_text(value)


class AppointmentResponse(CamelModel):
    id: int
    doctor_id: int
    doctor_name: str = ""
    doctor_specialization: str = ""
    patient_id: int
    patient_name: str = ""
    appointment_date: date
    start_time: time
    end_time: time
    status: AppointmentStatus
    reason: Optional[str] = None
    notes: Optional[str] = None
    fee: Optional[Decimal] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None

    @field_serializer("fee")
    def serialize_fee(self, fee: Optional[Decimal]):
        return float(fee) if fee is not None else None

    @classmethod
    def from_appointment(cls, appointment: Appointment) -> "AppointmentResponse":
        response = cls.model_validate(appointment)
        doctor = appointment.doctor
        if doctor is not None:
            response.doctor_specialization = doctor.specialization
            if doctor.user is not None:
                response.doctor_name = doctor.user.full_name
        patient = appointment.patient
        if patient is not None and patient.user is not None:
            response.patient_name = patient.user.full_name
        return response
