from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Date, Time, Text, Numeric, Index, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "Scheduled"
    CONFIRMED = "Confirmed"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    NO_SHOW = "NoShow"

    @property
    def ordinal(self) -> int:
        return _STATUS_ORDINALS.index(self)

    @classmethod
    def from_ordinal(cls, value: int) -> "AppointmentStatus":
        if not 0 <= value < len(_STATUS_ORDINALS):
            raise ValueError(f"Invalid appointment status ordinal: {value}")
        return _STATUS_ORDINALS[value]

    @classmethod
    def parse(cls, value) -> "AppointmentStatus":
        """Decode a status sent either as its ordinal (0-5) or its name.

        Existing clients send both forms, e.g. ``1``, ``"1"``, ``"Confirmed"``,
        ``"confirmed"`` and ``"IN_PROGRESS"`` are all accepted.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Invalid appointment status: {value!r}")
        if isinstance(value, int):
            return cls.from_ordinal(value)
        if isinstance(value, str):
            text = value.strip()
            if text.isdigit():
                return cls.from_ordinal(int(text))
            key = text.replace("_", "").replace(" ", "").lower()
            for member in cls:
                if member.value.lower() == key:
                    return member
        raise ValueError(f"Invalid appointment status: {value!r}")

_STATUS_ORDINALS = list(AppointmentStatus)

# Statuses that hold a slot. Scheduled is a tentative hold and Cancelled is inert.
BLOCKING_STATUSES = (
    AppointmentStatus.CONFIRMED,
    AppointmentStatus.IN_PROGRESS,
    AppointmentStatus.COMPLETED,
    AppointmentStatus.NO_SHOW,
)

TERMINAL_STATUSES = (
    AppointmentStatus.COMPLETED,
    AppointmentStatus.CANCELLED,
    AppointmentStatus.NO_SHOW,
)

class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_doctor_slot", "doctor_id", "appointment_date", "start_time", "end_time"),
    )
    
    id = Column(Integer, primary_key=True, index=True)
    
    # Relationships
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False)
    
    # Appointment details
    appointment_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    status = Column(SQLEnum(AppointmentStatus), nullable=False, default=AppointmentStatus.SCHEDULED)
    reason = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    
    # Consultation fee at booking time
    fee = Column(Numeric(10, 2), nullable=True)
    
    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    cancellation_reason = Column(String(255), nullable=True)
    
    # Relationships
    patient = relationship("Patient", back_populates="appointments")
    doctor = relationship("Doctor", back_populates="appointments")
    
    def __repr__(self):
        return (
            f"<Appointment(id={self.id}, patient_id={self.patient_id}, doctor_id={self.doctor_id}, "
            f"date='{self.appointment_date}', status='{self.status}')>"
        )
