from datetime import date, datetime, time
from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import InvalidRequestError, InvalidStatusTransitionError, NotFoundError
from ..core.security import AuthorizationError, UserRole
from ..models.appointment import Appointment, AppointmentStatus, BLOCKING_STATUSES, TERMINAL_STATUSES
from ..models.patient import Patient
from ..models.user import User
from ..schemas.appointment import CreateAppointmentRequest, UpdateAppointmentRequest
from .conflict_detector import has_conflict
from .doctors import get_verified_doctor
from .status_transitions import apply_transition, can_transition

logger = logging.getLogger(__name__)

class AppointmentService:
    def __init__(self, db: Session):
        self.db = db
    
    def create_appointment(
        self,
        patient: Patient,
        request: CreateAppointmentRequest,
        now: Optional[datetime] = None
    ) -> Appointment:
        """Book a slot for a patient.

        Checks run in order and the first failure wins: a verified doctor,
        a well formed time range, a start in the future, then no blocking
        appointment on the slot. The conflict check and the insert are not
        atomic unless STRICT_SLOT_BOOKING is enabled.
        """
        strict = settings.STRICT_SLOT_BOOKING
        doctor = get_verified_doctor(self.db, request.doctor_id, for_update=strict)
        
        self._ensure_slot_bookable(
            doctor.id,
            request.appointment_date,
            request.start_time,
            request.end_time,
            now
        )
        
        appointment = Appointment(
            doctor_id=doctor.id,
            patient_id=patient.id,
            appointment_date=request.appointment_date,
            start_time=request.start_time,
            end_time=request.end_time,
            status=AppointmentStatus.SCHEDULED,
            reason=request.reason,
            fee=doctor.consultation_fee,
            created_at=datetime.utcnow()
        )
        
        self.db.add(appointment)
        self.db.commit()
        self.db.refresh(appointment)
        
        logger.info(
            f"Patient {patient.id} booked appointment {appointment.id} with doctor {doctor.id} "
            f"on {appointment.appointment_date} {appointment.start_time}-{appointment.end_time}"
        )
        return appointment
    
    def get_appointment(self, appointment_id: int, for_update: bool = False) -> Appointment:
        query = self.db.query(Appointment).filter(Appointment.id == appointment_id)
        if for_update:
            query = query.with_for_update()
        
        appointment = query.first()
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment
    
    def get_appointment_for_user(self, appointment_id: int, user: User) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        self.check_access(appointment, user)
        return appointment
    
    def list_appointments_for_user(self, user: User) -> List[Appointment]:
        """Appointments visible to the user, ordered by date and start time."""
        query = self.db.query(Appointment)
        
        if user.role == UserRole.PATIENT:
            if not user.patient:
                raise NotFoundError("Patient profile not found")
            query = query.filter(Appointment.patient_id == user.patient.id)
        elif user.role == UserRole.DOCTOR:
            if not user.doctor:
                raise NotFoundError("Doctor profile not found")
            query = query.filter(Appointment.doctor_id == user.doctor.id)
        
        return query.order_by(
            Appointment.appointment_date,
            Appointment.start_time,
            Appointment.id
        ).all()
    
    @staticmethod
    def check_access(appointment: Appointment, user: User) -> None:
        """Patients act on their own appointments, doctors on their assigned ones."""
        if user.role == UserRole.ADMIN:
            return
        if user.role == UserRole.PATIENT and user.patient and appointment.patient_id == user.patient.id:
            return
        if user.role == UserRole.DOCTOR and user.doctor and appointment.doctor_id == user.doctor.id:
            return
        raise AuthorizationError("You do not have access to this appointment")
    
    def update_status(
        self,
        appointment_id: int,
        user: User,
        new_status: AppointmentStatus,
        cancellation_reason: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Appointment:
        """Validate and apply a status change.

        The appointment row is locked for the read, validate and write
        sequence so two concurrent changes cannot both pass validation.
        """
        appointment = self.get_appointment(appointment_id, for_update=True)
        self.check_access(appointment, user)
        
        logger.info(
            f"Status update attempt on appointment {appointment.id}: "
            f"{appointment.status.value} -> {new_status.value} by {user.role.label}"
        )
        apply_transition(appointment, new_status, user.role, cancellation_reason, now)
        
        self.db.commit()
        self.db.refresh(appointment)
        return appointment
    
    def cancel_appointment(
        self,
        appointment_id: int,
        user: User,
        cancellation_reason: str
    ) -> Appointment:
        return self.update_status(
            appointment_id, user, AppointmentStatus.CANCELLED, cancellation_reason
        )
    
    def update_appointment(
        self,
        appointment_id: int,
        user: User,
        request: UpdateAppointmentRequest,
        now: Optional[datetime] = None
    ) -> Appointment:
        """Edit an appointment as the assigned doctor or an admin.

        Besides reason and notes the body may move the appointment to another
        slot and change its status. Every check runs before any field is set.
        """
        if user.role == UserRole.PATIENT:
            raise AuthorizationError("Only the assigned doctor or an admin can edit an appointment")
        
        appointment = self.get_appointment(appointment_id, for_update=True)
        self.check_access(appointment, user)
        
        # Validate the status change before touching any field
        if request.status is not None and not can_transition(appointment.status, request.status, user.role):
            raise InvalidStatusTransitionError(appointment.status, request.status, user.role.label)
        
        new_slot = (
            request.appointment_date if request.appointment_date is not None else appointment.appointment_date,
            request.start_time if request.start_time is not None else appointment.start_time,
            request.end_time if request.end_time is not None else appointment.end_time,
        )
        old_slot = (appointment.appointment_date, appointment.start_time, appointment.end_time)
        rescheduled = new_slot != old_slot
        if rescheduled:
            if appointment.status in TERMINAL_STATUSES:
                raise InvalidRequestError(
                    f"Cannot reschedule an appointment that is {appointment.status.value}"
                )
            self._ensure_slot_bookable(
                appointment.doctor_id, *new_slot, now, exclude_id=appointment.id
            )
        
        # All checks passed; apply the edit
        if rescheduled:
            appointment.appointment_date, appointment.start_time, appointment.end_time = new_slot
            logger.info(
                f"Appointment {appointment.id} rescheduled from {old_slot[0]} {old_slot[1]}-{old_slot[2]} "
                f"to {new_slot[0]} {new_slot[1]}-{new_slot[2]} by {user.role.label}"
            )
        
        if request.reason is not None:
            appointment.reason = request.reason
        if request.notes is not None:
            appointment.notes = request.notes
        
        if request.status is not None:
            apply_transition(appointment, request.status, user.role, request.cancellation_reason)
        else:
            appointment.updated_at = datetime.utcnow()
        
        self.db.commit()
        self.db.refresh(appointment)
        return appointment
    
    def _ensure_slot_bookable(
        self,
        doctor_id: int,
        appointment_date: date,
        start_time: time,
        end_time: time,
        now: Optional[datetime] = None,
        exclude_id: Optional[int] = None
    ) -> None:
        if start_time >= end_time:
            raise InvalidRequestError("Start time must be before end time")
        
        now = now or datetime.now()
        if datetime.combine(appointment_date, start_time) <= now:
            raise InvalidRequestError("Appointment must be scheduled for a future date and time")
        
        statuses = BLOCKING_STATUSES
        if settings.STRICT_SLOT_BOOKING:
            statuses = BLOCKING_STATUSES + (AppointmentStatus.SCHEDULED,)
        
        if has_conflict(
            self.db,
            doctor_id,
            appointment_date,
            start_time,
            end_time,
            statuses=statuses,
            exclude_id=exclude_id
        ):
            raise InvalidRequestError("The selected time slot is not available")
