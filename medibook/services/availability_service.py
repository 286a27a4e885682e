from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import InvalidRequestError, NotFoundError
from ..models.availability import Availability, DayOfWeek
from ..models.doctor import Doctor
from ..schemas.availability import AvailabilityRequest, AvailabilityUpdate, AvailableSlotResponse
from .conflict_detector import blocked_slots
from .doctors import get_verified_doctor

logger = logging.getLogger(__name__)

# Default weekly schedule: Monday to Saturday, one template per hour 09:00-21:00
DEFAULT_WORKING_DAYS = (
    DayOfWeek.MONDAY,
    DayOfWeek.TUESDAY,
    DayOfWeek.WEDNESDAY,
    DayOfWeek.THURSDAY,
    DayOfWeek.FRIDAY,
    DayOfWeek.SATURDAY,
)
DEFAULT_HOURLY_WINDOWS = tuple(
    (time(hour, 0), time(hour + 1, 0)) for hour in range(9, 21)
)

class AvailabilityService:
    def __init__(self, db: Session):
        self.db = db
    
    def list_doctor_availability(self, doctor_id: int, active_only: bool = True) -> List[Availability]:
        """List a doctor's weekly templates ordered by day and start time."""
        query = self.db.query(Availability).filter(Availability.doctor_id == doctor_id)
        if active_only:
            query = query.filter(Availability.is_active == True)  # noqa: E712
        return query.order_by(
            Availability.day_of_week,
            Availability.start_time,
            Availability.id
        ).all()
    
    def create_availability(self, doctor: Doctor, request: AvailabilityRequest) -> Availability:
        """Add a weekly template, rejecting overlaps with the doctor's active ones."""
        self._validate_time_range(request.start_time, request.end_time)
        self._ensure_no_overlap(
            doctor.id, request.day_of_week, request.start_time, request.end_time
        )
        
        availability = Availability(
            doctor_id=doctor.id,
            day_of_week=int(request.day_of_week),
            start_time=request.start_time,
            end_time=request.end_time,
            is_active=True,
            created_at=datetime.utcnow()
        )
        self.db.add(availability)
        self.db.commit()
        self.db.refresh(availability)
        
        logger.info(
            f"Doctor {doctor.id} added availability {request.day_of_week.name} "
            f"{request.start_time}-{request.end_time}"
        )
        return availability
    
    def create_default_availability(self, doctor: Doctor) -> List[Availability]:
        """Create the default hourly schedule, skipping windows that would overlap."""
        existing = defaultdict(list)
        for template in self.list_doctor_availability(doctor.id):
            existing[template.day_of_week].append(template)
        
        created = []
        now = datetime.utcnow()
        for day in DEFAULT_WORKING_DAYS:
            for start_time, end_time in DEFAULT_HOURLY_WINDOWS:
                if any(t.overlaps(start_time, end_time) for t in existing[day]):
                    continue
                availability = Availability(
                    doctor_id=doctor.id,
                    day_of_week=int(day),
                    start_time=start_time,
                    end_time=end_time,
                    is_active=True,
                    created_at=now
                )
                self.db.add(availability)
                created.append(availability)
        
        self.db.commit()
        for availability in created:
            self.db.refresh(availability)
        
        logger.info(f"Created {len(created)} default availability templates for doctor {doctor.id}")
        return created
    
    def update_availability(
        self, doctor: Doctor, availability_id: int, request: AvailabilityUpdate
    ) -> Availability:
        availability = self._get_owned(doctor, availability_id)
        
        day_of_week = request.day_of_week if request.day_of_week is not None else availability.day_of_week
        start_time = request.start_time if request.start_time is not None else availability.start_time
        end_time = request.end_time if request.end_time is not None else availability.end_time
        is_active = request.is_active if request.is_active is not None else availability.is_active
        
        self._validate_time_range(start_time, end_time)
        if is_active:
            self._ensure_no_overlap(
                doctor.id, day_of_week, start_time, end_time, exclude_id=availability.id
            )
        
        availability.day_of_week = int(day_of_week)
        availability.start_time = start_time
        availability.end_time = end_time
        availability.is_active = is_active
        availability.updated_at = datetime.utcnow()
        
        self.db.commit()
        self.db.refresh(availability)
        return availability
    
    def delete_availability(self, doctor: Doctor, availability_id: int) -> None:
        """Remove a template. Appointments already booked against it are kept."""
        availability = self._get_owned(doctor, availability_id)
        self.db.delete(availability)
        self.db.commit()
        logger.info(f"Doctor {doctor.id} deleted availability {availability_id}")
    
    def list_slots(
        self,
        doctor_id: int,
        start_date: date,
        end_date: date,
        now: Optional[datetime] = None
    ) -> List[AvailableSlotResponse]:
        """Project the doctor's weekly templates onto concrete dates.

        Every active template matching a date's weekday yields exactly one slot
        for that date; long windows are not split. A slot is available when no
        blocking appointment holds it and it starts strictly after ``now``
        (server local time). Slots are ordered by date, then start time.
        """
        get_verified_doctor(self.db, doctor_id)
        
        if end_date < start_date:
            raise InvalidRequestError("End date must not be before start date")
        if (end_date - start_date).days + 1 > settings.MAX_SLOT_RANGE_DAYS:
            raise InvalidRequestError(
                f"Date range cannot exceed {settings.MAX_SLOT_RANGE_DAYS} days"
            )
        
        now = now or datetime.now()
        
        templates_by_day = defaultdict(list)
        for template in self.list_doctor_availability(doctor_id):
            templates_by_day[template.day_of_week].append(template)
        
        blocked = blocked_slots(self.db, doctor_id, start_date, end_date)
        
        slots = []
        current = start_date
        while current <= end_date:
            for template in templates_by_day.get(DayOfWeek.from_date(current), []):
                slot_start = datetime.combine(current, template.start_time)
                is_booked = (current, template.start_time, template.end_time) in blocked
                slots.append(AvailableSlotResponse(
                    date=current,
                    start_time=template.start_time,
                    end_time=template.end_time,
                    is_available=not is_booked and slot_start > now
                ))
            current += timedelta(days=1)
        
        return slots
    
    def _get_owned(self, doctor: Doctor, availability_id: int) -> Availability:
        availability = self.db.query(Availability).filter(
            Availability.id == availability_id,
            Availability.doctor_id == doctor.id
        ).first()
        
        if not availability:
            raise NotFoundError("Availability not found")
        return availability
    
    @staticmethod
    def _validate_time_range(start_time: time, end_time: time) -> None:
        if start_time >= end_time:
            raise InvalidRequestError("Start time must be before end time")
    
    def _ensure_no_overlap(
        self,
        doctor_id: int,
        day_of_week: DayOfWeek,
        start_time: time,
        end_time: time,
        exclude_id: Optional[int] = None
    ) -> None:
        query = self.db.query(Availability).filter(
            Availability.doctor_id == doctor_id,
            Availability.day_of_week == int(day_of_week),
            Availability.is_active == True,  # noqa: E712
            Availability.start_time < end_time,
            Availability.end_time > start_time
        )
        if exclude_id is not None:
            query = query.filter(Availability.id != exclude_id)
        
        if query.first():
            raise InvalidRequestError("Availability overlaps with existing schedule")
