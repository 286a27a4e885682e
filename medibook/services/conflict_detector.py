import logging
from datetime import date, time
from typing import Iterable, Optional, Set, Tuple

from sqlalchemy.orm import Session

from ..models.appointment import Appointment, AppointmentStatus, BLOCKING_STATUSES

logger = logging.getLogger(__name__)

SlotKey = Tuple[date, time, time]


def has_conflict(
    db: Session,
    doctor_id: int,
    appointment_date: date,
    start_time: time,
    end_time: time,
    statuses: Iterable[AppointmentStatus] = BLOCKING_STATUSES,
    exclude_id: Optional[int] = None,
) -> bool:
    """Check whether an appointment already holds this exact slot.

    Only appointments in ``statuses`` count. With the default set a Scheduled
    appointment does not hold its slot, so several patients can book the same
    slot until the doctor confirms one of them. ``exclude_id`` leaves out the
    appointment being moved when rescheduling.
    """
    query = db.query(Appointment.id).filter(
        Appointment.doctor_id == doctor_id,
        Appointment.appointment_date == appointment_date,
        Appointment.start_time == start_time,
        Appointment.end_time == end_time,
        Appointment.status.in_(list(statuses))
    )
    if exclude_id is not None:
        query = query.filter(Appointment.id != exclude_id)
    return query.first() is not None


def blocked_slots(
    db: Session,
    doctor_id: int,
    start_date: date,
    end_date: date,
    statuses: Iterable[AppointmentStatus] = BLOCKING_STATUSES,
) -> Set[SlotKey]:
    """Slots held by the doctor's appointments between two dates, inclusive.

    Same rule as :func:`has_conflict`, loaded in one query for a date range.
    """
    rows = db.query(
        Appointment.appointment_date,
        Appointment.start_time,
        Appointment.end_time
    ).filter(
        Appointment.doctor_id == doctor_id,
        Appointment.appointment_date >= start_date,
        Appointment.appointment_date <= end_date,
        Appointment.status.in_(list(statuses))
    ).all()

    blocked = {(row.appointment_date, row.start_time, row.end_time) for row in rows}
    logger.debug(
        f"Doctor {doctor_id} has {len(blocked)} blocked slots "
        f"between {start_date} and {end_date}"
    )
    return blocked
