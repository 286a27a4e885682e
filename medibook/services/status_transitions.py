"""Appointment status lifecycle.

A single table lists the status changes open to patients and doctors::

    Scheduled  -> Confirmed | Cancelled
    Confirmed  -> InProgress | Cancelled | NoShow
    InProgress -> Completed | Cancelled

Completed, Cancelled and NoShow are terminal. Admins are not bound by the
table at all and may move an appointment between any two statuses, including
reopening a terminal one. Which user may act on which appointment is checked
by the caller before anything here runs.
"""
import logging
from datetime import datetime
from typing import Optional, Union

from ..core.exceptions import InvalidStatusTransitionError
from ..core.security import UserRole
from ..models.appointment import Appointment, AppointmentStatus, TERMINAL_STATUSES

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    AppointmentStatus.SCHEDULED: frozenset({
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.CONFIRMED: frozenset({
        AppointmentStatus.IN_PROGRESS,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    }),
    AppointmentStatus.IN_PROGRESS: frozenset({
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
    }),
}
ALLOWED_TRANSITIONS.update({status: frozenset() for status in TERMINAL_STATUSES})


def can_transition(
    current_status: AppointmentStatus,
    new_status: AppointmentStatus,
    acting_role: Union[UserRole, str],
) -> bool:
    """Return True if ``acting_role`` may move an appointment between the statuses."""
    role = UserRole.parse(acting_role)
    if role == UserRole.ADMIN:
        return True
    return new_status in ALLOWED_TRANSITIONS.get(current_status, frozenset())


def default_cancellation_reason(acting_role: Union[UserRole, str]) -> str:
    return f"Cancelled by {UserRole.parse(acting_role).label}"


def apply_transition(
    appointment: Appointment,
    new_status: AppointmentStatus,
    acting_role: Union[UserRole, str],
    cancellation_reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Appointment:
    """Move ``appointment`` to ``new_status`` or raise without touching it."""
    role = UserRole.parse(acting_role)
    current_status = appointment.status

    if not can_transition(current_status, new_status, role):
        logger.warning(
            f"Rejected status transition for appointment {appointment.id}: "
            f"{current_status.value} -> {new_status.value} by {role.label}"
        )
        raise InvalidStatusTransitionError(current_status, new_status, role.label)

    now = now or datetime.utcnow()
    appointment.status = new_status
    appointment.updated_at = now

    if new_status == AppointmentStatus.CANCELLED:
        appointment.cancelled_at = now
        appointment.cancellation_reason = cancellation_reason or default_cancellation_reason(role)

    logger.info(
        f"Appointment {appointment.id} status {current_status.value} -> "
        f"{new_status.value} by {role.label}"
    )
    return appointment
