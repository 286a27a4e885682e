from .user import User
from .doctor import Doctor
from .patient import Patient
from .availability import Availability, DayOfWeek
from .appointment import Appointment, AppointmentStatus

__all__ = [
    "User",
    "Doctor",
    "Patient",
    "Availability",
    "DayOfWeek",
    "Appointment",
    "AppointmentStatus",
]
