from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundError
from ..models.doctor import Doctor


def get_verified_doctor(db: Session, doctor_id: int, for_update: bool = False) -> Doctor:
    """Load a doctor that patients may book, or raise NotFoundError."""
    query = db.query(Doctor).filter(
        Doctor.id == doctor_id,
        Doctor.is_verified == True  # noqa: E712
    )
    if for_update:
        query = query.with_for_update()

    doctor = query.first()
    if not doctor:
        raise NotFoundError("Doctor not found or not verified")
    return doctor
