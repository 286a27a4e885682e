from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from ...core.database import get_db
from ...core.exceptions import NotFoundError
from ...api.deps import get_admin_user
from ...models.doctor import Doctor
from ...models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])

@router.patch("/doctors/{doctor_id}/verify")
async def verify_doctor(
    doctor_id: int,
    is_verified: bool = True,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    """Approve or revoke a doctor's registration."""
    doctor = db.query(Doctor).filter(Doctor.id == doctor_id).first()
    if not doctor:
        raise NotFoundError("Doctor not found")
    
    doctor.is_verified = is_verified
    db.commit()
    
    logger.info(f"Admin {current_user.id} set doctor {doctor_id} verified={is_verified}")
    return {
        "id": doctor.id,
        "isVerified": doctor.is_verified,
        "message": f"Doctor {'verified' if is_verified else 'unverified'} successfully"
    }
