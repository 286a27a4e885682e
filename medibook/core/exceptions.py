from typing import Optional
from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
        )


class InvalidRequestError(HTTPException):
    def __init__(self, detail="Invalid request"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )


class InvalidStatusTransitionError(InvalidRequestError):
    """Raised when an appointment status change is not allowed for the role."""

    def __init__(self, current_status, requested_status, role: Optional[str] = None):
        self.current_status = current_status
        self.requested_status = requested_status
        detail = {
            "message": (
                f"Invalid status transition from {current_status.value} "
                f"to {requested_status.value}"
            ),
            "currentStatus": current_status.value,
            "requestedStatus": requested_status.value,
        }
        if role:
            detail["role"] = role
        super().__init__(detail=detail)
