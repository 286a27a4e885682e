from pydantic import BaseModel, EmailStr, Field
from typing import Optional

from ..core.security import UserRole


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    id: int
    email: EmailStr
    role: UserRole
    first_name: str
    last_name: str
    phone_number: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse
