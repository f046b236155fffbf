from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, constr


class SignupRequest(BaseModel):
    username: constr(pattern=r"^[A-Za-z0-9]+$", min_length=3, max_length=30)
    email: EmailStr
    password: constr(min_length=6, max_length=128)


class LoginRequest(BaseModel):
    email: EmailStr
    password: constr(min_length=6)


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
