# schemas/user.py

from typing import Optional
from pydantic import BaseModel

class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None

class UserOut(BaseModel):
    id: int
    name: str
    email: str
    image: Optional[str] = None

    class Config:
        from_attributes = True

class RegisterResponse(BaseModel):
    success: bool = True
    message: str
    user: UserOut

class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

class LoginResponse(BaseModel):
    success: bool = True
    message: str
    user: UserOut
    access_token: str
    token_type: str = "bearer"
    expires_in_minutes: int

class SessionResponse(BaseModel):
    user: UserOut
