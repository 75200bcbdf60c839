from pydantic import BaseModel, EmailStr, validator, Field
from typing import Optional
from datetime import datetime
import re

# Signup Schema
class UserSignup(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    full_name: str = Field(..., min_length=2, max_length=100)
    username: str = Field(..., min_length=3, max_length=20)

    @validator('full_name')
    def validate_full_name(cls, v):
        if not v or len(v.strip()) < 2:
            raise ValueError('Full name is required')
        return v.strip()

    @validator('username')
    def validate_username(cls, v):
        if not re.match(r'^[a-zA-Z0-9_]+$', v):
            raise ValueError('Username can only contain letters, numbers and underscores')
        return v

# Login Schema
class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

# User Response Schema
class UserResponse(BaseModel):
    id: str
    email: str
    username: str
    full_name: str
    is_active: bool
    created_at: datetime
    last_login: Optional[datetime] = None

    class Config:
        from_attributes = True

class SessionInfo(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int

class LoginResponse(BaseModel):
    user: UserResponse
    session: SessionInfo

# Token Data Schema
class TokenData(BaseModel):
    email: Optional[str] = None
    user_id: Optional[str] = None
    session_id: Optional[str] = None
