"""
Job Tracker - Authentication Schemas

Pydantic schemas for auth request/response validation.
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime


# -----------------------------------------------------------------------------
# User Schemas
# -----------------------------------------------------------------------------

class UserBase(BaseModel):
    """Base user schema with common fields."""
    email: EmailStr
    name: Optional[str] = None


class UserCreate(UserBase):
    """Schema for user registration."""
    password: str = Field(..., min_length=8, description="Password must be at least 8 characters")


class UserResponse(UserBase):
    """Schema for user response (public user data)."""
    id: int
    is_active: bool
    created_at: datetime
    has_password: bool

    class Config:
        from_attributes = True


# -----------------------------------------------------------------------------
# Token Schemas
# -----------------------------------------------------------------------------

class Token(BaseModel):
    """Schema for JWT token response."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # Seconds until access token expires


class TokenRefresh(BaseModel):
    """Schema for token refresh and logout requests."""
    refresh_token: str


class TokenData(BaseModel):
    """Schema for decoded token data (internal use)."""
    user_id: int
    email: str
    exp: datetime


# -----------------------------------------------------------------------------
# Registration & Login Responses
# -----------------------------------------------------------------------------

class RegisterResponse(BaseModel):
    """Schema for registration response."""
    user: UserResponse
    message: str = "Registration successful."


class LoginResponse(BaseModel):
    """Schema for login response."""
    user: UserResponse
    token: Token
