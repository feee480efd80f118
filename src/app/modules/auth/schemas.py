"""Admin authentication schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    """Admin login request."""

    password: str = Field(..., min_length=1, max_length=256)


class LoginResponse(BaseModel):
    """Admin login response."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    token: str
    expires_at: datetime = Field(..., serialization_alias="expiresAt")
    message: str = "Logged in."


class LogoutResponse(BaseModel):
    success: bool = True
    message: str = "Logged out."
