from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from email_validator import EmailNotValidError, validate_email
from typing import Optional

from ..core.security import UserRole


class UserRegister(BaseModel):
    email: str
    password: str = Field(..., max_length=72)
    name: Optional[str] = Field(None, max_length=255)
    # Checked by the service so an unknown role is a plain 400
    role: str

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        # Stored as typed; login matches it exactly
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError as exc:
            raise ValueError(str(exc)) from exc
        return value


class UserLogin(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: int
    email: str
    full_name: str
    role: UserRole
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse
