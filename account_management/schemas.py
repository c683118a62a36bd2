"""
Pydantic schemas for Account Management
Request/response validation models
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, SecretStr, field_validator

from database.models import UserRole


# Request schemas
class PasswordLoginRequest(BaseModel):
    email: EmailStr
    password: SecretStr = Field(..., min_length=1)


class MagicLinkRequest(BaseModel):
    email: EmailStr


class MagicLinkConsumeRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=128)


class InviteCreateRequest(BaseModel):
    email: EmailStr
    role: UserRole


class InviteAcceptRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=128)
    email: EmailStr
    password: Optional[SecretStr] = Field(None, min_length=8, max_length=128)
    name: Optional[str] = Field(None, min_length=1, max_length=255)


class UserUpdateRequest(BaseModel):
    is_active: bool


class VACreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    user_id: Optional[str] = None
    commission_percentage: Optional[Decimal] = Field(None, ge=0, le=100, description="Percent, 0-100")
    timezone: str = Field("UTC", max_length=64)
    notes: Optional[str] = None


class VAUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    timezone: Optional[str] = Field(None, max_length=64)
    notes: Optional[str] = None


class VACommissionUpdateRequest(BaseModel):
    commission_percentage: Decimal = Field(..., ge=0, le=100, description="Percent, 0-100")


class VAAccountCreateRequest(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    commission_percentage: Decimal = Field(Decimal("10"), ge=0, le=100, description="Percent, 0-100")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v


# Response schemas
class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    role: UserRole
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime


class AuthResponse(BaseModel):
    user: UserResponse


class InviteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    token: str
    email: str
    role: UserRole
    expires_at: datetime
    used_at: Optional[datetime] = None
    created_at: datetime


class InviteValidationResponse(BaseModel):
    email: str
    role: UserRole


class TempPasswordResponse(BaseModel):
    message: str
    temp_password: str


class VAResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: Optional[str]
    name: str
    commission_percentage: Optional[Decimal] = Field(None, description="Fraction, 0-1")
    timezone: Optional[str]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime


class VAAccountResponse(BaseModel):
    user: UserResponse
    va: VAResponse
    password: str = Field(..., description="Generated password, shown once")


class MessageResponse(BaseModel):
    message: str
