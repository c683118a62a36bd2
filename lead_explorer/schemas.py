"""
Pydantic schemas for Lead Explorer API validation.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from database.models import LeadStatus

MIN_YEAR = 1900
MAX_YEAR = 2100

REQUIRED_LEAD_FIELDS = (
    "make",
    "model",
    "year",
    "asking_price",
    "estimated_sale_price",
    "expenses_estimate",
    "source_url",
)


def _strip_name(v):
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("Must not be blank")
    return v


def _validate_source_url(v):
    if v is None:
        return v
    v = v.strip()
    if not v.lower().startswith(("http://", "https://")):
        raise ValueError("Source URL must start with http:// or https://")
    return v


# Lead schemas
class CreateLeadSchema(BaseModel):
    """Schema for submitting a new lead"""

    va_id: Optional[str] = Field(None, description="Assigned VA, ignored for VA submitters")
    make: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    year: int = Field(..., ge=MIN_YEAR, le=MAX_YEAR)
    mileage: Optional[int] = Field(None, ge=0)
    asking_price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    estimated_sale_price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    expenses_estimate: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    source_url: str = Field(..., min_length=1)
    seller_contact: Optional[str] = Field(None, max_length=255)
    location: Optional[str] = Field(None, max_length=255)

    @field_validator("make", "model")
    @classmethod
    def strip_names(cls, v):
        return _strip_name(v)

    @field_validator("source_url")
    @classmethod
    def validate_source_url(cls, v):
        return _validate_source_url(v)


class UpdateLeadSchema(BaseModel):
    """Schema for editing lead fields other than status"""

    va_id: Optional[str] = None
    make: Optional[str] = Field(None, min_length=1, max_length=100)
    model: Optional[str] = Field(None, min_length=1, max_length=100)
    year: Optional[int] = Field(None, ge=MIN_YEAR, le=MAX_YEAR)
    mileage: Optional[int] = Field(None, ge=0)
    asking_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    estimated_sale_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    expenses_estimate: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    source_url: Optional[str] = None
    seller_contact: Optional[str] = Field(None, max_length=255)
    location: Optional[str] = Field(None, max_length=255)

    @field_validator(*REQUIRED_LEAD_FIELDS)
    @classmethod
    def reject_null(cls, v, info):
        # Omit a field to leave it unchanged; these columns cannot be cleared
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator("make", "model")
    @classmethod
    def strip_names(cls, v):
        return _strip_name(v)

    @field_validator("source_url")
    @classmethod
    def validate_source_url(cls, v):
        return _validate_source_url(v)


class UpdateLeadStatusSchema(BaseModel):
    status: LeadStatus
    notes: Optional[str] = Field(None, max_length=1000)


class BulkDeleteLeadsSchema(BaseModel):
    ids: list[str] = Field(..., min_length=1)


class LeadResponseSchema(BaseModel):
    """Lead as returned by the API"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    va_id: Optional[str]
    va_name: str
    make: str
    model: str
    year: int
    mileage: Optional[int]
    asking_price: Decimal
    estimated_sale_price: Decimal
    expenses_estimate: Decimal
    estimated_profit: Decimal
    source_url: str
    normalized_source_url: str
    seller_contact: Optional[str]
    location: Optional[str]
    preview_image_url: Optional[str]
    status: LeadStatus
    created_at: datetime
    updated_at: datetime


class LeadEventResponseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    lead_id: str
    user_id: Optional[str]
    from_status: Optional[LeadStatus]
    to_status: LeadStatus
    notes: Optional[str]
    created_at: datetime


class MessageResponseSchema(BaseModel):
    message: str
