"""
Pydantic schemas for commission endpoints
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class CommissionResponseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    lead_id: str
    va_id: Optional[str]
    amount: Decimal
    is_due: bool
    is_paid: bool
    paid_at: Optional[datetime] = None
    paid_by: Optional[str] = None
    created_at: datetime


class CommissionMessageSchema(BaseModel):
    message: str
