"""
Pydantic schemas for settings and audit log endpoints
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SettingUpdateSchema(BaseModel):
    value: str = Field(..., max_length=2000)

    @field_validator("value", mode="before")
    @classmethod
    def coerce_to_string(cls, v):
        # Numbers and booleans are stored in their string form
        if isinstance(v, bool):
            return "true" if v else "false"
        if isinstance(v, (int, float)):
            return str(v)
        return v


class SettingResponseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str
    value: str
    updated_at: datetime


class AuditLogResponseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: Optional[str]
    action: str
    resource_type: Optional[str]
    resource_id: Optional[str]
    details: Optional[str]
    ip_address: Optional[str]
    user_agent: Optional[str]
    created_at: datetime
