"""
Regional office models (routing targets for report notifications).
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from enum import Enum


class OfficeType(str, Enum):
    DISTRICT_SECRETARIAT = "DS"
    POLICE_STATION = "PS"


class OfficeCreate(BaseModel):
    type: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=254)
    phone: Optional[str] = None
    address: Optional[str] = None
    district: Optional[str] = None
    province: Optional[str] = None


class OfficeUpdate(BaseModel):
    type: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    district: Optional[str] = None
    province: Optional[str] = None
    is_active: Optional[bool] = None


class RegionalOffice(BaseModel):
    id: str = Field(..., description="Firestore document ID")
    type: OfficeType
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    district: Optional[str] = None
    province: Optional[str] = None
    is_active: bool = True
    created_at: datetime
    updated_at: Optional[datetime] = None


class OfficeResponse(BaseModel):
    success: bool = True
    office: RegionalOffice
