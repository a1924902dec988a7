"""
Identity models: citizen users and staff admins.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional


class UserRegister(BaseModel):
    """Model for registering (or updating) a citizen reporter."""
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=254)
    phone: Optional[str] = Field(None, max_length=20)


class User(BaseModel):
    id: str = Field(..., description="Firestore document ID")
    name: str
    email: str
    phone: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class AdminRegister(BaseModel):
    """Model for registering (or updating) a staff admin."""
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=254)
    city: str = Field(..., min_length=1, max_length=100)
    position: Optional[str] = Field(None, max_length=100)
    district: Optional[str] = Field(None, max_length=100)
    province: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)


class Admin(BaseModel):
    id: str = Field(..., description="Firestore document ID")
    name: str
    email: str
    position: Optional[str] = None
    city: str
    district: Optional[str] = None
    province: Optional[str] = None
    phone: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class UserResponse(BaseModel):
    success: bool = True
    user: User


class UserListResponse(BaseModel):
    success: bool = True
    count: int
    users: List[User]


class AdminResponse(BaseModel):
    success: bool = True
    admin: Admin
