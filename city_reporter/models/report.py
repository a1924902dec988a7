"""
Pydantic models for issue reports.

Input models validate what citizens and admins send; the remaining models
describe the stored report document and the API responses built from it.
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import Optional, List
from enum import Enum


class ReportStatus(str, Enum):
    """Coarse report lifecycle. Independent of ResolutionStatus."""
    SUBMITTED = "submitted"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class ResolutionStatus(str, Enum):
    """
    Administrative workflow state.

    Open enum: any value may follow any other. Every change is written to
    the action log with its from/to pair.
    """
    PENDING = "pending"
    RESOLVING = "resolving"
    PROCESSING = "processing"
    ARRANGING = "arranging"
    RESOLVED = "resolved"


class ActionType(str, Enum):
    COMMENT = "comment"
    STATUS_UPDATE = "status_update"
    PHOTO_UPLOAD = "photo_upload"
    RESOLUTION = "resolution"


class EmailStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


# ---------- Submission input ----------

class LocationInput(BaseModel):
    """Location as sent by the reporting client."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    address: str = Field(..., min_length=1)
    city: Optional[str] = None
    district: Optional[str] = None
    province: Optional[str] = None
    full_address: Optional[str] = Field(None, validation_alias=AliasChoices("fullAddress", "full_address"))


class OfficeTarget(BaseModel):
    """An office selected by the reporter. Type is stored uppercase."""
    model_config = ConfigDict(extra="ignore")

    type: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)

    @field_validator("type")
    @classmethod
    def _upper_type(cls, value: str) -> str:
        value = value.strip().upper()
        if value not in ("DS", "PS"):
            raise ValueError("office type must be DS or PS")
        return value

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return value.strip().lower()


class ReporterInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    full_name: str = Field(..., min_length=1, validation_alias=AliasChoices("fullName", "full_name", "name"))
    email: str = Field(..., min_length=3)
    phone: Optional[str] = None


class PhotoUpload(BaseModel):
    """Raw photo bytes with the metadata the blob store needs."""
    content: bytes
    content_type: str = "application/octet-stream"
    filename: str = "photo"


# ---------- Stored report shapes ----------

class ReporterSnapshot(BaseModel):
    user_id: str
    name: str
    email: str


class OfficeSnapshot(BaseModel):
    type: str
    name: str
    email: str


class GeoPoint(BaseModel):
    type: str = "Point"
    coordinates: List[float]


class Location(BaseModel):
    latitude: float
    longitude: float
    address: str
    city: str = "Unknown"
    district: str = "Unknown"
    province: str = "Unknown"
    full_address: Optional[str] = None
    geolocation: GeoPoint


class EmailOutcome(BaseModel):
    email: str
    sent_at: datetime
    status: EmailStatus
    message_id: Optional[str] = None
    error: Optional[str] = None


class StatusChange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_status: Optional[str] = Field(None, alias="from")
    to_status: str = Field(..., alias="to")


class AdminAction(BaseModel):
    id: Optional[str] = None
    admin_id: str
    admin_name: str
    admin_position: Optional[str] = None
    action_type: ActionType
    comment: Optional[str] = None
    status_change: Optional[StatusChange] = None
    photo_url: Optional[str] = None
    photo_path: Optional[str] = None
    timestamp: datetime


class EvidencePhoto(BaseModel):
    url: str
    path: str
    uploaded_by: str
    uploaded_at: datetime


class PublicComment(BaseModel):
    id: str
    name: str
    email: str
    text: str
    timestamp: datetime


class IssueReport(BaseModel):
    """Full report document as returned by the API."""
    id: str
    reporter: ReporterSnapshot
    description: str
    location: Location
    photo_url: str
    photo_path: Optional[str] = None
    offices: List[OfficeSnapshot] = Field(default_factory=list)
    emails_sent: List[EmailOutcome] = Field(default_factory=list)
    resolution_status: ResolutionStatus = ResolutionStatus.PENDING
    assigned_admin: Optional[str] = None
    assigned_admin_name: Optional[str] = None
    assigned_admin_position: Optional[str] = None
    assigned_at: Optional[datetime] = None
    admin_actions: List[AdminAction] = Field(default_factory=list)
    evidence_photos: List[EvidencePhoto] = Field(default_factory=list)
    public_comments: List[PublicComment] = Field(default_factory=list)
    status: ReportStatus = ReportStatus.SUBMITTED
    created_at: datetime
    updated_at: Optional[datetime] = None


# ---------- Results ----------

class LocationSummary(BaseModel):
    city: str
    district: str
    province: str
    address: str
    latitude: float
    longitude: float


class SubmissionResult(BaseModel):
    """
    Outcome of a report submission.

    Partial notification failure is still a successful submission; the
    per-office outcomes are surfaced here for visibility.
    """
    report_id: str
    reporter: ReporterSnapshot
    photo_url: str
    location: LocationSummary
    offices: List[OfficeSnapshot]
    emails_sent: List[EmailOutcome]
    total_emails: int
    successful_emails: int


# ---------- Request bodies ----------

class AssignAdminRequest(BaseModel):
    admin_id: str = Field(..., min_length=1, validation_alias=AliasChoices("adminId", "admin_id"))


class ResolutionStatusRequest(BaseModel):
    status: str
    admin_id: str = Field(..., min_length=1, validation_alias=AliasChoices("adminId", "admin_id"))


class AdminCommentRequest(BaseModel):
    comment: str = Field(..., min_length=1)
    admin_id: str = Field(..., min_length=1, validation_alias=AliasChoices("adminId", "admin_id"))


class ReportStatusRequest(BaseModel):
    status: str


class PublicCommentRequest(BaseModel):
    name: str = ""
    email: str = ""
    text: str = ""


# ---------- Responses ----------

class ReportResponse(BaseModel):
    success: bool = True
    report: IssueReport


class ReportListResponse(BaseModel):
    success: bool = True
    count: int
    total: int
    reports: List[IssueReport]
