"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum

from app.utils.attachments import Attachment


# ============================================================
# ENUMS
# ============================================================

class ApplicationStatus(str, Enum):
    pending = "pending"
    reviewed = "reviewed"
    accepted = "accepted"
    rejected = "rejected"


class AttachmentKind(str, Enum):
    cv = "cv"
    cover_letter = "cover-letter"

    @property
    def column_prefix(self) -> str:
        return "cv" if self is AttachmentKind.cv else "cover_letter"


STATUS_VALUES = [s.value for s in ApplicationStatus]


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class ApplicationCreate(BaseModel):
    """Normalized submission, ready for the repository."""
    full_name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    alx_status: str = "Not specified"
    position: str = ""
    education: str = ""
    current_role_text: str = ""
    experience: str = ""
    technical_skills: str = ""
    domain_knowledge: str = ""
    portfolio_link: str = ""
    motivation: str = ""
    skills: List[str] = []
    consent: bool = False
    cv: Optional[Attachment] = None
    cover_letter: Optional[Attachment] = None


class ApplicationStatusUpdate(BaseModel):
    # Plain str so an unknown value reaches the repository and yields a 400
    status: str = ""
    notes: Optional[str] = None


class ApplicationSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    email: str
    phone: str
    location: Optional[str] = None
    alx_status: Optional[str] = None
    position: str
    education: Optional[str] = None
    current_role_text: Optional[str] = None
    experience: Optional[str] = None
    technical_skills: Optional[str] = None
    domain_knowledge: Optional[str] = None
    portfolio_link: Optional[str] = None
    motivation: Optional[str] = None
    skills: List[str] = []
    consent: bool
    submitted_at: Optional[datetime] = None
    status: str = ApplicationStatus.pending.value
    notes: Optional[str] = None
    has_cv: bool = False
    has_cover_letter: bool = False


class ApplicationDetail(ApplicationSummary):
    cv_filename: Optional[str] = None
    cv_mimetype: Optional[str] = None
    cover_letter_filename: Optional[str] = None
    cover_letter_mimetype: Optional[str] = None


class SubmissionResponse(BaseModel):
    success: bool = True
    message: str = "Application submitted successfully!"
    applicationId: int
    submittedAt: Optional[datetime] = None


class StoredFile(BaseModel):
    application_id: int
    full_name: str
    cv_filename: Optional[str] = None
    cv_mimetype: Optional[str] = None
    cv_size: Optional[int] = None
    cover_letter_filename: Optional[str] = None
    cover_letter_mimetype: Optional[str] = None
    cover_letter_size: Optional[int] = None
    submitted_at: Optional[datetime] = None


# ============================================================
# HEALTH SCHEMAS
# ============================================================

class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    service: str = "Careers Portal Backend"


class DbCheckResponse(BaseModel):
    status: str
    database: str
    db_time: Optional[datetime] = None
    table: str = "applications"
    error: Optional[str] = None


class ReconcileResponse(BaseModel):
    success: bool
    created_table: bool = False
    added_columns: List[str] = []
    failed_columns: dict = Field(default_factory=dict)
    indexes_ok: bool = False
    error: Optional[str] = None


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True


class ErrorResponse(BaseModel):
    error: str
