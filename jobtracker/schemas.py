"""
Job Tracker - Domain model and Pydantic schemas.

Defines the JobApplication record, the create/patch input structures, the
closed vocabularies (status, platform, employment type) and the response
shapes for dashboard stats and the kanban board.

Fields are snake_case in Python and camelCase on the wire.
"""
from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from datetime import date, datetime
from typing import Optional, List, Dict
from enum import Enum


# --- Enums for validated fields ---

class ApplicationStatus(str, Enum):
    WISHLIST = "wishlist"
    APPLIED = "applied"
    SCREENING = "screening"
    INTERVIEW1 = "interview1"
    INTERVIEW2 = "interview2"
    OFFER = "offer"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class Platform(str, Enum):
    LINKEDIN = "linkedin"
    EMAIL = "email"
    WEBSITE = "website"
    REFERRAL = "referral"
    RECRUITER = "recruiter"
    INDEED = "indeed"
    GLASSDOOR = "glassdoor"
    OTHER = "other"


class EmploymentType(str, Enum):
    FULL_TIME = "full-time"
    PART_TIME = "part-time"
    CONTRACT = "contract"
    REMOTE = "remote"
    HYBRID = "hybrid"


# Display label and visual category per status; dict order is the kanban column order
STATUS_CONFIG = {
    ApplicationStatus.WISHLIST: {"label": "Wishlist", "color": "status-wishlist"},
    ApplicationStatus.APPLIED: {"label": "Applied", "color": "status-applied"},
    ApplicationStatus.SCREENING: {"label": "HR Screening", "color": "status-screening"},
    ApplicationStatus.INTERVIEW1: {"label": "Interview 1", "color": "status-interview1"},
    ApplicationStatus.INTERVIEW2: {"label": "Final Interview", "color": "status-interview2"},
    ApplicationStatus.OFFER: {"label": "Offer", "color": "status-offer"},
    ApplicationStatus.REJECTED: {"label": "Rejected", "color": "status-rejected"},
    ApplicationStatus.WITHDRAWN: {"label": "Withdrawn", "color": "status-withdrawn"},
}

KANBAN_COLUMNS = list(STATUS_CONFIG)

IN_PROGRESS_STATUSES = {
    ApplicationStatus.SCREENING,
    ApplicationStatus.INTERVIEW1,
    ApplicationStatus.INTERVIEW2,
}

# Follow-ups on these no longer count as overdue
CLOSED_STATUSES = {
    ApplicationStatus.REJECTED,
    ApplicationStatus.WITHDRAWN,
    ApplicationStatus.OFFER,
}

PLATFORM_LABELS = {
    Platform.LINKEDIN: "LinkedIn",
    Platform.EMAIL: "Email",
    Platform.WEBSITE: "Company Website",
    Platform.REFERRAL: "Referral",
    Platform.RECRUITER: "Recruiter",
    Platform.INDEED: "Indeed",
    Platform.GLASSDOOR: "Glassdoor",
    Platform.OTHER: "Other",
}

EMPLOYMENT_TYPE_LABELS = {
    EmploymentType.FULL_TIME: "Full-time",
    EmploymentType.PART_TIME: "Part-time",
    EmploymentType.CONTRACT: "Contract",
    EmploymentType.REMOTE: "Remote",
    EmploymentType.HYBRID: "Hybrid",
}

REQUIRED_TEXT_FIELDS = ("job_title", "company")
REQUIRED_FIELDS = (
    "job_title", "company", "platform", "location",
    "employment_type", "date_applied", "status",
)
OPTIONAL_FIELDS = (
    "job_url", "last_contact_date", "follow_up_due_date", "next_action",
    "contact_name", "contact_email", "contact_linkedin", "notes",
    "salary_range", "key_requirements",
)


# --- Helper validators ---

def blank_to_none(value):
    """Treat an empty form value as an absent optional field."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


def require_text(value: str) -> str:
    if not value.strip():
        raise ValueError("Field is required")
    return value


class CamelModel(BaseModel):
    """Base schema that reads and writes camelCase field names."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


# --- Job Application Schemas ---

class JobApplicationFields(CamelModel):
    """Fields supplied when recording a new application."""
    job_title: str
    company: str
    platform: Platform = Platform.LINKEDIN
    location: str = ""
    employment_type: EmploymentType = EmploymentType.FULL_TIME
    date_applied: date = Field(default_factory=date.today)
    status: ApplicationStatus = ApplicationStatus.APPLIED

    job_url: Optional[str] = None
    last_contact_date: Optional[date] = None
    follow_up_due_date: Optional[date] = None
    next_action: Optional[str] = None
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_linkedin: Optional[str] = Field(None, alias="contactLinkedIn")
    notes: Optional[str] = None
    salary_range: Optional[str] = None
    key_requirements: Optional[str] = None

    @field_validator(*REQUIRED_TEXT_FIELDS)
    @classmethod
    def validate_required_text(cls, v):
        return require_text(v)

    @field_validator(*OPTIONAL_FIELDS, mode="before")
    @classmethod
    def validate_optional(cls, v):
        return blank_to_none(v)


class JobApplicationPatch(CamelModel):
    """
    Partial update for an existing application.

    Only fields present in the payload are applied. An explicit null (or an
    empty string) clears an optional field; required fields cannot be cleared.
    """
    job_title: Optional[str] = None
    company: Optional[str] = None
    platform: Optional[Platform] = None
    location: Optional[str] = None
    employment_type: Optional[EmploymentType] = None
    date_applied: Optional[date] = None
    status: Optional[ApplicationStatus] = None

    job_url: Optional[str] = None
    last_contact_date: Optional[date] = None
    follow_up_due_date: Optional[date] = None
    next_action: Optional[str] = None
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_linkedin: Optional[str] = Field(None, alias="contactLinkedIn")
    notes: Optional[str] = None
    salary_range: Optional[str] = None
    key_requirements: Optional[str] = None

    @field_validator(*REQUIRED_FIELDS)
    @classmethod
    def validate_not_cleared(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be cleared")
        if info.field_name in REQUIRED_TEXT_FIELDS:
            return require_text(v)
        return v

    @field_validator(*OPTIONAL_FIELDS, mode="before")
    @classmethod
    def validate_optional(cls, v):
        return blank_to_none(v)

    def changes(self) -> dict:
        """Return only the fields that were supplied, keyed by attribute name."""
        return self.model_dump(exclude_unset=True)


class JobApplication(JobApplicationFields):
    """One tracked application. Instances are immutable snapshots."""
    id: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
        frozen = True

    def to_api(self) -> dict:
        """Serialize for the wire: camelCase keys, absent optionals omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# --- Stats/Board Schemas ---

class DashboardStats(CamelModel):
    applied_this_week: int
    in_progress: int
    offers: int
    rejected: int
    overdue_follow_ups: int
    total: int
    by_status: Dict[str, int]


class BoardCard(CamelModel):
    application: JobApplication
    platform_label: str
    overdue: bool
    due_soon: bool


class BoardColumn(CamelModel):
    status: ApplicationStatus
    label: str
    color: str
    count: int
    cards: List[BoardCard] = []
