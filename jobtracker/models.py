"""
Job Tracker - SQLAlchemy ORM models

One row per tracked application, always owned by exactly one user.
"""
import uuid

from sqlalchemy import Column, Integer, String, Date, DateTime, Text, ForeignKey, Index
from .database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class JobApplicationRow(Base):
    __tablename__ = "job_applications"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    job_title = Column(String, nullable=False)
    company = Column(String, nullable=False)
    platform = Column(String, nullable=False)  # linkedin, email, website, referral, recruiter, indeed, glassdoor, other
    location = Column(String, nullable=False, default="")
    employment_type = Column(String, nullable=False)  # full-time, part-time, contract, remote, hybrid
    date_applied = Column(Date, nullable=False)
    status = Column(String, nullable=False)  # wishlist .. withdrawn

    job_url = Column(String)
    last_contact_date = Column(Date)
    follow_up_due_date = Column(Date)
    next_action = Column(String)
    contact_name = Column(String)
    contact_email = Column(String)
    contact_linkedin = Column(String)
    notes = Column(Text)
    salary_range = Column(String)
    key_requirements = Column(Text)

    # Set explicitly by the store adapter, never by column defaults
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_job_applications_user_updated", "user_id", "updated_at"),
    )
