"""
Job Tracker - Store adapter for job applications.

Translates between the JobApplication domain record and the job_applications
row, and performs list/create/update/delete scoped to one owner. Every query
filters on user_id; the owner is always passed in by the caller and never
read from client-supplied fields.

Database failures are wrapped in StoreError so callers can handle one
error category regardless of backend.
"""
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional
import logging

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from .database import get_resilient_session
from .models import JobApplicationRow
from .schemas import JobApplication, JobApplicationFields, JobApplicationPatch

logger = logging.getLogger("jobtracker.store")


class StoreError(Exception):
    """Failure performing an operation against the application store."""
    pass


class RecordNotFound(StoreError):
    """The application does not exist for this owner (or was already deleted)."""
    pass


# Wire field name -> column name. Total and reversible.
FIELD_COLUMNS = {
    "id": "id",
    "jobTitle": "job_title",
    "company": "company",
    "platform": "platform",
    "location": "location",
    "employmentType": "employment_type",
    "dateApplied": "date_applied",
    "status": "status",
    "jobUrl": "job_url",
    "lastContactDate": "last_contact_date",
    "followUpDueDate": "follow_up_due_date",
    "nextAction": "next_action",
    "contactName": "contact_name",
    "contactEmail": "contact_email",
    "contactLinkedIn": "contact_linkedin",
    "notes": "notes",
    "salaryRange": "salary_range",
    "keyRequirements": "key_requirements",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

COLUMN_FIELDS = {column: field for field, column in FIELD_COLUMNS.items()}


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the DateTime columns round-trip."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def next_timestamp(previous: Optional[datetime] = None) -> datetime:
    """Return the current time, nudged forward so it is strictly after `previous`."""
    now = utcnow()
    if previous is not None and now <= previous:
        now = previous + timedelta(microseconds=1)
    return now


def row_values(model: BaseModel, exclude_unset: bool = False) -> dict:
    """Translate a domain model (fields or patch) into column values."""
    data = model.model_dump(by_alias=True, exclude_unset=exclude_unset)
    values = {}
    for field, value in data.items():
        if isinstance(value, Enum):
            value = value.value
        values[FIELD_COLUMNS[field]] = value
    return values


def record_from_row(row: JobApplicationRow) -> JobApplication:
    """Translate a persisted row into a domain record. NULL columns become absent fields."""
    return JobApplication.model_validate(
        {COLUMN_FIELDS[column]: getattr(row, column) for column in COLUMN_FIELDS}
    )


class ApplicationStore:
    """
    CRUD for job applications against the configured database.

    Args:
        session_factory: Optional sessionmaker; defaults to the app's SessionLocal.
    """

    def __init__(self, session_factory=None):
        self._session_factory = session_factory

    def _session(self):
        return get_resilient_session(self._session_factory)

    @staticmethod
    def _owned(db, owner_id: int):
        return db.query(JobApplicationRow).filter(JobApplicationRow.user_id == owner_id)

    def list(self, owner_id: int) -> List[JobApplication]:
        """All of the owner's applications, most recently updated first."""
        try:
            with self._session() as db:
                rows = self._owned(db, owner_id).order_by(
                    JobApplicationRow.updated_at.desc()
                ).all()
                records = [record_from_row(row) for row in rows]
        except (SQLAlchemyError, ValidationError) as e:
            logger.error(f"Failed to list applications for user {owner_id}: {e}")
            raise StoreError("Could not load applications") from e

        logger.debug(f"Loaded {len(records)} applications for user {owner_id}")
        return records

    def create(self, owner_id: int, fields: JobApplicationFields) -> JobApplication:
        """
        Insert a new application.

        The store assigns the id and sets created_at == updated_at. On failure
        the transaction is rolled back and nothing is returned.
        """
        now = utcnow()
        try:
            with self._session() as db:
                row = JobApplicationRow(
                    **row_values(fields),
                    user_id=owner_id,
                    created_at=now,
                    updated_at=now,
                )
                db.add(row)
                db.flush()
                record = record_from_row(row)
        except (SQLAlchemyError, ValidationError) as e:
            logger.error(f"Failed to create application for user {owner_id}: {e}")
            raise StoreError("Could not save application") from e

        logger.info(f"Created application {record.id} for user {owner_id}")
        return record

    def update(self, owner_id: int, application_id: str, patch: JobApplicationPatch) -> datetime:
        """
        Apply a partial update. Omitted fields keep their stored values.

        Returns:
            The refreshed updated_at, strictly later than the previous one.

        Raises:
            RecordNotFound: If the owner has no application with this id
            StoreError: On any database failure
        """
        values = row_values(patch, exclude_unset=True)
        try:
            with self._session() as db:
                row = self._owned(db, owner_id).filter(
                    JobApplicationRow.id == application_id
                ).first()
                if row is None:
                    raise RecordNotFound(f"Application {application_id} not found")

                for column, value in values.items():
                    setattr(row, column, value)
                row.updated_at = next_timestamp(row.updated_at)
                updated_at = row.updated_at
        except SQLAlchemyError as e:
            logger.error(f"Failed to update application {application_id}: {e}")
            raise StoreError("Could not update application") from e

        logger.info(f"Updated application {application_id} ({', '.join(values) or 'touch'})")
        return updated_at

    def delete(self, owner_id: int, application_id: str) -> None:
        """
        Delete an application.

        Raises:
            RecordNotFound: If it does not exist for this owner (including already deleted)
            StoreError: On any database failure
        """
        try:
            with self._session() as db:
                row = self._owned(db, owner_id).filter(
                    JobApplicationRow.id == application_id
                ).first()
                if row is None:
                    raise RecordNotFound(f"Application {application_id} not found")
                db.delete(row)
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete application {application_id}: {e}")
            raise StoreError("Could not delete application") from e

        logger.info(f"Deleted application {application_id}")
