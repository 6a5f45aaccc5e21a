"""
Test the store adapter against an in-memory database.
"""
from datetime import date

import pytest
from sqlalchemy import text

from jobtracker.models import JobApplicationRow
from jobtracker.schemas import JobApplication, JobApplicationFields, JobApplicationPatch
from jobtracker.store import (
    COLUMN_FIELDS, FIELD_COLUMNS, RecordNotFound, StoreError, record_from_row, row_values,
)


def _fields(**overrides):
    data = {
        "job_title": "Backend Engineer",
        "company": "Acme",
        "platform": "linkedin",
        "location": "Berlin",
        "employment_type": "full-time",
        "date_applied": date(2024, 1, 3),
        "status": "applied",
    }
    data.update(overrides)
    return JobApplicationFields(**data)


class TestTranslation:

    def test_mapping_covers_every_domain_field_once(self):
        wire_names = {field.alias or name for name, field in JobApplication.model_fields.items()}
        row_columns = {column.name for column in JobApplicationRow.__table__.columns} - {"user_id"}

        assert set(FIELD_COLUMNS) == wire_names
        assert set(FIELD_COLUMNS.values()) == row_columns
        assert len(COLUMN_FIELDS) == len(FIELD_COLUMNS)

    def test_row_values_use_column_names_and_plain_values(self):
        values = row_values(_fields(contact_linkedin="https://linkedin.com/in/dana"))

        assert values["job_title"] == "Backend Engineer"
        assert values["employment_type"] == "full-time"
        assert values["contact_linkedin"] == "https://linkedin.com/in/dana"
        assert values["notes"] is None

    def test_patch_translation_only_includes_supplied_fields(self):
        patch = JobApplicationPatch(status="offer")

        assert row_values(patch, exclude_unset=True) == {"status": "offer"}


class TestCreateAndList:

    def test_create_assigns_id_and_timestamps(self, store, test_user):
        record = store.create(test_user.id, _fields())

        assert record.id
        assert record.created_at == record.updated_at
        assert record.job_title == "Backend Engineer"

    def test_create_then_list_returns_equal_record(self, store, test_user):
        fields = _fields(notes="Met the team", follow_up_due_date=date(2024, 1, 10))

        created = store.create(test_user.id, fields)
        listed = store.list(test_user.id)

        assert listed == [created]
        for name, value in fields.model_dump().items():
            assert getattr(listed[0], name) == value
        assert listed[0].updated_at >= listed[0].created_at

    def test_absent_optional_fields_stay_absent(self, store, test_user, test_db_session):
        created = store.create(test_user.id, _fields(job_url=""))

        row = test_db_session.get(JobApplicationRow, created.id)
        assert row.job_url is None
        assert row.notes is None
        assert store.list(test_user.id)[0].job_url is None

    def test_list_is_sorted_by_updated_desc(self, store, test_user):
        first = store.create(test_user.id, _fields(job_title="First"))
        second = store.create(test_user.id, _fields(job_title="Second"))
        store.update(test_user.id, first.id, JobApplicationPatch(notes="bumped"))

        titles = [record.job_title for record in store.list(test_user.id)]

        assert titles == ["First", "Second"]
        assert second.id in {record.id for record in store.list(test_user.id)}

    def test_list_is_scoped_to_owner(self, store, test_user, other_user):
        store.create(test_user.id, _fields(company="Mine"))
        store.create(other_user.id, _fields(company="Theirs"))

        assert [r.company for r in store.list(test_user.id)] == ["Mine"]
        assert [r.company for r in store.list(other_user.id)] == ["Theirs"]


class TestUpdate:

    def test_status_update_changes_only_status_and_updated_at(self, store, test_user):
        created = store.create(test_user.id, _fields(notes="keep me"))

        updated_at = store.update(test_user.id, created.id, JobApplicationPatch(status="interview1"))
        [after] = store.list(test_user.id)

        assert updated_at > created.updated_at
        assert after.updated_at == updated_at
        assert after.status.value == "interview1"
        unchanged = created.model_dump(exclude={"status", "updated_at"})
        assert after.model_dump(exclude={"status", "updated_at"}) == unchanged

    def test_updated_at_strictly_increases(self, store, test_user):
        created = store.create(test_user.id, _fields())

        stamps = [
            store.update(test_user.id, created.id, JobApplicationPatch(location=f"City {i}"))
            for i in range(5)
        ]

        assert all(later > earlier for earlier, later in zip(stamps, stamps[1:]))

    def test_explicit_null_clears_optional_field(self, store, test_user):
        created = store.create(test_user.id, _fields(notes="old note"))

        store.update(test_user.id, created.id, JobApplicationPatch(notes=None))

        assert store.list(test_user.id)[0].notes is None

    def test_unknown_id_raises_not_found(self, store, test_user):
        with pytest.raises(RecordNotFound):
            store.update(test_user.id, "missing", JobApplicationPatch(status="offer"))

    def test_cannot_update_another_users_record(self, store, test_user, other_user):
        created = store.create(other_user.id, _fields())

        with pytest.raises(RecordNotFound):
            store.update(test_user.id, created.id, JobApplicationPatch(status="offer"))
        assert store.list(other_user.id)[0].status.value == "applied"


class TestDelete:

    def test_delete_removes_record(self, store, test_user):
        created = store.create(test_user.id, _fields())

        store.delete(test_user.id, created.id)

        assert store.list(test_user.id) == []

    def test_deleting_twice_reports_not_found(self, store, test_user):
        created = store.create(test_user.id, _fields())
        store.delete(test_user.id, created.id)

        with pytest.raises(RecordNotFound):
            store.delete(test_user.id, created.id)

    def test_not_found_is_a_store_error(self):
        assert issubclass(RecordNotFound, StoreError)


class TestFailures:

    def test_database_failure_becomes_store_error(self, store, test_user, test_db_engine):
        with test_db_engine.begin() as conn:
            conn.execute(text("DROP TABLE job_applications"))

        with pytest.raises(StoreError):
            store.list(test_user.id)
        with pytest.raises(StoreError):
            store.create(test_user.id, _fields())

    def test_invalid_stored_status_is_rejected(self, store, test_user, test_db_session):
        created = store.create(test_user.id, _fields())
        row = test_db_session.get(JobApplicationRow, created.id)
        row.status = "ghosted"
        test_db_session.commit()

        with pytest.raises(StoreError):
            store.list(test_user.id)

    def test_record_from_row_maps_nulls_to_absent(self, store, test_user, test_db_session):
        created = store.create(test_user.id, _fields())
        row = test_db_session.get(JobApplicationRow, created.id)

        record = record_from_row(row)

        assert record.to_api().keys().isdisjoint({"jobUrl", "notes", "contactLinkedIn"})
