from datetime import datetime, timezone, timedelta

import pydantic
import pytest

from models.user import DEFAULT_STATUS, USER_STATUSES, User
from store import AccessStore, format_timestamp, utc_now


def test_format_timestamp_aware_utc():
    when = datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)
    assert format_timestamp(when) == "2024-01-02T03:04:05.678Z"


def test_format_timestamp_naive_is_treated_as_utc():
    assert format_timestamp(datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02T03:04:05.000Z"


def test_format_timestamp_converts_other_offsets():
    when = datetime(2024, 1, 2, 5, 0, 0, tzinfo=timezone(timedelta(hours=2)))
    assert format_timestamp(when) == "2024-01-02T03:00:00.000Z"


def test_format_timestamp_rejects_non_datetimes():
    assert format_timestamp(None) is None
    assert format_timestamp("2024-01-02T03:04:05Z") is None
    assert format_timestamp(1704164645) is None


def test_utc_now_has_millisecond_precision():
    now = utc_now()
    assert now.tzinfo is not None
    assert now.microsecond % 1000 == 0


async def test_record_access_returns_stored_timestamp(store):
    timestamp = await store.record_access("S1", "student")

    doc = await store.access_records.find_one({"studentId": "S1"})
    assert format_timestamp(doc["timestamp"]) == format_timestamp(timestamp)


async def test_update_user_status_returns_match_count(store):
    await store.add_user("S1", "student")
    await store.add_user("S1", "student")

    assert await store.update_user_status("S1", "reactivated") == 2


async def test_list_access_returns_raw_documents(mongo_db):
    store = AccessStore(mongo_db)
    await store.record_access("S1", "student")
    await store.record_access("S2", "teacher")

    docs = await store.list_access()

    assert sorted(d["studentId"] for d in docs) == ["S1", "S2"]
    assert all("_id" in d for d in docs)


async def test_add_user_stores_user_document(store):
    user_id = await store.add_user("S1", "student")

    doc = await store.users.find_one({"studentId": "S1"})
    assert str(doc["_id"]) == user_id
    user = User(id=str(doc["_id"]), studentId=doc["studentId"], role=doc["role"], status=doc["status"])
    assert user.status == DEFAULT_STATUS
    assert set(doc) == {"_id", "studentId", "role", "status"}


def test_user_defaults_to_active_and_checks_status():
    assert User(studentId="S1", role="student").to_doc() == {"studentId": "S1", "role": "student", "status": "active"}
    with pytest.raises(pydantic.ValidationError):
        User(studentId="S1", role="student", status="banned")


def test_user_statuses_match_status_type():
    assert USER_STATUSES == ("active", "suspended", "reactivated")
