from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pymongo.errors import PyMongoError

from errors import NotFoundError, StorageError
from models.user import User

logger = logging.getLogger("access_api")

ACCESS_COLLECTION = "accessRecords"
USERS_COLLECTION = "users"


def utc_now() -> datetime:
    # BSON datetimes only keep milliseconds
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def format_timestamp(value: Any) -> Optional[str]:
    """ISO-8601 string in UTC with millisecond precision, or None if value is not a datetime."""
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        # driver returns naive UTC unless tz_aware is set
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class AccessStore:
    """Access records and the user roster, on top of a motor database handle."""

    def __init__(self, db):
        self.db = db

    @property
    def access_records(self):
        return self.db[ACCESS_COLLECTION]

    @property
    def users(self):
        return self.db[USERS_COLLECTION]

    async def ensure_indexes(self) -> None:
        await self.users.create_index([("studentId", 1)])
        await self.access_records.create_index([("timestamp", -1)])

    async def ping(self) -> bool:
        try:
            await self.db.command("ping")
            return True
        except PyMongoError as e:
            logger.warning("DB ping failed: %s", e)
            return False

    async def record_access(self, student_id: str, role: str) -> datetime:
        timestamp = utc_now()
        logger.debug("Recording access studentId=%s role=%s at %s", student_id, role, timestamp)
        try:
            await self.access_records.insert_one({"studentId": student_id, "role": role, "timestamp": timestamp})
        except PyMongoError:
            logger.exception("Error recording access")
            raise StorageError("Error recording access")
        return timestamp

    async def list_access(self) -> List[Dict[str, Any]]:
        out = []
        try:
            async for doc in self.access_records.find({}):
                logger.debug("Fetched raw record: %s", doc)
                out.append(doc)
        except PyMongoError:
            logger.exception("Error fetching access records")
            raise StorageError("Error fetching access records")
        return out

    async def add_user(self, student_id: str, role: str) -> str:
        user = User(studentId=student_id, role=role)
        try:
            res = await self.users.insert_one(user.to_doc())
        except PyMongoError:
            logger.exception("Error adding user")
            raise StorageError("Error adding user")
        return str(res.inserted_id)

    async def update_user_status(self, student_id: str, status: str) -> int:
        """Set status on every user with this studentId.

        Updates run concurrently and are not transactional: if one fails the
        call raises StorageError, but updates that already landed stay applied.
        """
        try:
            ids = [doc["_id"] async for doc in self.users.find({"studentId": student_id}, {"_id": 1})]
            if not ids:
                raise NotFoundError("User not found")
            await asyncio.gather(*(
                self.users.update_one({"_id": oid}, {"$set": {"status": status}}) for oid in ids
            ))
        except PyMongoError:
            logger.exception("Error updating user status")
            raise StorageError("Error updating user status")
        return len(ids)
