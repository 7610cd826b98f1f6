"""Attendance change feed from a MongoDB change stream.

Yields the current entries (oldest first) as one batch of ``Inserted``, then
one batch per change. Needs a replica set or sharded cluster; change streams
are not available on a standalone mongod.
"""
import logging
from datetime import datetime, timezone
from typing import AsyncIterator, Optional, Protocol

from pymongo import ASCENDING

from rollcall.models.attendance import AttendanceEntry, AttendanceRow
from rollcall.services.live_view import ChangeEvent, Inserted, Modified, Removed

logger = logging.getLogger(__name__)


class ChangeSource(Protocol):
    def batches(self) -> AsyncIterator[list[ChangeEvent]]: ...


def to_millis(value: Optional[datetime]) -> Optional[float]:
    """Milliseconds since epoch; naive datetimes are UTC (as pymongo returns them)."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp() * 1000


def row_from_document(doc: dict) -> AttendanceRow:
    rollno = doc.get("rollno")
    return AttendanceRow(
        name=doc.get("name") or "",
        text=doc.get("text") or "",
        rollno=str(rollno) if rollno is not None else "",
        profile_pic_url=doc.get("profile_pic_url"),
        image_url=doc.get("image_url"),
        sort_key=to_millis(doc.get("timestamp")),
    )


def _identity(change: dict) -> Optional[str]:
    key = (change.get("documentKey") or {}).get("_id")
    return str(key) if key is not None else None


def change_from_stream(change: dict) -> Optional[ChangeEvent]:
    """Map one change-stream document; ``None`` for operations the view ignores."""
    operation = change.get("operationType")
    identity = _identity(change)
    if operation == "delete":
        return Removed(identity)
    if operation in ("insert", "update", "replace"):
        # fullDocument is None when the entry was deleted before the lookup ran
        doc = change.get("fullDocument")
        record = row_from_document(doc) if doc is not None else None
        if operation == "insert":
            return Inserted(identity, record)
        return Modified(identity, record)
    logger.info("Ignoring %s change on attendance feed", operation)
    return None


class MongoChangeSource:
    def __init__(self, collection=None):
        self._collection = collection

    def _get_collection(self):
        if self._collection is None:
            self._collection = AttendanceEntry.get_motor_collection()
        return self._collection

    async def batches(self) -> AsyncIterator[list[ChangeEvent]]:
        collection = self._get_collection()
        # Open the stream before reading the snapshot so nothing written in
        # between is missed; entries seen twice are updated in place.
        async with collection.watch(full_document="updateLookup") as stream:
            docs = await collection.find({}).sort("timestamp", ASCENDING).to_list(length=None)
            logger.info("Attendance feed: snapshot of %d entries", len(docs))
            yield [Inserted(str(doc["_id"]), row_from_document(doc)) for doc in docs]
            async for change in stream:
                event = change_from_stream(change)
                if event is not None:
                    yield [event]
