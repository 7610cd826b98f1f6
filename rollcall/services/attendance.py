"""Attendance entries: writes, listing and spreadsheet export."""
import io
import logging
from datetime import datetime
from typing import Optional

import pandas as pd

from rollcall.config import settings
from rollcall.models.attendance import AttendanceEntry, AttendanceOut, AttendanceSubmission
from rollcall.services.subjects import subject_class

logger = logging.getLogger(__name__)

REPORT_COLUMNS = ["Recorded At", "Roll Number", "Name", "Subject"]


def _to_out(entry: AttendanceEntry) -> AttendanceOut:
    return AttendanceOut(
        id=str(entry.id),
        name=entry.name,
        subject=entry.text,
        rollno=entry.rollno,
        uid=entry.uid,
        profile_pic_url=entry.profile_pic_url,
        image_url=entry.image_url,
        timestamp=entry.timestamp,
    )


async def save_entry(data: AttendanceSubmission, uid: str, picture: Optional[str] = None) -> AttendanceOut:
    """Write a submission; the timestamp is assigned here, not by the client."""
    entry = AttendanceEntry(
        name=data.name,
        text=data.subject,
        rollno=data.rollno,
        uid=uid,
        profile_pic_url=picture or settings.profile_placeholder_url,
        timestamp=datetime.utcnow(),
    )
    await entry.insert()
    logger.info("Attendance recorded: rollno=%s subject=%s", entry.rollno, entry.text)
    return _to_out(entry)


async def list_entries(subject: Optional[str] = None) -> list[AttendanceOut]:
    """All entries oldest first, optionally only one subject class (e.g. "datastructure")."""
    entries = await AttendanceEntry.find_all().sort("+timestamp").to_list()
    out = [_to_out(e) for e in entries]
    if subject:
        wanted = subject_class(subject)
        out = [e for e in out if subject_class(e.subject) == wanted]
    return out


def entries_to_frame(entries: list[AttendanceOut]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Recorded At": e.timestamp,
                "Roll Number": e.rollno,
                "Name": e.name,
                "Subject": e.subject,
            }
            for e in entries
        ],
        columns=REPORT_COLUMNS,
    )


def frame_to_csv(df: pd.DataFrame) -> str:
    stream = io.StringIO()
    df.to_csv(stream, index=False)
    return stream.getvalue()


def frame_to_excel(df: pd.DataFrame) -> io.BytesIO:
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="Attendance")
    output.seek(0)
    return output
