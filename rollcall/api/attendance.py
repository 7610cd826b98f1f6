import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import StreamingResponse
from pymongo.errors import PyMongoError

from rollcall.api.deps import CurrentUser
from rollcall.models.attendance import AttendanceOut, AttendanceSubmission
from rollcall.services.attendance import (
    entries_to_frame,
    frame_to_csv,
    frame_to_excel,
    list_entries,
    save_entry,
)
from rollcall.services.fcm import send_attendance_push

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", status_code=201)
async def submit_attendance(data: AttendanceSubmission, user: CurrentUser):
    """Record the signed-in user's attendance for a subject."""
    try:
        entry = await save_entry(data, user.uid, user.picture)
    except PyMongoError as e:
        logger.error("Error writing new attendance entry to the database: %s", e)
        raise HTTPException(
            status_code=503,
            detail="Could not record attendance right now, please submit again",
        )

    try:
        await send_attendance_push(entry)
    except PyMongoError as e:
        logger.error("Could not look up devices for attendance push: %s", e)

    return {
        "status": "success",
        "message": "Your attendance is captured successfully!!",
        "id": entry.id,
    }


@router.get("", response_model=list[AttendanceOut])
async def get_attendance(user: CurrentUser, subject: Optional[str] = None):
    """Entries oldest first; ``subject`` filters by subject (any spacing/case)."""
    return await list_entries(subject)


@router.get("/report")
async def download_attendance_report(
    user: CurrentUser,
    subject: Optional[str] = None,
    format: str = Query("csv", enum=["csv", "excel"]),
):
    """Download attendance as CSV or Excel."""
    entries = await list_entries(subject)
    if not entries:
        raise HTTPException(
            status_code=404, detail="No records found for the given criteria"
        )

    df = entries_to_frame(entries)
    suffix = f"_{subject}" if subject else ""

    if format == "csv":
        return StreamingResponse(
            iter([frame_to_csv(df)]),
            media_type="text/csv",
            headers={
                "Content-Disposition": f"attachment; filename=attendance{suffix}.csv"
            },
        )
    else:
        return StreamingResponse(
            frame_to_excel(df),
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers={
                "Content-Disposition": f"attachment; filename=attendance{suffix}.xlsx"
            },
        )
