from datetime import datetime
from typing import Optional
from beanie import Document, Indexed
from pydantic import BaseModel, ConfigDict, Field, model_validator

from rollcall.services.subjects import SUBJECT_CLASSES, subject_class


class AttendanceEntry(Document):
    """One submitted attendance mark: who, which subject, when."""
    name: str
    text: str  # subject as picked in the form
    rollno: Indexed(str)
    uid: str  # Firebase uid of the submitting user
    profile_pic_url: Optional[str] = None
    image_url: Optional[str] = None
    # Assigned by the server when the entry is written; the live view orders by it
    timestamp: Indexed(datetime) = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "attendance"
        use_state_management = True


class AttendanceSubmission(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)
    subject: str
    rollno: str
    name: str

    @model_validator(mode="after")
    def validate_payload(self):
        missing = [field for field in ("subject", "rollno", "name") if not getattr(self, field)]
        if missing:
            raise ValueError(f"Required: {', '.join(missing)}")
        if subject_class(self.subject) not in SUBJECT_CLASSES:
            raise ValueError(f"Unknown subject: {self.subject}")
        return self


class AttendanceOut(BaseModel):
    id: str
    name: str
    subject: str
    rollno: str
    uid: str
    profile_pic_url: Optional[str] = None
    image_url: Optional[str] = None
    timestamp: Optional[datetime] = None


class AttendanceRow(BaseModel):
    """Display fields of one live-view row.

    ``sort_key`` is milliseconds since the epoch; ``None`` until the store has
    assigned a timestamp.
    """
    model_config = ConfigDict(frozen=True)
    name: str = ""
    text: str = ""
    rollno: str = ""
    profile_pic_url: Optional[str] = None
    image_url: Optional[str] = None
    sort_key: Optional[float] = None
