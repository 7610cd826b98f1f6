"""Table rendering for the live attendance view.

``TableSink`` keeps the rendered rows in memory (header slot first, then one
slot per record) and ``WebSocketSink`` additionally queues every mutation as
a JSON message for the browser.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from html import escape
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from rollcall.config import settings
from rollcall.models.attendance import AttendanceRow
from rollcall.services.subjects import subject_class

logger = logging.getLogger(__name__)

PENDING = "pending"
VISIBLE = "visible"

HEADER_HTML = (
    '<tr class="header"><th></th><th>Name</th><th>Roll No</th>'
    "<th>Subject</th><th>Recorded at</th></tr>"
)


def add_size_to_google_profile_pic(url: str) -> str:
    """Ask Google for a 150px avatar when the URL carries no query yet."""
    if "googleusercontent.com" in url and "?" not in url:
        return url + "?sz=150"
    return url


def cache_busted(url: str, now_ms: float) -> str:
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}{int(now_ms)}"


def format_record_time(sort_key: Optional[float]) -> str:
    if sort_key is None:
        return ""
    moment = datetime.fromtimestamp(sort_key / 1000, tz=timezone.utc)
    return moment.astimezone(ZoneInfo(settings.display_timezone)).strftime("%d/%m/%Y, %H:%M:%S")


def render_message(record: AttendanceRow, now_ms: float) -> str:
    """Text with newlines as <br>; an image when there is no text."""
    if record.text:
        return escape(record.text).replace("\n", "<br>")
    if record.image_url:
        return f'<img src="{escape(cache_busted(record.image_url, now_ms))}">'
    return ""


@dataclass
class RowSlot:
    identity: str
    record: AttendanceRow
    state: str = PENDING
    message_html: str = ""

    @property
    def subject(self) -> str:
        return subject_class(self.record.text)

    def to_html(self) -> str:
        record = self.record
        pic_url = add_size_to_google_profile_pic(record.profile_pic_url or settings.profile_placeholder_url)
        timestamp = "" if record.sort_key is None else str(int(record.sort_key))
        return (
            f'<tr id="{escape(self.identity)}" data-timestamp="{timestamp}" '
            f'data-subject="{escape(self.subject)}" class="{escape(self.subject)} {self.state}">'
            f'<td class="pic" style="background-image: url({escape(pic_url)})"></td>'
            f'<td class="name">{escape(record.name)}</td>'
            f'<td class="rollno">{escape(record.rollno)}</td>'
            f'<td class="message">{self.message_html}</td>'
            f'<td class="recordtime">{escape(format_record_time(record.sort_key))}</td>'
            "</tr>"
        )


class TableSink:
    """In-memory table: a fixed header slot followed by row slots addressed by identity."""

    header_html = HEADER_HTML

    def __init__(self, clock: Callable[[], float] = lambda: time.time() * 1000):
        self._clock = clock
        self.slots: list[RowSlot] = []

    def slot(self, identity: str) -> Optional[RowSlot]:
        for slot in self.slots:
            if slot.identity == identity:
                return slot
        return None

    @property
    def identities(self) -> list[str]:
        return [slot.identity for slot in self.slots]

    def insert_at(self, identity: str, record: AttendanceRow, before: Optional[str]) -> None:
        slot = RowSlot(identity=identity, record=record, message_html=render_message(record, self._clock()))
        index = len(self.slots)
        if before is not None:
            for i, existing in enumerate(self.slots):
                if existing.identity == before:
                    index = i
                    break
        self.slots.insert(index, slot)

    def update_in_place(self, identity: str, record: AttendanceRow) -> None:
        slot = self.slot(identity)
        if slot is None:
            logger.debug("No slot for %s; update ignored", identity)
            return
        slot.record = record
        slot.message_html = render_message(record, self._clock())

    def remove(self, identity: str) -> None:
        self.slots = [slot for slot in self.slots if slot.identity != identity]

    def mark_visible(self, identity: str) -> None:
        slot = self.slot(identity)
        if slot is not None:
            slot.state = VISIBLE

    def to_html(self) -> str:
        return "".join([self.header_html, *(slot.to_html() for slot in self.slots)])


class WebSocketSink(TableSink):
    """Mirrors the table and queues one JSON message per mutation.

    A ``None`` on the queue marks the end of the feed.
    """

    def __init__(self, clock: Callable[[], float] = lambda: time.time() * 1000):
        super().__init__(clock)
        self.queue: asyncio.Queue = asyncio.Queue()

    def insert_at(self, identity: str, record: AttendanceRow, before: Optional[str]) -> None:
        super().insert_at(identity, record, before)
        self.queue.put_nowait(
            {"op": "insert", "id": identity, "before": before, "html": self.slot(identity).to_html()}
        )

    def update_in_place(self, identity: str, record: AttendanceRow) -> None:
        super().update_in_place(identity, record)
        slot = self.slot(identity)
        if slot is not None:
            self.queue.put_nowait({"op": "update", "id": identity, "html": slot.to_html()})

    def remove(self, identity: str) -> None:
        super().remove(identity)
        self.queue.put_nowait({"op": "remove", "id": identity})

    def mark_visible(self, identity: str) -> None:
        super().mark_visible(identity)
        self.queue.put_nowait({"op": "visible", "id": identity})

    def close(self) -> None:
        self.queue.put_nowait(None)
