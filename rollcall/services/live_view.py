"""Ordered live view: keeps rendered attendance rows in timestamp order.

The view consumes ordered change batches (``Inserted`` / ``Modified`` /
``Removed``) and turns each change into at most one positional mutation of a
presentation sink. The sink's first slot is a fixed header row; every
position the view talks about is counted after it.

Rows are placed once, when first seen, before the first row whose sort key
is strictly greater (so equal keys keep arrival order). ``Modified`` only
refreshes a row's fields and never moves it, even when its key changed.
A row that arrives without a store-assigned timestamp is placed using the
local clock; when the real timestamp later comes in as a ``Modified`` the
row is not re-sorted.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Iterable, Optional, Protocol, Union

from rollcall.models.attendance import AttendanceRow

logger = logging.getLogger(__name__)

# Delay before a freshly inserted row switches from "pending" to "visible"
VISIBLE_DELAY_SECONDS = 0.001


class MalformedChange(ValueError):
    """A change event that cannot be applied (no identity or no record)."""


@dataclass(frozen=True)
class Inserted:
    identity: Optional[str]
    record: Optional[AttendanceRow]


@dataclass(frozen=True)
class Modified:
    identity: Optional[str]
    record: Optional[AttendanceRow]


@dataclass(frozen=True)
class Removed:
    identity: Optional[str]


ChangeEvent = Union[Inserted, Modified, Removed]


class PresentationSink(Protocol):
    def insert_at(self, identity: str, record: AttendanceRow, before: Optional[str]) -> None:
        """Insert a slot before ``before`` (an identity), or at the end when ``None``."""

    def update_in_place(self, identity: str, record: AttendanceRow) -> None: ...

    def remove(self, identity: str) -> None: ...

    def mark_visible(self, identity: str) -> None: ...


class Cancellable(Protocol):
    def cancel(self) -> Any: ...


Scheduler = Callable[[float, Callable[[], None]], Cancellable]


def _call_later(delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
    return asyncio.get_running_loop().call_later(delay, callback)


def _now_millis() -> float:
    return time.time() * 1000


class LiveView:
    """Applies change events to a sink, preserving ascending sort-key order.

    Not thread-safe and not re-entrant: one consumer calls :meth:`apply` /
    :meth:`apply_batch` at a time, and the sink must not call back into the
    view.
    """

    def __init__(
        self,
        sink: PresentationSink,
        clock: Callable[[], float] = _now_millis,
        schedule: Scheduler = _call_later,
    ):
        self.sink = sink
        self._clock = clock
        self._schedule = schedule
        self._order: list[str] = []
        self._keys: dict[str, float] = {}
        self._reveals: dict[str, Cancellable] = {}

    def __contains__(self, identity: object) -> bool:
        return identity in self._keys

    def __len__(self) -> int:
        return len(self._order)

    @property
    def identities(self) -> list[str]:
        """Rendered identities, top to bottom, header excluded."""
        return list(self._order)

    def sort_key(self, identity: str) -> float:
        return self._keys[identity]

    def apply(self, event: ChangeEvent) -> None:
        identity = event.identity
        if not identity:
            raise MalformedChange(f"{type(event).__name__} event has no identity")

        if isinstance(event, Removed):
            self._remove(identity)
            return

        if event.record is None:
            raise MalformedChange(f"{type(event).__name__} event for {identity!r} has no record")

        if identity in self._keys:
            # Inserted for a row we already show: the snapshot and the
            # stream both delivered it. Same handling as Modified.
            self._update(identity, event.record)
        else:
            self._insert(identity, event.record)

    def apply_batch(self, events: Iterable[ChangeEvent]) -> int:
        """Apply events in order; skip malformed ones. Returns how many were applied."""
        applied = 0
        for event in events:
            try:
                self.apply(event)
            except MalformedChange as e:
                logger.warning("Skipping malformed change: %s", e)
                continue
            applied += 1
        return applied

    def close(self) -> None:
        """Tear the view down: cancel pending reveals and forget all rows."""
        for handle in self._reveals.values():
            handle.cancel()
        self._reveals.clear()
        self._order.clear()
        self._keys.clear()

    def _insert(self, identity: str, record: AttendanceRow) -> None:
        sort_key = record.sort_key
        if sort_key is None:
            sort_key = self._clock()
            record = record.model_copy(update={"sort_key": sort_key})

        position = len(self._order)
        before = None
        for index, existing in enumerate(self._order):
            if self._keys[existing] > sort_key:
                position = index
                before = existing
                break

        self._order.insert(position, identity)
        self._keys[identity] = sort_key
        self.sink.insert_at(identity, record, before)
        self._reveals[identity] = self._schedule(VISIBLE_DELAY_SECONDS, partial(self._reveal, identity))

    def _update(self, identity: str, record: AttendanceRow) -> None:
        if record.sort_key is None:
            record = record.model_copy(update={"sort_key": self._keys[identity]})
        self.sink.update_in_place(identity, record)

    def _remove(self, identity: str) -> None:
        if identity not in self._keys:
            return
        handle = self._reveals.pop(identity, None)
        if handle is not None:
            handle.cancel()
        self._order.remove(identity)
        del self._keys[identity]
        self.sink.remove(identity)

    def _reveal(self, identity: str) -> None:
        self._reveals.pop(identity, None)
        if identity in self._keys:
            self.sink.mark_visible(identity)
