"""Expansion of an availability window into fixed-length slots.

Everything in this module is pure: no I/O, no clock, no database.
"""

from datetime import date, datetime, time, timedelta, tzinfo
from typing import NamedTuple

DEFAULT_SLOT_DURATION_MINUTES = 30


class CandidateSlot(NamedTuple):
    owner_id: int
    date: date
    start_time: time
    end_time: time


def normalize_slot_duration(slot_duration: int | None, default: int = DEFAULT_SLOT_DURATION_MINUTES) -> int:
    if slot_duration is None or slot_duration <= 0:
        return default
    return slot_duration


def generate_slots(
    owner_id: int,
    slot_date: date,
    window_start: time,
    window_end: time,
    slot_duration: int | None = None,
) -> list[CandidateSlot]:
    """Partition ``window_start``..``window_end`` into contiguous slots of ``slot_duration`` minutes.

    The first slot starts at the window start and each slot starts where the previous
    one ended. A trailing remainder shorter than one slot is dropped. A window too
    small for a single slot, or an inverted window, yields an empty list.
    """
    step = timedelta(minutes=normalize_slot_duration(slot_duration))
    current = datetime.combine(slot_date, window_start)
    limit = datetime.combine(slot_date, window_end)

    slots: list[CandidateSlot] = []
    while current < limit:
        slot_end = current + step
        if slot_end > limit:
            break
        slots.append(CandidateSlot(owner_id, slot_date, current.time(), slot_end.time()))
        current = slot_end

    return slots


def slot_bounds(slot_date: date, start: time, end: time, zone: tzinfo) -> tuple[datetime, datetime]:
    """Absolute meeting timestamps for a slot's wall-clock interval in ``zone``."""
    return (
        datetime.combine(slot_date, start, tzinfo=zone),
        datetime.combine(slot_date, end, tzinfo=zone),
    )
