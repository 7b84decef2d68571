"""Failures raised by the scheduling core.

Routes translate these into HTTP responses; nothing here knows about HTTP.
"""


class SchedulingError(Exception):
    """Base class for recoverable scheduling failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AvailabilityValidationError(SchedulingError):
    """An availability window is malformed and no slots were generated."""


class BookingValidationError(SchedulingError):
    """Booking details were rejected before the slot was touched."""


class SlotNotFoundError(SchedulingError):
    def __init__(self, slot_id: int):
        super().__init__('Slot not found.')
        self.slot_id = slot_id


class SlotUnavailableError(SchedulingError):
    """The slot is already taken. Callers must pick another slot, never retry this one."""

    def __init__(self, slot_id: int):
        super().__init__('This slot was just booked by someone else. Please pick another slot.')
        self.slot_id = slot_id
