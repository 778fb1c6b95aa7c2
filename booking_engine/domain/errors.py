"""Error taxonomy shared by the availability, pricing and booking layers."""

from __future__ import annotations


class BookingError(Exception):
    """Base class for every failure raised by the booking core."""

    code = "booking_error"


class InvalidDatesError(BookingError):
    """Stay dates violate the room's booking window or stay-length rules."""

    code = "invalid_dates"


class InvalidRangeError(BookingError):
    """A date range is empty or inverted."""

    code = "invalid_range"


class RoomUnavailableError(BookingError):
    """Room status, capacity or existing holds rule out the request."""

    code = "room_unavailable"


class ConflictError(BookingError):
    """An interval insert lost against an overlapping hold."""

    code = "conflict"


class InvalidTransitionError(BookingError):
    """The booking status does not allow the requested action."""

    code = "invalid_transition"


class AlreadyTerminalError(BookingError):
    """The booking already reached a status that cannot be cancelled."""

    code = "already_terminal"


class CancellationWindowClosedError(BookingError):
    """Cancellation was attempted after the hotel's deadline."""

    code = "cancellation_window_closed"


class InternalInconsistencyError(BookingError):
    """Stored holds disagree with booking state. Indicates a bug."""

    code = "internal_inconsistency"


class BusyError(BookingError):
    """A room lock could not be acquired in time. Safe to retry."""

    code = "busy"


class NotFoundError(BookingError):
    """Room, booking or interval does not exist."""

    code = "not_found"
