"""
Typed errors raised by the booking and schedule services.

Every error subclasses ValueError so callers that already treat bad input
as a ValueError keep working. The API layer maps `code` and `status_code`
to the JSON error payload.
"""


class BookingError(ValueError):
    code = 'BOOKING_ERROR'
    status_code = 400
    message = 'Booking request rejected.'

    def __init__(self, message=None):
        super().__init__(message or self.message)

    def to_dict(self):
        return {'error': str(self), 'code': self.code}


class SessionNotFound(BookingError):
    code = 'CLASS_NOT_FOUND'
    status_code = 404
    message = 'Class not found.'


class SessionNotAvailable(BookingError):
    code = 'CLASS_NOT_AVAILABLE'
    message = 'Class is not available for booking.'


class SessionHasBookings(BookingError):
    code = 'CLASS_HAS_BOOKINGS'
    message = 'Cannot delete class with existing bookings.'


class CapacityBelowBookings(BookingError):
    code = 'CAPACITY_BELOW_BOOKINGS'
    message = 'Capacity cannot be lower than the number of active bookings.'


class AlreadyBooked(BookingError):
    code = 'ALREADY_BOOKED'
    message = 'Already booked for this class.'


class AlreadyWaitlisted(BookingError):
    code = 'ALREADY_WAITLISTED'
    message = 'Already on the waitlist for this class.'


class AlreadyCancelled(BookingError):
    code = 'ALREADY_CANCELLED'
    message = 'Already cancelled.'


class AlreadyProcessed(BookingError):
    code = 'ALREADY_PROCESSED'
    status_code = 409
    message = 'Already processed.'


class Unauthorized(BookingError):
    code = 'UNAUTHORIZED'
    status_code = 403
    message = 'Unauthorized.'


class NotFound(BookingError):
    code = 'NOT_FOUND'
    status_code = 404
    message = 'Not found.'
