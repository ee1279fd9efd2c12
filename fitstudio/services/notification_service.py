import logging

from fitstudio.extensions import socketio

logger = logging.getLogger(__name__)


def user_room(user_id):
    return f"user_{user_id}"


class NotificationService:
    """
    Best-effort Socket.IO events for booking changes.

    Called after the database commit. Emission failures are logged and
    swallowed so they can never undo a booking state change.
    """

    @staticmethod
    def _emit(event, payload, room=None):
        try:
            if room is None:
                socketio.emit(event, payload)
            else:
                socketio.emit(event, payload, to=room)
        except Exception:
            logger.exception("Failed to emit %s event", event)
            return False
        return True

    @staticmethod
    def booking_created(booking):
        return NotificationService._emit('booking_created', booking.to_dict())

    @staticmethod
    def booking_cancelled(booking):
        return NotificationService._emit('booking_cancelled', booking.to_dict())

    @staticmethod
    def waitlist_joined(entry):
        return NotificationService._emit('waitlist_joined', entry.to_dict())

    @staticmethod
    def waitlist_promotion(entry):
        return NotificationService._emit('waitlist_promotion', entry.to_dict(),
                                         room=user_room(entry.user_id))
