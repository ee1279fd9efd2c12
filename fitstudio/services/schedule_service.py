import logging
from datetime import datetime, timedelta

from fitstudio.errors import CapacityBelowBookings, SessionHasBookings, SessionNotFound
from fitstudio.extensions import db
from fitstudio.models import ClassSession
from fitstudio.models.class_session import SESSION_STATUSES
from fitstudio.services.booking_service import BookingService

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('name', 'instructor_name', 'room_name', 'price', 'notes')


def parse_datetime(value):
    """Accept datetimes or ISO 8601 strings."""
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


class ScheduleService:

    @staticmethod
    def _validate_times(starts_at, ends_at):
        if starts_at >= ends_at:
            raise ValueError("Class must end after it starts.")

    @staticmethod
    def _validate_capacity(max_capacity):
        if max_capacity is None or int(max_capacity) <= 0:
            raise ValueError("max_capacity must be a positive integer.")
        return int(max_capacity)

    @staticmethod
    def get_session(session_id):
        session = db.session.get(ClassSession, session_id)
        if session is None:
            raise SessionNotFound()
        return session

    @staticmethod
    def list_sessions(date_str=None, status=None):
        """Sessions ordered by start time, optionally for a single day (YYYY-MM-DD)."""
        query = ClassSession.query
        if status:
            if status not in SESSION_STATUSES:
                raise ValueError(f"Invalid status filter: {status}")
            query = query.filter(ClassSession.status == status)
        if date_str:
            day_start = datetime.strptime(date_str, "%Y-%m-%d")
            query = query.filter(
                ClassSession.starts_at >= day_start,
                ClassSession.starts_at < day_start + timedelta(days=1)
            )
        return query.order_by(ClassSession.starts_at).all()

    @staticmethod
    def create_session(data):
        if not data.get('name'):
            raise ValueError("name is required.")
        starts_at = parse_datetime(data['starts_at'])
        ends_at = parse_datetime(data['ends_at'])
        ScheduleService._validate_times(starts_at, ends_at)

        session = ClassSession(
            name=data['name'],
            instructor_name=data.get('instructor_name'),
            room_name=data.get('room_name'),
            starts_at=starts_at,
            ends_at=ends_at,
            price=data.get('price', 0),
            max_capacity=ScheduleService._validate_capacity(data.get('max_capacity')),
            notes=data.get('notes')
        )
        db.session.add(session)
        db.session.commit()
        logger.info("Class created: %s (%s)", session.id, session.name)
        return session

    @staticmethod
    def update_session(session_id, data):
        session = ScheduleService.get_session(session_id)

        starts_at = parse_datetime(data['starts_at']) if 'starts_at' in data else session.starts_at
        ends_at = parse_datetime(data['ends_at']) if 'ends_at' in data else session.ends_at
        ScheduleService._validate_times(starts_at, ends_at)

        max_capacity = session.max_capacity
        if 'max_capacity' in data:
            max_capacity = ScheduleService._validate_capacity(data['max_capacity'])
            if max_capacity < BookingService.count_active_bookings(session.id):
                raise CapacityBelowBookings()

        for field in EDITABLE_FIELDS:
            if field in data:
                setattr(session, field, data[field])
        session.starts_at = starts_at
        session.ends_at = ends_at
        session.max_capacity = max_capacity
        db.session.commit()
        return session

    @staticmethod
    def set_session_status(session_id, status):
        if status not in SESSION_STATUSES:
            raise ValueError(f"Invalid status: {status}")
        session = ScheduleService.get_session(session_id)
        session.status = status
        db.session.commit()
        logger.info("Class %s marked %s", session_id, status)
        return session

    @staticmethod
    def delete_session(session_id):
        session = ScheduleService.get_session(session_id)
        if BookingService.count_active_bookings(session_id) > 0:
            raise SessionHasBookings()

        db.session.delete(session)
        db.session.commit()
        logger.info("Class deleted: %s", session_id)
