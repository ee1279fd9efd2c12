import pytest
from datetime import datetime, timedelta
from fitstudio import db
from fitstudio.errors import CapacityBelowBookings, SessionHasBookings, SessionNotFound
from fitstudio.models import Booking, ClassSession, WaitlistEntry
from fitstudio.services.booking_service import BookingService
from fitstudio.services.schedule_service import ScheduleService

def _payload(**overrides):
    start = datetime(2030, 1, 15, 18, 0)
    data = {
        'name': 'HIIT',
        'instructor_name': 'Sam',
        'room_name': 'Studio B',
        'starts_at': start.isoformat(),
        'ends_at': (start + timedelta(minutes=45)).isoformat(),
        'max_capacity': 12,
        'price': 15
    }
    data.update(overrides)
    return data

def test_create_session(app):
    session = ScheduleService.create_session(_payload())
    assert session.id is not None
    assert session.status == 'scheduled'
    assert session.current_bookings == 0
    assert session.available_spots == 12

@pytest.mark.parametrize('overrides', [
    {'max_capacity': 0},
    {'max_capacity': None},
    {'ends_at': datetime(2030, 1, 15, 17, 0).isoformat()},
    {'name': ''},
])
def test_create_session_validation(app, overrides):
    with pytest.raises(ValueError):
        ScheduleService.create_session(_payload(**overrides))
    assert ClassSession.query.count() == 0

def test_list_sessions_by_day_and_status(app):
    ScheduleService.create_session(_payload())
    later = datetime(2030, 1, 16, 9, 0)
    other = ScheduleService.create_session(_payload(
        name='Yoga', starts_at=later.isoformat(), ends_at=(later + timedelta(hours=1)).isoformat()))
    ScheduleService.set_session_status(other.id, 'cancelled')

    assert [s.name for s in ScheduleService.list_sessions(date_str='2030-01-15')] == ['HIIT']
    assert [s.name for s in ScheduleService.list_sessions(status='cancelled')] == ['Yoga']
    assert len(ScheduleService.list_sessions()) == 2
    with pytest.raises(ValueError):
        ScheduleService.list_sessions(status='archived')

def test_capacity_cannot_drop_below_bookings(app, make_user):
    session = ScheduleService.create_session(_payload(max_capacity=3))
    for _ in range(2):
        BookingService.create_booking(make_user().id, session.id)

    with pytest.raises(CapacityBelowBookings):
        ScheduleService.update_session(session.id, {'max_capacity': 1})

    updated = ScheduleService.update_session(session.id, {'max_capacity': 2, 'room_name': 'Studio C'})
    assert updated.max_capacity == 2
    assert updated.room_name == 'Studio C'

def test_update_rejects_inverted_times(app):
    session = ScheduleService.create_session(_payload())
    with pytest.raises(ValueError):
        ScheduleService.update_session(session.id, {'ends_at': datetime(2030, 1, 15, 17, 0).isoformat()})
    db.session.expire_all()
    assert db.session.get(ClassSession, session.id).ends_at == datetime(2030, 1, 15, 18, 45)

def test_cancelled_class_rejects_bookings(app, make_user):
    from fitstudio.errors import SessionNotAvailable
    session = ScheduleService.create_session(_payload())
    ScheduleService.set_session_status(session.id, 'cancelled')

    with pytest.raises(SessionNotAvailable):
        BookingService.create_booking(make_user().id, session.id)

def test_delete_blocked_while_active_bookings(app, make_user):
    session = ScheduleService.create_session(_payload(max_capacity=1))
    member = make_user()
    booking = BookingService.create_booking(member.id, session.id).booking
    BookingService.create_booking(make_user().id, session.id)

    with pytest.raises(SessionHasBookings):
        ScheduleService.delete_session(session.id)

    BookingService.cancel_booking(booking.id, member.to_actor())
    ScheduleService.delete_session(session.id)

    assert db.session.get(ClassSession, session.id) is None
    # History goes with the class
    assert Booking.query.count() == 0
    assert WaitlistEntry.query.count() == 0

def test_missing_session(app):
    with pytest.raises(SessionNotFound):
        ScheduleService.get_session(1)
    with pytest.raises(SessionNotFound):
        ScheduleService.delete_session(1)
