import pytest
from datetime import datetime, timedelta
from fitstudio import db
from fitstudio.errors import AlreadyCancelled, AlreadyProcessed, NotFound, Unauthorized
from fitstudio.models import ClassSession, WaitlistEntry
from fitstudio.services.booking_service import BookingService

@pytest.fixture
def full_class(make_user, make_session):
    """A one-seat class with its seat taken and four users queued."""
    session = make_session(max_capacity=1)
    owner = make_user()
    booking = BookingService.create_booking(owner.id, session.id).booking
    queued = [make_user() for _ in range(4)]
    entries = [BookingService.create_booking(u.id, session.id).entry for u in queued]
    return session, owner, booking, queued, entries

def _positions(session_id):
    db.session.expire_all()
    return [
        (e.user_id, e.position)
        for e in WaitlistEntry.query.filter(
            WaitlistEntry.session_id == session_id,
            WaitlistEntry.status.in_(['waiting', 'notified'])
        ).order_by(WaitlistEntry.position)
    ]

def test_cancel_entry_closes_gap(app, full_class):
    session, _, _, queued, entries = full_class

    BookingService.cancel_waitlist_entry(entries[1].id, queued[1].to_actor())

    assert _positions(session.id) == [
        (queued[0].id, 1), (queued[2].id, 2), (queued[3].id, 3)
    ]
    assert db.session.get(WaitlistEntry, entries[1].id).status == 'cancelled'

def test_cancel_last_entry_leaves_others_untouched(app, full_class):
    session, _, _, queued, entries = full_class

    BookingService.cancel_waitlist_entry(entries[3].id, queued[3].to_actor())

    assert [p for _, p in _positions(session.id)] == [1, 2, 3]

def test_cancel_entry_shifts_notified_entries_too(app, full_class, make_user):
    session, _, _, queued, entries = full_class
    BookingService.notify_waitlist_entry(entries[2].id, make_user(role='admin').to_actor())

    BookingService.cancel_waitlist_entry(entries[0].id, queued[0].to_actor())

    notified = db.session.get(WaitlistEntry, entries[2].id)
    assert notified.status == 'notified'
    assert notified.position == 2
    assert [p for _, p in _positions(session.id)] == [1, 2, 3]

def test_new_entry_after_cancellation_appends_densely(app, full_class, make_user):
    session, _, _, queued, entries = full_class
    BookingService.cancel_waitlist_entry(entries[0].id, queued[0].to_actor())

    latecomer = make_user()
    entry = BookingService.create_booking(latecomer.id, session.id).entry

    assert entry.position == 4
    assert [p for _, p in _positions(session.id)] == [1, 2, 3, 4]

def test_cancel_entry_twice(app, full_class):
    _, _, _, queued, entries = full_class
    BookingService.cancel_waitlist_entry(entries[0].id, queued[0].to_actor())

    with pytest.raises(AlreadyCancelled):
        BookingService.cancel_waitlist_entry(entries[0].id, queued[0].to_actor())

def test_cancel_entry_requires_owner_or_admin(app, full_class, make_user):
    session, _, _, queued, entries = full_class

    with pytest.raises(Unauthorized):
        BookingService.cancel_waitlist_entry(entries[0].id, queued[1].to_actor())
    with pytest.raises(Unauthorized):
        BookingService.cancel_waitlist_entry(entries[0].id, make_user(role='coach').to_actor())

    BookingService.cancel_waitlist_entry(entries[0].id, make_user(role='admin').to_actor())
    assert len(_positions(session.id)) == 3

def test_cancel_missing_entry(app, make_user):
    with pytest.raises(NotFound):
        BookingService.cancel_waitlist_entry(404, make_user().to_actor())

def test_notify_entry(app, full_class, make_user):
    _, _, _, _, entries = full_class
    coach = make_user(role='coach')

    before = datetime.utcnow()
    entry = BookingService.notify_waitlist_entry(entries[1].id, coach.to_actor())

    assert entry.status == 'notified'
    assert entry.notified_at >= before.replace(microsecond=0)
    assert abs(entry.response_deadline - (before + timedelta(hours=2))) < timedelta(minutes=1)

    with pytest.raises(AlreadyProcessed):
        BookingService.notify_waitlist_entry(entries[1].id, coach.to_actor())

def test_notify_requires_staff(app, full_class):
    _, _, _, queued, entries = full_class
    with pytest.raises(Unauthorized):
        BookingService.notify_waitlist_entry(entries[0].id, queued[0].to_actor())
    assert db.session.get(WaitlistEntry, entries[0].id).status == 'waiting'

def test_response_window_is_configurable(app, full_class, make_user):
    _, _, _, _, entries = full_class
    app.config['WAITLIST_RESPONSE_HOURS'] = 6

    before = datetime.utcnow()
    entry = BookingService.notify_waitlist_entry(entries[0].id, make_user(role='admin').to_actor())

    assert abs(entry.response_deadline - (before + timedelta(hours=6))) < timedelta(minutes=1)

def test_expire_overdue_entries_promotes_next(app, full_class):
    session, owner, booking, queued, entries = full_class
    BookingService.cancel_booking(booking.id, owner.to_actor())
    assert db.session.get(WaitlistEntry, entries[0].id).status == 'notified'

    expired = BookingService.expire_waitlist_entries(now=datetime.utcnow() + timedelta(hours=3))

    assert [e.id for e in expired] == [entries[0].id]
    db.session.expire_all()
    assert db.session.get(WaitlistEntry, entries[0].id).status == 'expired'
    assert db.session.get(WaitlistEntry, entries[1].id).status == 'notified'
    assert _positions(session.id) == [
        (queued[1].id, 1), (queued[2].id, 2), (queued[3].id, 3)
    ]

def test_expire_leaves_fresh_entries(app, full_class):
    _, owner, booking, _, entries = full_class
    BookingService.cancel_booking(booking.id, owner.to_actor())

    assert BookingService.expire_waitlist_entries() == []
    assert db.session.get(WaitlistEntry, entries[0].id).status == 'notified'

def test_expire_does_not_promote_into_full_class(app, full_class, make_user):
    session, _, _, _, entries = full_class
    BookingService.notify_waitlist_entry(entries[0].id, make_user(role='admin').to_actor())

    BookingService.expire_waitlist_entries(now=datetime.utcnow() + timedelta(hours=3))

    db.session.expire_all()
    assert db.session.get(WaitlistEntry, entries[0].id).status == 'expired'
    assert db.session.get(WaitlistEntry, entries[1].id).status == 'waiting'
    assert db.session.get(ClassSession, session.id).current_bookings == 1

def test_user_waitlist_view(app, full_class, make_user):
    _, _, _, queued, entries = full_class

    mine = BookingService.get_user_waitlist(queued[0].id, queued[0].to_actor())
    assert [e.id for e in mine] == [entries[0].id]

    with pytest.raises(Unauthorized):
        BookingService.get_user_waitlist(queued[0].id, queued[1].to_actor())

    BookingService.cancel_waitlist_entry(entries[0].id, queued[0].to_actor())
    assert BookingService.get_user_waitlist(queued[0].id, queued[0].to_actor()) == []

def test_list_waitlist_for_staff(app, full_class, make_user):
    session, _, _, queued, _ = full_class
    coach = make_user(role='coach')

    page = BookingService.list_waitlist(coach.to_actor(), session_id=session.id)
    assert [e.position for e in page.items] == [1, 2, 3, 4]

    with pytest.raises(Unauthorized):
        BookingService.list_waitlist(queued[0].to_actor())
