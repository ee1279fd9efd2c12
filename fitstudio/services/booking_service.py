import logging
from collections import namedtuple
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError

from fitstudio.errors import (
    AlreadyBooked,
    AlreadyCancelled,
    AlreadyProcessed,
    AlreadyWaitlisted,
    BookingError,
    NotFound,
    SessionNotAvailable,
    SessionNotFound,
    Unauthorized,
)
from fitstudio.extensions import db
from fitstudio.models import Booking, ClassSession, User, WaitlistEntry
from fitstudio.models.booking import ACTIVE_BOOKING_STATUSES, BOOKING_STATUSES
from fitstudio.models.waitlist import OPEN_WAITLIST_STATUSES, WAITLIST_STATUSES
from fitstudio.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

# outcome is 'confirmed' (booking set) or 'waitlisted' (entry set)
BookingResult = namedtuple('BookingResult', ['outcome', 'booking', 'entry'])


class BookingService:

    # --- Capacity ledger -------------------------------------------------

    @staticmethod
    def _lock_session(session_id):
        """
        Lock the session row until the transaction ends, then load it.

        The self-assigning UPDATE takes the row lock on PostgreSQL and the
        database write lock on SQLite, where FOR UPDATE is ignored. Every
        count and write that follows is serialized per session.
        """
        db.session.execute(
            update(ClassSession)
            .where(ClassSession.id == session_id)
            .values(current_bookings=ClassSession.current_bookings)
            .execution_options(synchronize_session=False)
        )
        return ClassSession.query.filter_by(id=session_id) \
            .with_for_update().populate_existing().first()

    @staticmethod
    def _sync_counter(session) -> int:
        """Store the recounted number of active bookings on the locked session."""
        session.current_bookings = BookingService.count_active_bookings(session.id)
        return session.current_bookings

    @staticmethod
    def _find_active_booking(user_id, session_id):
        return Booking.query.filter(
            Booking.user_id == user_id,
            Booking.session_id == session_id,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES)
        ).first()

    @staticmethod
    def count_active_bookings(session_id) -> int:
        return db.session.query(func.count(Booking.id)).filter(
            Booking.session_id == session_id,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES)
        ).scalar()

    # --- Waitlist queue --------------------------------------------------

    @staticmethod
    def _response_window():
        return timedelta(hours=current_app.config.get('WAITLIST_RESPONSE_HOURS', 2))

    @staticmethod
    def _open_waitlist_count(session_id) -> int:
        return db.session.query(func.count(WaitlistEntry.id)).filter(
            WaitlistEntry.session_id == session_id,
            WaitlistEntry.status.in_(OPEN_WAITLIST_STATUSES)
        ).scalar()

    @staticmethod
    def _close_gap(session_id, position):
        """Shift every open entry behind `position` one place forward."""
        db.session.execute(
            update(WaitlistEntry)
            .where(
                WaitlistEntry.session_id == session_id,
                WaitlistEntry.position > position,
                WaitlistEntry.status.in_(OPEN_WAITLIST_STATUSES),
            )
            .values(position=WaitlistEntry.position - 1)
            .execution_options(synchronize_session='fetch')
        )

    @staticmethod
    def _mark_notified(entry, now):
        entry.status = 'notified'
        entry.notified_at = now
        entry.response_deadline = now + BookingService._response_window()

    @staticmethod
    def _promote_next(session_id, now):
        """Give the head of the queue a time-boxed chance to book. No booking is created."""
        entry = WaitlistEntry.query.filter_by(
            session_id=session_id,
            status='waiting'
        ).order_by(WaitlistEntry.position.asc()).first()
        if entry is not None:
            BookingService._mark_notified(entry, now)
        return entry

    # --- Orchestrator ----------------------------------------------------

    @staticmethod
    def create_booking(user_id, session_id, payment_method=None, special_requests=None):
        """
        Main entry point to book a class.

        Confirms the booking while seats remain, otherwise queues the user on
        the waitlist. Rejections raise a BookingError subclass.
        """
        try:
            result = BookingService._create_booking(user_id, session_id, payment_method, special_requests)
            db.session.commit()
        except BookingError:
            db.session.rollback()
            raise

        if result.outcome == 'confirmed':
            logger.info("New booking created: %s for user %s", result.booking.id, user_id)
            NotificationService.booking_created(result.booking)
        else:
            logger.info("User %s waitlisted for class %s at position %s",
                        user_id, session_id, result.entry.position)
            NotificationService.waitlist_joined(result.entry)
        return result

    @staticmethod
    def _create_booking(user_id, session_id, payment_method, special_requests):
        if db.session.get(User, user_id) is None:
            raise NotFound("User not found.")

        session = BookingService._lock_session(session_id)
        if session is None:
            raise SessionNotFound()
        if session.status != 'scheduled':
            raise SessionNotAvailable()

        if BookingService._find_active_booking(user_id, session_id):
            raise AlreadyBooked()

        open_entry = WaitlistEntry.query.filter(
            WaitlistEntry.user_id == user_id,
            WaitlistEntry.session_id == session_id,
            WaitlistEntry.status.in_(OPEN_WAITLIST_STATUSES)
        ).first()
        now = datetime.utcnow()

        active = BookingService.count_active_bookings(session_id)
        if active < session.max_capacity:
            booking = Booking(
                user_id=user_id,
                session_id=session_id,
                status='confirmed',
                payment_status='pending',
                payment_method=payment_method,
                amount_paid=session.price or 0,
                special_requests=special_requests,
                booked_at=now
            )
            db.session.add(booking)
            try:
                db.session.flush()
            except IntegrityError:
                raise AlreadyBooked()
            session.current_bookings = active + 1

            # A queued user who gets a seat leaves the queue
            if open_entry is not None:
                open_entry.status = 'booked'
                BookingService._close_gap(session_id, open_entry.position)

            return BookingResult('confirmed', booking, None)

        if open_entry is not None:
            raise AlreadyWaitlisted()

        entry = WaitlistEntry(
            user_id=user_id,
            session_id=session_id,
            position=BookingService._open_waitlist_count(session_id) + 1,
            status='waiting',
            joined_at=now
        )
        db.session.add(entry)
        try:
            db.session.flush()
        except IntegrityError:
            raise AlreadyWaitlisted()
        return BookingResult('waitlisted', None, entry)

    @staticmethod
    def cancel_booking(booking_id, actor, reason=None):
        """Cancel a booking and offer the freed seat to the head of the waitlist."""
        booking = db.session.get(Booking, booking_id)
        if booking is None:
            raise NotFound("Booking not found.")
        if booking.user_id != actor.user_id and not actor.is_admin:
            raise Unauthorized()
        if booking.status == 'cancelled':
            raise AlreadyCancelled("Booking already cancelled.")
        if not booking.is_active:
            raise AlreadyProcessed(f"Booking is already {booking.status}.")

        now = datetime.utcnow()
        try:
            session = BookingService._lock_session(booking.session_id)
            # Conditional on the status so two concurrent cancels release one seat
            result = db.session.execute(
                update(Booking)
                .where(Booking.id == booking_id, Booking.status.in_(ACTIVE_BOOKING_STATUSES))
                .values(status='cancelled', cancellation_reason=reason, cancelled_at=now)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise AlreadyCancelled("Booking already cancelled.")

            BookingService._sync_counter(session)
            promoted = BookingService._promote_next(booking.session_id, now)
            db.session.commit()
        except BookingError:
            db.session.rollback()
            raise

        logger.info("Booking cancelled: %s by user %s", booking_id, actor.user_id)
        NotificationService.booking_cancelled(booking)
        if promoted is not None:
            logger.info("Waitlist entry %s promoted for class %s", promoted.id, promoted.session_id)
            NotificationService.waitlist_promotion(promoted)
        return booking

    @staticmethod
    def cancel_waitlist_entry(entry_id, actor):
        entry = db.session.get(WaitlistEntry, entry_id)
        if entry is None:
            raise NotFound("Waitlist entry not found.")
        if entry.user_id != actor.user_id and not actor.is_admin:
            raise Unauthorized()
        if entry.status == 'cancelled':
            raise AlreadyCancelled("Waitlist entry already cancelled.")
        if not entry.is_open:
            raise AlreadyProcessed(f"Waitlist entry is already {entry.status}.")

        entry.status = 'cancelled'
        BookingService._close_gap(entry.session_id, entry.position)
        db.session.commit()

        logger.info("Waitlist entry cancelled: %s by user %s", entry_id, actor.user_id)
        return entry

    @staticmethod
    def notify_waitlist_entry(entry_id, actor):
        """Manually offer a seat to a waiting user (coach or admin)."""
        if not actor.can('manage_waitlist'):
            raise Unauthorized("Coach or admin access required.")

        entry = db.session.get(WaitlistEntry, entry_id)
        if entry is None:
            raise NotFound("Waitlist entry not found.")
        if entry.status != 'waiting':
            raise AlreadyProcessed("Waitlist entry already processed.")

        BookingService._mark_notified(entry, datetime.utcnow())
        db.session.commit()

        logger.info("Waitlist user notified: %s by user %s", entry_id, actor.user_id)
        NotificationService.waitlist_promotion(entry)
        return entry

    @staticmethod
    def expire_waitlist_entries(now=None):
        """
        Expire notified entries whose response deadline has passed.

        Each expired entry leaves the queue, and while its class still has a
        free seat the next waiting user is notified in its place. Meant to be
        run from cron (`flask expire-waitlist`) or by an admin.
        """
        now = now or datetime.utcnow()
        overdue = WaitlistEntry.query.filter(
            WaitlistEntry.status == 'notified',
            WaitlistEntry.response_deadline < now
        ).order_by(WaitlistEntry.session_id, WaitlistEntry.position).all()

        promoted = []
        for entry in overdue:
            entry.status = 'expired'
            BookingService._close_gap(entry.session_id, entry.position)

            session = BookingService._lock_session(entry.session_id)
            free = session.max_capacity - BookingService._sync_counter(session)
            if session.status == 'scheduled' and free > 0:
                next_entry = BookingService._promote_next(entry.session_id, now)
                if next_entry is not None:
                    promoted.append(next_entry)
        db.session.commit()

        if overdue:
            logger.info("Expired %d waitlist entries, promoted %d", len(overdue), len(promoted))
        for entry in promoted:
            NotificationService.waitlist_promotion(entry)
        return overdue

    @staticmethod
    def mark_attendance(booking_id, actor, attended=True):
        if not actor.can('mark_attendance'):
            raise Unauthorized("Coach or admin access required.")

        booking = db.session.get(Booking, booking_id)
        if booking is None:
            raise NotFound("Booking not found.")
        if not booking.is_active:
            raise AlreadyProcessed(f"Booking is already {booking.status}.")

        now = datetime.utcnow()
        if booking.session.starts_at > now:
            raise SessionNotAvailable("Attendance can only be recorded once the class has started.")

        session = BookingService._lock_session(booking.session_id)
        db.session.refresh(booking)
        if not booking.is_active:
            status = booking.status
            db.session.rollback()
            raise AlreadyProcessed(f"Booking is already {status}.")

        booking.status = 'completed' if attended else 'no_show'
        if attended:
            booking.checked_in_at = now
        db.session.flush()
        BookingService._sync_counter(session)
        db.session.commit()

        logger.info("Booking %s marked %s by user %s", booking_id, booking.status, actor.user_id)
        return booking

    @staticmethod
    def reconcile_counters():
        """Rewrite every stored booking counter from a recount. Returns {session_id: (old, new)}."""
        changed = {}
        for session in ClassSession.query.with_for_update().all():
            actual = BookingService.count_active_bookings(session.id)
            if session.current_bookings != actual:
                changed[session.id] = (session.current_bookings, actual)
                session.current_bookings = actual
        db.session.commit()

        for session_id, (old, new) in changed.items():
            logger.warning("Booking counter for class %s corrected from %s to %s", session_id, old, new)
        return changed

    # --- Queries ---------------------------------------------------------

    @staticmethod
    def get_booking(booking_id, actor):
        booking = db.session.get(Booking, booking_id)
        if booking is None:
            raise NotFound("Booking not found.")
        if booking.user_id != actor.user_id and not actor.can('view_all'):
            raise Unauthorized()
        return booking

    @staticmethod
    def list_bookings(actor, status=None, user_id=None, page=1, per_page=20):
        """Own bookings for clients; everyone's (optionally filtered by user) for staff."""
        if status and status not in BOOKING_STATUSES:
            raise ValueError(f"Invalid status filter: {status}")

        query = Booking.query.order_by(Booking.booked_at.desc(), Booking.id.desc())
        if not actor.can('view_all'):
            query = query.filter(Booking.user_id == actor.user_id)
        elif user_id:
            query = query.filter(Booking.user_id == user_id)
        if status:
            query = query.filter(Booking.status == status)
        return query.paginate(page=page, per_page=per_page, error_out=False)

    @staticmethod
    def list_waitlist(actor, session_id=None, status=None, page=1, per_page=20):
        if not actor.can('manage_waitlist'):
            raise Unauthorized("Coach or admin access required.")
        if status and status not in WAITLIST_STATUSES:
            raise ValueError(f"Invalid status filter: {status}")

        query = WaitlistEntry.query.order_by(WaitlistEntry.session_id, WaitlistEntry.position)
        if session_id:
            query = query.filter(WaitlistEntry.session_id == session_id)
        if status:
            query = query.filter(WaitlistEntry.status == status)
        return query.paginate(page=page, per_page=per_page, error_out=False)

    @staticmethod
    def get_user_waitlist(user_id, actor):
        """Open waitlist entries of a user, newest first."""
        if user_id != actor.user_id and not actor.is_admin:
            raise Unauthorized()
        return WaitlistEntry.query.filter(
            WaitlistEntry.user_id == user_id,
            WaitlistEntry.status.in_(OPEN_WAITLIST_STATUSES)
        ).order_by(WaitlistEntry.joined_at.desc()).all()
