from datetime import datetime

from fitstudio.extensions import db

BOOKING_STATUSES = ('confirmed', 'pending', 'cancelled', 'no_show', 'completed')
ACTIVE_BOOKING_STATUSES = ('confirmed', 'pending')

_active_clause = db.text("status IN ('confirmed', 'pending')")


class Booking(db.Model):
    __tablename__ = 'bookings'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    session_id = db.Column(db.Integer, db.ForeignKey('class_sessions.id', ondelete='CASCADE'),
                           nullable=False, index=True)

    status = db.Column(db.String(20), nullable=False, default='confirmed')  # see BOOKING_STATUSES
    payment_status = db.Column(db.String(50), nullable=False, default='pending')
    payment_method = db.Column(db.String(50))
    amount_paid = db.Column(db.Numeric(10, 2))
    special_requests = db.Column(db.Text)
    cancellation_reason = db.Column(db.Text)

    booked_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    cancelled_at = db.Column(db.DateTime)
    checked_in_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.Index('ix_bookings_user_status', 'user_id', 'status'),
        # One active booking per (user, session); cancelled rows are kept as history
        db.Index('uq_bookings_active_user_session', 'user_id', 'session_id', unique=True,
                 sqlite_where=_active_clause, postgresql_where=_active_clause),
    )

    @property
    def is_active(self):
        return self.status in ACTIVE_BOOKING_STATUSES

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'session_id': self.session_id,
            'status': self.status,
            'payment_status': self.payment_status,
            'payment_method': self.payment_method,
            'amount_paid': float(self.amount_paid) if self.amount_paid is not None else None,
            'special_requests': self.special_requests,
            'cancellation_reason': self.cancellation_reason,
            'booked_at': self.booked_at.isoformat() if self.booked_at else None,
            'cancelled_at': self.cancelled_at.isoformat() if self.cancelled_at else None,
            'checked_in_at': self.checked_in_at.isoformat() if self.checked_in_at else None
        }
