from datetime import datetime

from fitstudio.extensions import db

WAITLIST_STATUSES = ('waiting', 'notified', 'booked', 'cancelled', 'expired')
# Entries still holding a place in the queue
OPEN_WAITLIST_STATUSES = ('waiting', 'notified')

_open_clause = db.text("status IN ('waiting', 'notified')")


class WaitlistEntry(db.Model):
    __tablename__ = 'waitlist_entries'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    session_id = db.Column(db.Integer, db.ForeignKey('class_sessions.id', ondelete='CASCADE'),
                           nullable=False)

    position = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), nullable=False, default='waiting')  # see WAITLIST_STATUSES

    joined_at = db.Column(db.DateTime, default=datetime.utcnow)
    notified_at = db.Column(db.DateTime)
    response_deadline = db.Column(db.DateTime, index=True)
    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.Index('ix_waitlist_session_status_position', 'session_id', 'status', 'position'),
        db.Index('uq_waitlist_open_user_session', 'user_id', 'session_id', unique=True,
                 sqlite_where=_open_clause, postgresql_where=_open_clause),
    )

    @property
    def is_open(self):
        return self.status in OPEN_WAITLIST_STATUSES

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'session_id': self.session_id,
            'position': self.position,
            'status': self.status,
            'joined_at': self.joined_at.isoformat() if self.joined_at else None,
            'notified_at': self.notified_at.isoformat() if self.notified_at else None,
            'response_deadline': self.response_deadline.isoformat() if self.response_deadline else None
        }
