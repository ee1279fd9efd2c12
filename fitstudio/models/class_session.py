from datetime import datetime

from fitstudio.extensions import db

SESSION_STATUSES = ('scheduled', 'cancelled', 'completed')


class ClassSession(db.Model):
    __tablename__ = 'class_sessions'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    instructor_name = db.Column(db.String(128))
    room_name = db.Column(db.String(100))

    starts_at = db.Column(db.DateTime, nullable=False, index=True)
    ends_at = db.Column(db.DateTime, nullable=False)

    price = db.Column(db.Numeric(10, 2), default=0)
    max_capacity = db.Column(db.Integer, nullable=False)
    # Written only by BookingService, from a recount of active bookings under the row lock
    current_bookings = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(20), nullable=False, default='scheduled', index=True)  # scheduled, cancelled, completed
    notes = db.Column(db.Text)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    bookings = db.relationship('Booking', backref='session', lazy=True,
                               cascade='all, delete')
    waitlist_entries = db.relationship('WaitlistEntry', backref='session', lazy=True,
                                       cascade='all, delete')

    __table_args__ = (
        db.CheckConstraint('max_capacity > 0', name='check_capacity_positive'),
        db.CheckConstraint('current_bookings >= 0', name='check_bookings_non_negative'),
        db.CheckConstraint('starts_at < ends_at', name='check_time_order'),
    )

    @property
    def available_spots(self):
        return max(self.max_capacity - (self.current_bookings or 0), 0)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'instructor_name': self.instructor_name,
            'room_name': self.room_name,
            'starts_at': self.starts_at.isoformat(),
            'ends_at': self.ends_at.isoformat(),
            'price': float(self.price) if self.price is not None else None,
            'max_capacity': self.max_capacity,
            'current_bookings': self.current_bookings,
            'available_spots': self.available_spots,
            'status': self.status,
            'notes': self.notes
        }
