from collections import namedtuple
from datetime import datetime

from fitstudio.extensions import db

ROLE_CAPABILITIES = {
    'client': frozenset({'book'}),
    'coach': frozenset({'book', 'manage_waitlist', 'view_all', 'mark_attendance'}),
    'admin': frozenset({'book', 'manage_waitlist', 'view_all', 'mark_attendance',
                        'manage_schedule', 'admin'}),
}


class Actor(namedtuple('Actor', ['user_id', 'role', 'capabilities'])):
    """Authenticated principal with its capabilities resolved once, at the boundary."""

    __slots__ = ()

    def can(self, capability):
        return capability in self.capabilities

    @property
    def is_admin(self):
        return 'admin' in self.capabilities


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(256))
    role = db.Column(db.String(20), default='client')  # client, coach, admin
    is_active = db.Column(db.Boolean, default=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    bookings = db.relationship('Booking', backref='user', lazy=True,
                               cascade='all, delete')
    waitlist_entries = db.relationship('WaitlistEntry', backref='user', lazy=True,
                                       cascade='all, delete')

    def to_actor(self):
        role = self.role if self.role in ROLE_CAPABILITIES else 'client'
        return Actor(self.id, role, ROLE_CAPABILITIES[role])

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'role': self.role,
            'is_active': self.is_active
        }
