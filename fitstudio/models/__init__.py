from fitstudio.models.user import User, Actor
from fitstudio.models.class_session import ClassSession
from fitstudio.models.booking import Booking
from fitstudio.models.waitlist import WaitlistEntry
