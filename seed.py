from datetime import datetime, timedelta

from fitstudio import create_app, db
from fitstudio.models import User, ClassSession
from werkzeug.security import generate_password_hash

app = create_app()

with app.app_context():
    db.create_all()

    # Create staff and a demo member
    users_data = [
        {"username": "admin", "email": "admin@fitstudio.local", "role": "admin"},
        {"username": "coach", "email": "coach@fitstudio.local", "role": "coach"},
        {"username": "member", "email": "member@fitstudio.local", "role": "client"},
    ]
    for u_data in users_data:
        if not User.query.filter_by(username=u_data['username']).first():
            user = User(
                username=u_data['username'],
                email=u_data['email'],
                password_hash=generate_password_hash('password', method='pbkdf2:sha256'),
                role=u_data['role']
            )
            db.session.add(user)
            print(f"User {user.username} created ({user.role}, password: password)")

    # Create tomorrow's classes
    tomorrow = (datetime.now() + timedelta(days=1)).replace(minute=0, second=0, microsecond=0)
    sessions_data = [
        {"name": "Reformer Pilates", "room_name": "Studio A", "hour": 7, "max_capacity": 8, "price": 25},
        {"name": "Mat Pilates", "room_name": "Studio B", "hour": 12, "max_capacity": 15, "price": 18},
        {"name": "HIIT", "room_name": "Studio A", "hour": 18, "max_capacity": 12, "price": 20},
        {"name": "Yoga Flow", "room_name": "Studio B", "hour": 19, "max_capacity": 1, "price": 20},
    ]

    for s_data in sessions_data:
        starts_at = tomorrow.replace(hour=s_data['hour'])
        if not ClassSession.query.filter_by(name=s_data['name'], starts_at=starts_at).first():
            session = ClassSession(
                name=s_data['name'],
                instructor_name="Coach",
                room_name=s_data['room_name'],
                starts_at=starts_at,
                ends_at=starts_at + timedelta(minutes=50),
                max_capacity=s_data['max_capacity'],
                price=s_data['price']
            )
            db.session.add(session)
            print(f"Class {session.name} at {starts_at:%H:%M} created.")

    db.session.commit()
    print("Database seeded successfully.")
