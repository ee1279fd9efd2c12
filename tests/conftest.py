import pytest
import jwt
from datetime import datetime, timedelta
from fitstudio import create_app, db
from fitstudio.config import TestingConfig
from fitstudio.models import User, ClassSession
from werkzeug.security import generate_password_hash

@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    return app.test_client()

@pytest.fixture
def make_user(app):
    counter = {'n': 0}

    def _make_user(role='client', username=None, password='password'):
        counter['n'] += 1
        username = username or f"{role}{counter['n']}"
        user = User(
            username=username,
            email=f"{username}@test.com",
            password_hash=generate_password_hash(password),
            role=role
        )
        db.session.add(user)
        db.session.commit()
        return user

    return _make_user

@pytest.fixture
def make_session(app):
    def _make_session(max_capacity=1, status='scheduled', starts_at=None, name='Reformer Pilates'):
        starts_at = starts_at or (datetime.utcnow() + timedelta(days=1)).replace(microsecond=0)
        session = ClassSession(
            name=name,
            room_name='Studio A',
            starts_at=starts_at,
            ends_at=starts_at + timedelta(minutes=50),
            max_capacity=max_capacity,
            price=20,
            status=status
        )
        db.session.add(session)
        db.session.commit()
        return session

    return _make_session

@pytest.fixture
def auth_header(app):
    def _auth_header(user):
        token = jwt.encode({
            'user_id': user.id,
            'exp': datetime.utcnow() + timedelta(hours=1)
        }, app.config['SECRET_KEY'], algorithm="HS256")
        return {'Authorization': f'Bearer {token}'}

    return _auth_header
