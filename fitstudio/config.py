import os
from dotenv import load_dotenv

load_dotenv(os.path.join(os.path.dirname(__file__), '.env'))

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-prod'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///fitstudio.db'
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Optional Redis/AMQP url so several workers share socket rooms
    SOCKETIO_MESSAGE_QUEUE = os.environ.get('SOCKETIO_MESSAGE_QUEUE')

    # Business Rules Defaults
    WAITLIST_RESPONSE_HOURS = int(os.environ.get('WAITLIST_RESPONSE_HOURS', 2))
    TOKEN_EXPIRY_HOURS = 24
    DEFAULT_PAGE_SIZE = 20
    MAX_PAGE_SIZE = 100

class DevelopmentConfig(Config):
    DEBUG = True

class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SOCKETIO_MESSAGE_QUEUE = None

class ProductionConfig(Config):
    DEBUG = False
    # In prod, rely on env vars strictly
